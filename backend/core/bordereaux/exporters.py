import csv
import io
import zipfile

from django.conf import settings

CSV_CONTENT_TYPE = "text/csv; charset=utf-8"
ZIP_CONTENT_TYPE = "application/zip"


class EmptyBordereauError(ValueError):
    """Raised when a CSV export is requested without any row."""


def generate_csv(rows, columns, allow_empty: bool = False) -> str:
    """Render rows as CSV with a header taken from `columns`.

    Cells containing a comma, a double quote or a line break are quoted; unknown
    keys are ignored and missing ones render empty.
    """

    rows = list(rows or [])
    if not rows and not allow_empty:
        raise EmptyBordereauError("Aucune donnée à exporter")

    output = io.StringIO()
    writer = csv.DictWriter(
        output,
        fieldnames=list(columns),
        restval="",
        extrasaction="ignore",
        lineterminator="\n",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({key: "" if value is None else value for key, value in row.items()})
    return output.getvalue()


def parse_csv(text: str) -> list:
    return list(csv.DictReader(io.StringIO(text)))


def validate_csv_header(text: str, columns) -> bool:
    reader = csv.reader(io.StringIO(text))
    header = next(reader, [])
    return header == list(columns)


def _company_name() -> str:
    return getattr(settings, "BORDEREAU_COMPANY_NAME", "FIDELIDADE")


def generate_file_name(month: int, year: int) -> str:
    return f"BORDEREAU_{_company_name()}_{month:02d}_{year}.csv"


def get_polices_file_name(month: int, year: int) -> str:
    return f"BORDEREAU_{_company_name()}_POLICES_{month:02d}_{year}.csv"


def get_quittances_file_name(month: int, year: int) -> str:
    return f"BORDEREAU_{_company_name()}_QUITTANCES_{month:02d}_{year}.csv"


def get_bordereau_zip_file_name(month: int, year: int) -> str:
    return f"BORDEREAU_{_company_name()}_{month:02d}_{year}.zip"


def build_bordereau_zip(polices_csv: str, quittances_csv: str, polices_name: str, quittances_name: str) -> bytes:
    """Both CSVs in one in-memory archive; nothing is returned unless the archive is complete."""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        archive.writestr(polices_name, polices_csv.encode("utf-8"))
        archive.writestr(quittances_name, quittances_csv.encode("utf-8"))
    return buffer.getvalue()
