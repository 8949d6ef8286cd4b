import logging
import math

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from bordereaux.builders.common import DateRange
from bordereaux.builders.legacy import LEGACY_COLUMNS
from bordereaux.builders.v2 import (
    POLICES_COLUMNS,
    QUITTANCES_COLUMNS,
    InclusionOptions,
    build_polices_rows,
    build_quittances_rows,
)
from bordereaux.exporters import (
    build_bordereau_zip,
    generate_csv,
    generate_file_name,
    get_bordereau_zip_file_name,
    get_polices_file_name,
    get_quittances_file_name,
)
from bordereaux.models import Bordereau
from bordereaux.snapshot import dump_snapshot, load_snapshot

logger = logging.getLogger(__name__)


def export_legacy_csv(*, rows, file_name: str = "", today=None) -> tuple[str, str]:
    """CSV text and attachment name for rows already previewed by the caller."""

    content = generate_csv(rows, LEGACY_COLUMNS)
    if not file_name:
        today = today or timezone.localdate()
        file_name = generate_file_name(today.month, today.year)
    return content, file_name


def preview_v2(*, date_range: DateRange, options: InclusionOptions | None = None) -> dict:
    return {
        "polices": build_polices_rows(date_range, options),
        "quittances": build_quittances_rows(date_range, options),
    }


def export_v2(*, date_range: DateRange, actor, polices=None, quittances=None, options=None):
    """Build both sheets, archive them and persist the snapshot.

    Rows supplied by the caller (edited preview) replace the generated ones sheet
    by sheet. Returns `(bordereau, zip_bytes, zip_file_name)`.
    """

    if polices is None:
        polices = build_polices_rows(date_range, options)
    if quittances is None:
        quittances = build_quittances_rows(date_range, options)

    month, year = date_range.end_date.month, date_range.end_date.year
    polices_name = get_polices_file_name(month, year)
    quittances_name = get_quittances_file_name(month, year)
    zip_name = get_bordereau_zip_file_name(month, year)

    snapshot = dump_snapshot(polices, quittances)
    archive = build_bordereau_zip(
        generate_csv(snapshot.polices, POLICES_COLUMNS, allow_empty=True),
        generate_csv(snapshot.quittances, QUITTANCES_COLUMNS, allow_empty=True),
        polices_name,
        quittances_name,
    )

    with transaction.atomic():
        bordereau = Bordereau.objects.create(
            generated_by=actor if getattr(actor, "is_authenticated", False) else None,
            period_start=date_range.start_date,
            period_end=date_range.end_date,
            filter_criteria={"dateRange": date_range.as_dict()},
            snapshot_version=snapshot.version,
            csv_data_polices=snapshot.polices,
            csv_data_quittances=snapshot.quittances,
            file_name_polices=polices_name,
            file_name_quittances=quittances_name,
        )

    logger.info(
        "Bordereau generated",
        extra={
            "bordereau_id": bordereau.pk,
            "polices": len(snapshot.polices),
            "quittances": len(snapshot.quittances),
        },
    )
    return bordereau, archive, zip_name


def regenerate_zip(bordereau: Bordereau) -> tuple[bytes, str]:
    """Rebuild the archive from the stored snapshot only."""

    snapshot = load_snapshot(bordereau)
    archive = build_bordereau_zip(
        generate_csv(snapshot.polices, POLICES_COLUMNS, allow_empty=True),
        generate_csv(snapshot.quittances, QUITTANCES_COLUMNS, allow_empty=True),
        bordereau.file_name_polices,
        bordereau.file_name_quittances,
    )
    return archive, get_bordereau_zip_file_name(bordereau.period_end.month, bordereau.period_end.year)


def _parse_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_history_limit(value) -> int:
    default = getattr(settings, "BORDEREAU_HISTORY_DEFAULT_LIMIT", 20)
    maximum = getattr(settings, "BORDEREAU_HISTORY_MAX_LIMIT", 100)
    limit = _parse_int(value, default) if value not in (None, "") else default
    return max(1, min(limit, maximum))


def _generated_by_name(bordereau: Bordereau) -> str:
    user = bordereau.generated_by
    if user is None:
        return "—"
    return user.get_full_name() or user.username


def list_history(*, page=None, limit=None) -> dict:
    """Newest first. `page` is used as given; a page below 1 yields no items."""

    limit = clamp_history_limit(limit)
    page = _parse_int(page, 1) if page not in (None, "") else 1
    offset = (page - 1) * limit

    queryset = Bordereau.objects.select_related("generated_by").order_by("-generated_at", "-id")
    total = queryset.count()
    bordereaux = list(queryset[offset : offset + limit]) if offset >= 0 else []

    return {
        "items": [
            {
                "id": bordereau.pk,
                "generatedAt": bordereau.generated_at.isoformat(),
                "generatedBy": _generated_by_name(bordereau),
                "periodStart": bordereau.period_start.isoformat(),
                "periodEnd": bordereau.period_end.isoformat(),
                "countPolices": len(bordereau.csv_data_polices or []),
                "countQuittances": len(bordereau.csv_data_quittances or []),
                "fileNamePolices": bordereau.file_name_polices,
                "fileNameQuittances": bordereau.file_name_quittances,
            }
            for bordereau in bordereaux
        ],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }
