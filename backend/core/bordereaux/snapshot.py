"""Versioned schema for the row snapshots stored on a Bordereau.

Version 1 stores each sheet as a list of `{column: text}` objects restricted to
the sheet's fixed columns. Downloads go through `load_snapshot` so they never
depend on live records.
"""

from dataclasses import dataclass

from bordereaux.builders.v2 import POLICES_COLUMNS, QUITTANCES_COLUMNS

CURRENT_SNAPSHOT_VERSION = 1


class SnapshotVersionError(ValueError):
    pass


@dataclass(frozen=True)
class BordereauSnapshot:
    version: int
    polices: list
    quittances: list


def _normalize_rows(rows, columns) -> list:
    normalized = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        normalized.append({column: "" if row.get(column) is None else str(row.get(column)) for column in columns})
    return normalized


def dump_snapshot(polices, quittances) -> BordereauSnapshot:
    return BordereauSnapshot(
        version=CURRENT_SNAPSHOT_VERSION,
        polices=_normalize_rows(polices, POLICES_COLUMNS),
        quittances=_normalize_rows(quittances, QUITTANCES_COLUMNS),
    )


def load_snapshot(bordereau) -> BordereauSnapshot:
    if bordereau.snapshot_version != CURRENT_SNAPSHOT_VERSION:
        raise SnapshotVersionError(f"Version de snapshot inconnue: {bordereau.snapshot_version}")

    polices = bordereau.csv_data_polices if isinstance(bordereau.csv_data_polices, list) else []
    quittances = bordereau.csv_data_quittances if isinstance(bordereau.csv_data_quittances, list) else []
    return BordereauSnapshot(
        version=bordereau.snapshot_version,
        polices=_normalize_rows(polices, POLICES_COLUMNS),
        quittances=_normalize_rows(quittances, QUITTANCES_COLUMNS),
    )
