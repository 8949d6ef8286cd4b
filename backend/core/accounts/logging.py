from __future__ import annotations

import logging
import re
from typing import Any

from accounts.context import get_correlation_id


_SIRET_RE = re.compile(r"(?<!\d)(?:\d{14}|\d{3} ?\d{3} ?\d{3} ?\d{5})(?!\d)")
_SIREN_RE = re.compile(r"(?<!\d)(?:\d{9}|\d{3} \d{3} \d{3})(?!\d)")


def mask_siret_siren(text: str) -> str:
    """Mask SIRET/SIREN patterns in a string.

    No digit of the identifier is kept.
    """

    if not text:
        return text

    text = _SIRET_RE.sub("***SIRET***", text)
    text = _SIREN_RE.sub("***SIREN***", text)
    return text


class MaskSiretFilter(logging.Filter):
    """Logging filter to mask SIRET/SIREN in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):  # pragma: no cover
            message = str(getattr(record, "msg", ""))

        # Replace the formatted message and clear args to avoid double formatting.
        record.msg = mask_siret_siren(str(message))
        record.args = ()

        for key in ("siret", "siren"):
            if hasattr(record, key):
                value: Any = getattr(record, key)
                if isinstance(value, str):
                    setattr(record, key, mask_siret_siren(value))

        return True


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the correlation id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        return True
