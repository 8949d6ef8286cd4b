from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil import parser as date_parser
from django.utils import timezone

from quotes.models import InsuranceContract, Quote
from tariff.tables import activity_title

MAX_ACTIVITIES = 8
SOURCE_DATA_MAX_DEPTH = 5

CONTRACT_STATUS_LABELS = {
    InsuranceContract.STATUS_ACTIVE: "EN COURS",
    InsuranceContract.STATUS_SUSPENDED: "SUSPENDU",
    InsuranceContract.STATUS_EXPIRED: "EXPIRE",
    InsuranceContract.STATUS_CANCELLED: "RESILIE",
    InsuranceContract.STATUS_PENDING_RENEWAL: "EN ATTENTE DE RENOUVELLEMENT",
}

QUOTE_STATUS_LABELS = {
    Quote.STATUS_DRAFT: "BROUILLON",
    Quote.STATUS_INCOMPLETE: "INCOMPLET",
    Quote.STATUS_SUBMITTED: "SOUSCRIPTION",
    Quote.STATUS_IN_PROGRESS: "EN COURS",
    Quote.STATUS_COMPLEMENT_REQUIRED: "COMPLEMENT REQUIS",
    Quote.STATUS_OFFER_READY: "OFFRE PRETE",
    Quote.STATUS_OFFER_SENT: "OFFRE ENVOYEE",
    Quote.STATUS_ACCEPTED: "ACCEPTE",
    Quote.STATUS_REJECTED: "REJETE",
    Quote.STATUS_EXPIRED: "EXPIRE",
}


@dataclass(frozen=True)
class DateRange:
    start_date: date
    end_date: date

    def as_dict(self) -> dict:
        return {"startDate": self.start_date.isoformat(), "endDate": self.end_date.isoformat()}


def contract_status_label(status: str) -> str:
    return CONTRACT_STATUS_LABELS.get(status, "EN COURS")


def quote_status_label(status: str) -> str:
    return QUOTE_STATUS_LABELS.get(status, "DEVIS")


def format_date(value) -> str:
    """ISO `YYYY-MM-DD`; unparseable or empty values render as an empty cell."""

    if value in (None, ""):
        return ""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date_parser.isoparse(str(value)).date().isoformat()
    except (TypeError, ValueError):
        return ""


def format_amount(value) -> str:
    if value in (None, ""):
        return ""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return ""
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_text(value) -> str:
    return "" if value is None else str(value)


def first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def form_activities(form_data: dict) -> list:
    raw = (form_data or {}).get("activities")
    if raw is None:
        raw = (form_data or {}).get("activites")
    return raw if isinstance(raw, list) else []


def activity_columns(form_data: dict, *, weight_prefix: str, use_titles: bool) -> dict:
    """LIBELLE_ACTIVITE_i / <weight_prefix>_ACTIVITE_i cells for the first eight activities."""

    activities = form_activities(form_data)
    columns = {}
    for index in range(1, MAX_ACTIVITIES + 1):
        activity = activities[index - 1] if index <= len(activities) else None
        if not isinstance(activity, dict):
            activity = {}
        code = activity.get("code")
        if code is None:
            label = ""
        elif use_titles:
            label = activity_title(code) or str(code)
        else:
            label = str(code)
        columns[f"LIBELLE_ACTIVITE_{index}"] = label
        columns[f"{weight_prefix}_ACTIVITE_{index}"] = to_text(activity.get("caSharePercent"))
    return columns


def flatten_source_data(obj, prefix: str, max_depth: int = SOURCE_DATA_MAX_DEPTH, depth: int = 0) -> list:
    """Flatten nested quote payloads into `{key, value}` pairs keyed by dotted path."""

    items = []
    if depth >= max_depth or obj is None:
        return items

    if isinstance(obj, (date, datetime)):
        return [{"key": prefix, "value": obj.isoformat()}]

    if isinstance(obj, (list, tuple)):
        for index, item in enumerate(obj):
            key = f"{prefix}.{index}"
            if isinstance(item, (dict, list, tuple)):
                items.extend(flatten_source_data(item, key, max_depth, depth + 1))
            else:
                items.append({"key": key, "value": to_text(item)})
        return items

    if not isinstance(obj, dict):
        return [{"key": prefix, "value": str(obj)}]

    for name, value in obj.items():
        key = f"{prefix}.{name}" if prefix else str(name)
        if isinstance(value, (dict, list, tuple)):
            items.extend(flatten_source_data(value, key, max_depth, depth + 1))
        elif value is not None:
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            items.append({"key": key, "value": str(value)})
    return items
