"""Single-sheet bordereau: one row per contract installment, plus quote rows."""

import logging
from dataclasses import dataclass, field

from django.utils import timezone

from accounts.models import BrokerProfile
from bordereaux.builders.common import (
    DateRange,
    activity_columns,
    contract_status_label,
    first_present,
    flatten_source_data,
    format_date,
    quote_status_label,
    to_text,
)
from payments.models import PaymentInstallment
from quotes.models import InsuranceContract, Quote

logger = logging.getLogger(__name__)

LEGACY_COLUMNS = (
    "APPORTEUR",
    "IDENTIFIANT_POLICE",
    "DATE_SOUSCRIPTION",
    "DATE_EFFET_CONTRAT",
    "DATE_FIN_CONTRAT",
    "NUMERO_AVENANT",
    "MOTIF_AVENANT",
    "DATE_EFFET_AVENANT",
    "DATE_ECHEANCE",
    "ETAT_POLICE",
    "DATE_ETAT_POLICE",
    "MOTIF_ETAT",
    "FRANCTIONNEMENT",
    "SIREN",
    "ADRESSE_RISQUE",
    "VILLE_RISQUE",
    "CODE_POSTAL_RISQUE",
    "CA_ENTREPRISE",
    "EFFECTIF_ENTREPRISE",
    "CODE_NAF",
) + tuple(
    column
    for index in range(1, 9)
    for column in (f"LIBELLE_ACTIVITE_{index}", f"POID_ACTIVITE_{index}")
)


@dataclass(frozen=True)
class LegacyFilters:
    date_range: DateRange
    broker_ids: tuple = ()
    contract_status: tuple = ()
    product_type: str = ""
    include_quotes: bool = True


@dataclass
class LegacyBordereau:
    rows: list = field(default_factory=list)
    source_data_per_row: list = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


def _company_columns(company_data: dict, form_data: dict) -> dict:
    siret = to_text(company_data.get("siret"))
    return {
        "SIREN": siret[:9],
        "ADRESSE_RISQUE": to_text(company_data.get("address")),
        "VILLE_RISQUE": to_text(company_data.get("city")),
        "CODE_POSTAL_RISQUE": to_text(company_data.get("postalCode")),
        "CA_ENTREPRISE": to_text(company_data.get("revenue")),
        "EFFECTIF_ENTREPRISE": to_text(company_data.get("employeeCount")),
        "CODE_NAF": to_text(form_data.get("codeNaf")),
    }


def _base_row(*, broker_code: str, quote: Quote, due_date) -> dict:
    form_data = quote.form_data or {}
    row = dict.fromkeys(LEGACY_COLUMNS, "")
    row.update(
        {
            "APPORTEUR": broker_code,
            "IDENTIFIANT_POLICE": to_text(form_data.get("identifiantPolice")),
            "DATE_SOUSCRIPTION": format_date(quote.submitted_at),
            "DATE_ECHEANCE": format_date(due_date),
        }
    )
    row.update(_company_columns(quote.company_data or {}, form_data))
    row.update(activity_columns(form_data, weight_prefix="POID", use_titles=False))
    return row


def contract_row(*, contract: InsuranceContract, broker_code: str, due_date) -> dict:
    row = _base_row(broker_code=broker_code, quote=contract.quote, due_date=due_date)
    row.update(
        {
            "DATE_EFFET_CONTRAT": format_date(contract.start_date),
            "DATE_FIN_CONTRAT": format_date(contract.end_date),
            "ETAT_POLICE": contract_status_label(contract.status),
            "DATE_ETAT_POLICE": format_date(contract.updated_at),
        }
    )
    return row


def quote_row(*, quote: Quote, broker_code: str, due_date) -> dict:
    form_data = quote.form_data or {}
    row = _base_row(broker_code=broker_code, quote=quote, due_date=due_date)
    row.update(
        {
            "DATE_EFFET_CONTRAT": format_date(
                first_present(form_data.get("dateEffet"), form_data.get("dateDebut"), form_data.get("startDate"))
            ),
            "DATE_FIN_CONTRAT": format_date(
                first_present(form_data.get("dateFin"), form_data.get("dateFinContrat"), form_data.get("endDate"))
            ),
            "ETAT_POLICE": quote_status_label(quote.status),
            "DATE_ETAT_POLICE": format_date(quote.updated_at),
        }
    )
    return row


def _quote_payload_source_data(quote: Quote) -> list:
    items = []
    for prefix, payload in (
        ("companyData", quote.company_data),
        ("formData", quote.form_data),
        ("calculatedPremium", quote.calculated_premium),
    ):
        if isinstance(payload, dict):
            items.extend(flatten_source_data(payload, prefix))
    return items


def contract_source_data(contract: InsuranceContract) -> list:
    return _quote_payload_source_data(contract.quote) + flatten_source_data(
        {
            "startDate": contract.start_date,
            "endDate": contract.end_date,
            "status": contract.status,
            "reference": contract.reference,
        },
        "contract",
    )


def quote_source_data(quote: Quote) -> list:
    return _quote_payload_source_data(quote) + flatten_source_data(
        {
            "id": quote.pk,
            "reference": quote.reference,
            "status": quote.status,
            "submittedAt": quote.submitted_at,
            "createdAt": quote.created_at,
        },
        "quote",
    )


def _installments_in_range(quote: Quote, date_range: DateRange) -> list:
    return list(
        PaymentInstallment.objects.filter(
            schedule__quote=quote,
            due_date__gte=date_range.start_date,
            due_date__lte=date_range.end_date,
        ).order_by("due_date", "installment_number")
    )


def _select_contracts(filters: LegacyFilters) -> list:
    date_range = filters.date_range
    queryset = InsuranceContract.objects.select_related("quote", "product", "broker")
    if filters.contract_status:
        queryset = queryset.filter(status__in=filters.contract_status)
    if filters.broker_ids:
        queryset = queryset.filter(broker_id__in=filters.broker_ids)
    if filters.product_type:
        queryset = queryset.filter(product__code=filters.product_type)

    with_installments = queryset.filter(
        quote__payment_schedule__installments__due_date__gte=date_range.start_date,
        quote__payment_schedule__installments__due_date__lte=date_range.end_date,
    ).distinct()
    contracts = list(with_installments.order_by("reference"))
    if contracts:
        return contracts

    return list(
        queryset.filter(
            start_date__lte=date_range.end_date,
            end_date__gte=date_range.start_date,
        ).order_by("reference")
    )


def _select_quotes(filters: LegacyFilters) -> list:
    date_range = filters.date_range
    queryset = Quote.objects.select_related("product", "broker").filter(
        created_at__date__gte=date_range.start_date,
        created_at__date__lte=date_range.end_date,
    )
    if filters.broker_ids:
        queryset = queryset.filter(broker_id__in=filters.broker_ids)
    if filters.product_type:
        queryset = queryset.filter(product__code=filters.product_type)
    return list(queryset.order_by("created_at", "id"))


def _broker_codes(user_ids) -> dict:
    return dict(BrokerProfile.objects.filter(user_id__in=set(user_ids)).values_list("user_id", "code"))


def build_legacy_rows(filters: LegacyFilters) -> LegacyBordereau:
    """Contract and quote rows for the date range; reads only, never writes."""

    date_range = filters.date_range
    result = LegacyBordereau()

    contracts = _select_contracts(filters)
    quotes = _select_quotes(filters) if filters.include_quotes else []
    broker_codes = _broker_codes(
        [contract.broker_id for contract in contracts] + [quote.broker_id for quote in quotes]
    )

    for contract in contracts:
        broker_code = broker_codes.get(contract.broker_id)
        if broker_code is None:
            logger.warning("Contract skipped: broker has no profile", extra={"contract_id": contract.pk})
            continue

        source_data = contract_source_data(contract)
        installments = _installments_in_range(contract.quote, date_range)
        due_dates = [installment.due_date for installment in installments] or [contract.start_date]
        for due_date in due_dates:
            result.rows.append(contract_row(contract=contract, broker_code=broker_code, due_date=due_date))
            result.source_data_per_row.append(source_data)

    for quote in quotes:
        broker_code = broker_codes.get(quote.broker_id)
        if broker_code is None:
            logger.warning("Quote skipped: broker has no profile", extra={"quote_id": quote.pk})
            continue

        source_data = quote_source_data(quote)
        installments = _installments_in_range(quote, date_range)
        due_dates = [installment.due_date for installment in installments] or [quote.created_at]
        for due_date in due_dates:
            result.rows.append(quote_row(quote=quote, broker_code=broker_code, due_date=due_date))
            result.source_data_per_row.append(source_data)

    result.metadata = {
        "totalContracts": len(contracts),
        "totalRows": len(result.rows),
        "dateRange": date_range.as_dict(),
        "generatedAt": timezone.now().isoformat(),
    }
    if filters.include_quotes:
        result.metadata["totalQuotes"] = len(quotes)
    return result
