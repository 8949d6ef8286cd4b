"""Two-sheet bordereau (polices + quittances) built from installments of accepted quotes.

Both sheets share the same installment selection:

- the quote is ACCEPTED;
- the due date falls inside the period, or the installment period overlaps it;
- installments starting after the end of the resiliation month are dropped.

Rows are ordered by quote reference, then installment number. Inclusion
options blank the cells they govern; the column set never changes.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db.models import Q

from bordereaux.builders.common import (
    DateRange,
    activity_columns,
    contract_status_label,
    first_present,
    form_activities,
    format_amount,
    format_date,
    quote_status_label,
    to_text,
)
from payments.models import PaymentInstallment
from quotes.models import InsuranceContract, Quote
from tariff.tables import activity_title

POLICES_COLUMNS = (
    "APPORTEUR",
    "IDENTIFIANT_POLICE",
    "DATE_SOUSCRIPTION",
    "DATE_EFFET_CONTRAT",
    "DATE_FIN_CONTRAT",
    "NUMERO_AVENANT",
    "MOTIF_AVENANT",
    "DATE_EFFET_AVENANT",
    "DATE_DEMANDE",
    "STATUT_POLICE",
    "DATE_STAT_POLICE",
    "MOTIF_STATUT",
    "TYPE_CONTRAT",
    "COMPAGNIE",
    "NOM_ENTREPRISE_ASSURE",
    "SIREN",
    "ACTIVITE",
    "ADRESSE_RISQUE",
    "VILLE_RISQUE",
    "CODE_POSTAL_RISQUE",
    "CA_ENTREPRISE",
    "EFFECTIF_ENTREPRISE",
    "CODE_NAF",
) + tuple(
    column
    for index in range(1, 9)
    for column in (f"LIBELLE_ACTIVITE_{index}", f"POIDS_ACTIVITE_{index}")
)

QUITTANCES_COLUMNS = (
    "APPORTEUR",
    "IDENTIFIANT_POLICE",
    "NUMERO_AVENANT",
    "IDENTIFIANT_QUITTANCE",
    "DATE_EMISSION_QUITTANCE",
    "DATE_EFFET_QUITTANCE",
    "DATE_FIN_QUITTANCE",
    "DATE_ENCAISSEMENT",
    "STATUT_QUITTANCE",
    "GARANTIE",
    "PRIME_TTC",
    "PRIME_HT",
    "TAXES",
    "TAUX_COMMISSIONS",
    "COMMISSIONS",
    "MODE_PAIEMENT",
)

GARANTIE_RC_RCD = "RC_RCD"

COMPANY_DETAIL_COLUMNS = (
    "NOM_ENTREPRISE_ASSURE",
    "SIREN",
    "ADRESSE_RISQUE",
    "VILLE_RISQUE",
    "CODE_POSTAL_RISQUE",
    "CA_ENTREPRISE",
    "EFFECTIF_ENTREPRISE",
    "CODE_NAF",
)
ACTIVITY_COLUMNS = ("ACTIVITE",) + POLICES_COLUMNS[-16:]
COMMISSION_COLUMNS = ("TAUX_COMMISSIONS", "COMMISSIONS")
PAYMENT_DETAIL_COLUMNS = ("DATE_ENCAISSEMENT", "MODE_PAIEMENT")

INSTALLMENT_STATUS_LABELS = {
    PaymentInstallment.STATUS_PENDING: "EMISE",
    PaymentInstallment.STATUS_OVERDUE: "EMISE",
    PaymentInstallment.STATUS_PAID: "ENCAISSE",
    PaymentInstallment.STATUS_CANCELLED: "ANNULE",
    PaymentInstallment.STATUS_PARTIALLY_PAID: "PARTIEL",
}

PAYMENT_METHOD_LABELS = {
    PaymentInstallment.METHOD_CASH: "ESPECES",
    PaymentInstallment.METHOD_CHECK: "CHEQUE",
    PaymentInstallment.METHOD_BANK_TRANSFER: "VIREMENT",
    PaymentInstallment.METHOD_CARD: "CARTE",
    PaymentInstallment.METHOD_SEPA_DEBIT: "PRELEVEMENT",
    PaymentInstallment.METHOD_OTHER: "AUTRE",
}
DEFAULT_PAID_METHOD_LABEL = "VIREMENT"


@dataclass(frozen=True)
class InclusionOptions:
    include_activities: bool = True
    include_company_details: bool = True
    include_commissions: bool = True
    include_payment_details: bool = True

    @classmethod
    def from_payload(cls, payload) -> "InclusionOptions":
        payload = payload or {}
        return cls(
            include_activities=payload.get("includeActivities", True) is not False,
            include_company_details=payload.get("includeCompanyDetails", True) is not False,
            include_commissions=payload.get("includeCommissions", True) is not False,
            include_payment_details=payload.get("includePaymentDetails", True) is not False,
        )

    def blanked_columns(self) -> set:
        columns = set()
        if not self.include_activities:
            columns.update(ACTIVITY_COLUMNS)
        if not self.include_company_details:
            columns.update(COMPANY_DETAIL_COLUMNS)
        if not self.include_commissions:
            columns.update(COMMISSION_COLUMNS)
        if not self.include_payment_details:
            columns.update(PAYMENT_DETAIL_COLUMNS)
        return columns


def _apply_inclusion(row: dict, options: InclusionOptions) -> dict:
    for column in options.blanked_columns():
        if column in row:
            row[column] = ""
    return row


def installment_status_label(status: str) -> str:
    return INSTALLMENT_STATUS_LABELS.get(status, "EMISE")


def payment_method_label(installment: PaymentInstallment) -> str:
    if installment.payment_method:
        return PAYMENT_METHOD_LABELS.get(installment.payment_method, "AUTRE")
    if installment.status == PaymentInstallment.STATUS_PAID:
        return DEFAULT_PAID_METHOD_LABEL
    return ""


def resiliation_cutoff(resiliation_date):
    """Last day of the resiliation month."""

    return resiliation_date + relativedelta(day=31)


def select_installments(date_range: DateRange) -> list:
    queryset = (
        PaymentInstallment.objects.select_related("schedule", "schedule__quote", "schedule__quote__product")
        .filter(schedule__quote__status=Quote.STATUS_ACCEPTED)
        .filter(
            Q(due_date__gte=date_range.start_date, due_date__lte=date_range.end_date)
            | Q(period_start__lte=date_range.end_date, period_end__gte=date_range.start_date)
        )
        .order_by("schedule__quote__reference", "installment_number")
    )

    installments = []
    for installment in queryset:
        resiliation_date = installment.schedule.resiliation_date
        if resiliation_date and installment.period_start > resiliation_cutoff(resiliation_date):
            continue
        installments.append(installment)
    return installments


def _contracts_by_quote(installments) -> dict:
    quote_ids = {installment.schedule.quote_id for installment in installments}
    return {contract.quote_id: contract for contract in InsuranceContract.objects.filter(quote_id__in=quote_ids)}


def _policy_status(installment: PaymentInstallment, contract) -> str:
    if installment.schedule.resiliation_date:
        return "RESILIE"
    if contract is not None:
        return contract_status_label(contract.status)
    return quote_status_label(installment.schedule.quote.status)


def _status_reason(installment: PaymentInstallment) -> str:
    if installment.schedule.resiliation_date:
        return "RESILIATION"
    if installment.status == PaymentInstallment.STATUS_PAID or installment.paid_at is not None:
        return "REGLEMENT"
    return "EMISSION"


def polices_row(installment: PaymentInstallment, contract, options: InclusionOptions) -> dict:
    quote = installment.schedule.quote
    form_data = quote.form_data or {}
    company_data = quote.company_data or {}
    activities = form_activities(form_data)
    first_activity = activities[0] if activities and isinstance(activities[0], dict) else {}

    row = dict.fromkeys(POLICES_COLUMNS, "")
    row.update(
        {
            "APPORTEUR": settings.BORDEREAU_APPORTEUR,
            "IDENTIFIANT_POLICE": quote.reference,
            "DATE_SOUSCRIPTION": format_date(
                first_present(
                    form_data.get("dateDeffet"),
                    form_data.get("dateEffet"),
                    form_data.get("dateDebut"),
                    form_data.get("startDate"),
                )
            ),
            "DATE_EFFET_CONTRAT": format_date(contract.start_date) if contract is not None else "",
            "DATE_FIN_CONTRAT": format_date(installment.period_end),
            "DATE_DEMANDE": format_date(installment.due_date),
            "STATUT_POLICE": _policy_status(installment, contract),
            "DATE_STAT_POLICE": format_date(installment.paid_at),
            "MOTIF_STATUT": _status_reason(installment),
            "TYPE_CONTRAT": quote.product.product_type,
            "COMPAGNIE": settings.BORDEREAU_COMPANY_NAME,
            "NOM_ENTREPRISE_ASSURE": to_text(
                first_present(
                    form_data.get("companyName"),
                    company_data.get("companyName"),
                    company_data.get("name"),
                    company_data.get("raisonSociale"),
                )
            ),
            "SIREN": to_text(first_present(form_data.get("siret"), company_data.get("siret")))[:9],
            "ACTIVITE": activity_title(first_activity.get("code")) if first_activity else "",
            "ADRESSE_RISQUE": to_text(
                first_present(form_data.get("address"), company_data.get("address"), company_data.get("adresse"))
            ),
            "VILLE_RISQUE": to_text(
                first_present(form_data.get("city"), company_data.get("city"), company_data.get("ville"))
            ),
            "CODE_POSTAL_RISQUE": to_text(
                first_present(
                    form_data.get("postalCode"), company_data.get("postalCode"), company_data.get("codePostal")
                )
            ),
            "CA_ENTREPRISE": to_text(
                first_present(form_data.get("chiffreAffaires"), company_data.get("revenue"), company_data.get("ca"))
            ),
            "EFFECTIF_ENTREPRISE": to_text(
                first_present(
                    form_data.get("nombreSalaries"),
                    company_data.get("employeeCount"),
                    company_data.get("effectif"),
                )
            ),
            "CODE_NAF": to_text(first_present(form_data.get("code_naf"), form_data.get("codeNaf"))),
        }
    )
    row.update(activity_columns(form_data, weight_prefix="POIDS", use_titles=True))
    return _apply_inclusion(row, options)


def commission_rate() -> Decimal:
    return Decimal(str(settings.BORDEREAU_COMMISSION_RATE))


def _decimal_or_zero(value) -> Decimal:
    try:
        return Decimal(str(value)) if value is not None else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


def _schedule_entry(installment: PaymentInstallment):
    calculation = installment.schedule.quote.calculated_premium
    if not isinstance(calculation, dict):
        return None
    echeancier = calculation.get("echeancier")
    echeances = echeancier.get("echeances") if isinstance(echeancier, dict) else None
    if not isinstance(echeances, list):
        return None
    index = installment.installment_number - 1
    entry = echeances[index] if 0 <= index < len(echeances) else None
    return entry if isinstance(entry, dict) else None


def compute_commission(installment: PaymentInstallment) -> Decimal:
    """Rate applied to the stored schedule's HT net of fees, legal cover and take-over.

    Falls back to the installment HT amount when the calculation has no matching entry.
    """

    rate = commission_rate() / 100
    entry = _schedule_entry(installment)
    base = installment.amount_ht
    if entry is not None and entry.get("totalHT") not in (None, ""):
        try:
            total_ht = Decimal(str(entry["totalHT"]))
        except InvalidOperation:
            total_ht = None
        if total_ht is not None:
            base = (
                total_ht
                - _decimal_or_zero(first_present(entry.get("fraisGestion"), entry.get("frais")))
                - _decimal_or_zero(entry.get("pj"))
                - _decimal_or_zero(entry.get("reprise"))
            )
    return (base * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def quittances_row(installment: PaymentInstallment, options: InclusionOptions) -> dict:
    reference = installment.schedule.quote.reference
    row = {
        "APPORTEUR": settings.BORDEREAU_APPORTEUR,
        "IDENTIFIANT_POLICE": reference,
        "NUMERO_AVENANT": "",
        "IDENTIFIANT_QUITTANCE": f"{reference}Q{installment.installment_number}",
        "DATE_EMISSION_QUITTANCE": format_date(installment.paid_at or installment.due_date),
        "DATE_EFFET_QUITTANCE": format_date(installment.period_start),
        "DATE_FIN_QUITTANCE": format_date(installment.period_end),
        "DATE_ENCAISSEMENT": format_date(installment.paid_at),
        "STATUT_QUITTANCE": installment_status_label(installment.status),
        "GARANTIE": GARANTIE_RC_RCD,
        "PRIME_TTC": format_amount(installment.amount_ttc),
        "PRIME_HT": format_amount(installment.amount_ht),
        "TAXES": format_amount(installment.tax_amount),
        "TAUX_COMMISSIONS": str(settings.BORDEREAU_COMMISSION_RATE),
        "COMMISSIONS": format_amount(compute_commission(installment)),
        "MODE_PAIEMENT": payment_method_label(installment),
    }
    return _apply_inclusion(row, options)


def build_polices_rows(date_range: DateRange, options: InclusionOptions | None = None) -> list:
    options = options or InclusionOptions()
    installments = select_installments(date_range)
    contracts = _contracts_by_quote(installments)
    return [
        polices_row(installment, contracts.get(installment.schedule.quote_id), options)
        for installment in installments
    ]


def build_quittances_rows(date_range: DateRange, options: InclusionOptions | None = None) -> list:
    options = options or InclusionOptions()
    return [quittances_row(installment, options) for installment in select_installments(date_range)]
