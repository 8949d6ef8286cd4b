import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from payments.models import PaymentInstallment, PaymentSchedule
from quotes.models import InsuranceContract, Quote

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Decimal:
    if value in (None, ""):
        return Decimal("0.00")
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation as exc:
        raise ValidationError(f"Montant invalide: {value!r}") from exc


def _to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(str(value)).date()
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Date invalide: {value!r}") from exc


def create_payment_schedule_from_calculation(*, quote: Quote, calculation_result: dict) -> PaymentSchedule:
    """Create the schedule and its installments from a premium calculation result.

    `calculation_result["echeancier"]["echeances"]` lists one entry per installment
    with `date`, `debutPeriode`, `finPeriode` and the HT/tax/TTC breakdown.
    """

    echeances = ((calculation_result or {}).get("echeancier") or {}).get("echeances")
    if not echeances:
        raise ValidationError("Données de calcul invalides")

    if PaymentSchedule.objects.filter(quote=quote).exists():
        raise ValidationError("Un échéancier existe déjà pour ce devis")

    with transaction.atomic():
        schedule = PaymentSchedule.objects.create(
            quote=quote,
            total_amount_ht=_to_decimal(calculation_result.get("primeTotal")),
            total_tax_amount=_to_decimal((calculation_result.get("autres") or {}).get("taxeAssurance")),
            total_amount_ttc=_to_decimal(calculation_result.get("totalTTC")),
            start_date=_to_date(echeances[0].get("debutPeriode")),
            end_date=_to_date(echeances[-1].get("finPeriode")),
            status=PaymentSchedule.STATUS_PENDING,
        )

        PaymentInstallment.objects.bulk_create(
            [
                PaymentInstallment(
                    schedule=schedule,
                    installment_number=index,
                    due_date=_to_date(echeance.get("date")),
                    amount_ht=_to_decimal(echeance.get("totalHT")),
                    tax_amount=_to_decimal(echeance.get("taxe")),
                    amount_ttc=_to_decimal(echeance.get("totalTTC")),
                    rcd_amount=_to_decimal(echeance.get("rcd")),
                    pj_amount=_to_decimal(echeance.get("pj")),
                    fees_amount=_to_decimal(echeance.get("frais")),
                    resume_amount=_to_decimal(echeance.get("reprise")),
                    period_start=_to_date(echeance.get("debutPeriode")),
                    period_end=_to_date(echeance.get("finPeriode")),
                    status=PaymentInstallment.STATUS_PENDING,
                )
                for index, echeance in enumerate(echeances, start=1)
            ]
        )

        quote.calculated_premium = calculation_result
        quote.save(update_fields=["calculated_premium", "updated_at"])

    logger.info(
        "Payment schedule created",
        extra={"quote_id": quote.pk, "schedule_id": schedule.pk, "installments": len(echeances)},
    )
    return schedule


def resiliate_quote(*, quote: Quote, resiliation_date=None, resiliation_reason: str = "") -> PaymentSchedule:
    """Set or clear the resiliation of a quote's schedule.

    A date resiliates: the schedule records it and the contract, if any, becomes
    CANCELLED. `None` withdraws the resiliation and reactivates the contract.
    """

    schedule = PaymentSchedule.objects.filter(quote=quote).first()
    if schedule is None:
        raise ValidationError("Échéancier non trouvé pour ce devis")

    is_resiliation = resiliation_date is not None

    with transaction.atomic():
        schedule.resiliation_date = _to_date(resiliation_date) if is_resiliation else None
        schedule.resiliation_reason = (resiliation_reason or "") if is_resiliation else ""
        schedule.save(update_fields=["resiliation_date", "resiliation_reason", "updated_at"])

        InsuranceContract.objects.filter(quote=quote).update(
            status=(
                InsuranceContract.STATUS_CANCELLED
                if is_resiliation
                else InsuranceContract.STATUS_ACTIVE
            ),
            updated_at=timezone.now(),
        )

    logger.info(
        "Quote resiliation updated",
        extra={"quote_id": quote.pk, "resiliation_date": str(schedule.resiliation_date or "")},
    )
    return schedule
