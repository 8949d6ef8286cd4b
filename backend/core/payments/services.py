import logging
from datetime import date

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import Notification
from payments.models import PaymentInstallment, PaymentSchedule

logger = logging.getLogger(__name__)


def status_after_reversal(due_date: date, today: date) -> str:
    """Status of an installment whose payment confirmation is withdrawn."""

    if due_date < today:
        return PaymentInstallment.STATUS_OVERDUE
    return PaymentInstallment.STATUS_PENDING


def days_overdue(due_date: date, today: date) -> int:
    return max((today - due_date).days, 0)


def sync_payment_schedule_status(schedule: PaymentSchedule) -> PaymentSchedule:
    """Keep schedule status consistent with installment settlement state."""

    has_unpaid_installments = schedule.installments.exclude(
        status=PaymentInstallment.STATUS_PAID
    ).exists()
    if not has_unpaid_installments:
        next_status = PaymentSchedule.STATUS_PAID
    elif schedule.status == PaymentSchedule.STATUS_PAID:
        next_status = PaymentSchedule.STATUS_PENDING
    else:
        next_status = schedule.status

    if schedule.status != next_status:
        schedule.status = next_status
        schedule.save(update_fields=["status", "updated_at"])

    return schedule


def list_installments(*, quote_id=None):
    queryset = PaymentInstallment.objects.select_related(
        "schedule",
        "schedule__quote",
        "validated_by",
    )
    if quote_id:
        queryset = queryset.filter(schedule__quote_id=quote_id)
    return queryset.order_by("due_date", "installment_number")


def list_overdue_installments(*, today: date | None = None) -> list[dict]:
    """Unpaid installments due today or earlier, oldest first."""

    today = today or timezone.localdate()
    installments = (
        PaymentInstallment.objects.select_related(
            "schedule",
            "schedule__quote",
            "schedule__quote__broker",
            "schedule__quote__product",
        )
        .filter(due_date__lte=today)
        .exclude(status=PaymentInstallment.STATUS_PAID)
        .order_by("due_date", "installment_number")
    )
    return [
        {"installment": installment, "days_overdue": days_overdue(installment.due_date, today)}
        for installment in installments
    ]


def mark_installment_paid(
    *,
    installment: PaymentInstallment,
    actor=None,
    payment_method: str | None = None,
    payment_reference: str | None = None,
    admin_notes: str | None = None,
    now=None,
) -> PaymentInstallment:
    """Confirm an installment payment and settle the schedule once fully paid."""

    if installment.status == PaymentInstallment.STATUS_PAID:
        raise ValidationError("Ce paiement est déjà marqué comme payé")

    valid_methods = {choice for choice, _label in PaymentInstallment.METHOD_CHOICES}
    if payment_method and payment_method not in valid_methods:
        raise ValidationError(f"Mode de paiement invalide: {payment_method}")

    now = now or timezone.now()
    actor_obj = actor if getattr(actor, "is_authenticated", False) else None

    with transaction.atomic():
        installment.status = PaymentInstallment.STATUS_PAID
        installment.paid_at = now
        installment.paid_amount = installment.amount_ttc
        installment.payment_method = payment_method or None
        installment.payment_reference = payment_reference or None
        installment.admin_notes = admin_notes or None
        installment.validated_by = actor_obj
        installment.validated_at = now
        installment.save(
            update_fields=[
                "status",
                *PaymentInstallment.CONFIRMATION_FIELDS,
                "updated_at",
            ]
        )

        schedule = sync_payment_schedule_status(installment.schedule)
        quote = schedule.quote

        Notification.objects.create(
            user_id=quote.broker_id,
            type=Notification.TYPE_PAYMENT_DUE,
            title=f"Paiement confirmé - {quote.reference}",
            message=(
                f"Le paiement de l'échéance n°{installment.installment_number} "
                f"({installment.amount_ttc}€) a été confirmé."
            ),
            related_entity_type="quote",
            related_entity_id=str(quote.pk),
        )

    logger.info(
        "Installment marked as paid",
        extra={
            "installment_id": installment.pk,
            "schedule_id": installment.schedule_id,
            "schedule_status": schedule.status,
            "actor_id": getattr(actor_obj, "pk", None),
        },
    )
    return installment


def mark_installment_unpaid(
    *,
    installment: PaymentInstallment,
    actor=None,
    today: date | None = None,
) -> PaymentInstallment:
    """Withdraw a payment confirmation.

    Only PAID installments qualify. The installment falls back to OVERDUE when its
    due date is before today (local calendar day), PENDING otherwise, and the
    owning schedule goes back to PENDING whatever the state of its siblings.
    """

    if installment.status != PaymentInstallment.STATUS_PAID:
        raise ValidationError("Cette échéance n'est pas marquée comme payée")

    today = today or timezone.localdate()

    with transaction.atomic():
        installment.status = status_after_reversal(installment.due_date, today)
        for field_name in PaymentInstallment.CONFIRMATION_FIELDS:
            setattr(installment, field_name, None)
        installment.save(
            update_fields=[
                "status",
                *PaymentInstallment.CONFIRMATION_FIELDS,
                "updated_at",
            ]
        )

        PaymentSchedule.objects.filter(pk=installment.schedule_id).update(
            status=PaymentSchedule.STATUS_PENDING,
            updated_at=timezone.now(),
        )

    logger.info(
        "Installment payment reverted",
        extra={
            "installment_id": installment.pk,
            "status": installment.status,
            "actor_id": getattr(actor, "pk", None),
        },
    )
    return installment


def send_payment_reminder(
    *,
    installment: PaymentInstallment,
    actor=None,
    now=None,
) -> PaymentInstallment:
    """Email the broker about an unpaid installment and count the reminder."""

    if installment.status == PaymentInstallment.STATUS_PAID:
        raise ValidationError("Ce paiement a déjà été effectué")

    now = now or timezone.now()
    quote = installment.schedule.quote
    broker = quote.broker
    if not broker.email:
        raise ValidationError("Le courtier n'a pas d'adresse email")

    today = timezone.localdate(now)
    subject = (
        f"Rappel de paiement - Échéance n°{installment.installment_number} - {quote.reference}"
    )
    body = "\n".join(
        [
            "Rappel de paiement",
            "",
            f"Bonjour {broker.get_full_name() or broker.username},",
            "",
            f"Nous vous informons qu'un paiement est en retard pour le devis {quote.reference}.",
            "",
            "Détails du paiement en retard:",
            f"- Échéance n°: {installment.installment_number}",
            f"- Montant TTC: {installment.amount_ttc:.2f}€",
            f"- Date d'échéance: {installment.due_date:%d/%m/%Y}",
            f"- Retard: {days_overdue(installment.due_date, today)} jour(s)",
            f"- Produit: {quote.product.name}",
            "",
            "Merci de régulariser cette situation dans les plus brefs délais.",
        ]
    )
    message = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[broker.email],
    )
    message.send(fail_silently=False)

    PaymentInstallment.objects.filter(pk=installment.pk).update(
        reminder_count=F("reminder_count") + 1,
        last_reminder_sent=now,
        updated_at=now,
    )
    installment.refresh_from_db(fields=["reminder_count", "last_reminder_sent", "updated_at"])

    logger.info(
        "Payment reminder sent",
        extra={
            "installment_id": installment.pk,
            "reminder_count": installment.reminder_count,
            "actor_id": getattr(actor, "pk", None),
        },
    )
    return installment


def rectify_swapped_amounts() -> dict:
    """Swap amount_ht/amount_ttc on every installment where TTC < HT.

    Rows are committed one at a time; a rerun on the result finds nothing to fix.
    """

    candidates = list(
        PaymentInstallment.objects.filter(amount_ttc__lt=F("amount_ht"))
        .order_by("id")
        .values_list("id", "amount_ht", "amount_ttc")
    )

    updated = 0
    for installment_id, amount_ht, amount_ttc in candidates:
        with transaction.atomic():
            updated += PaymentInstallment.objects.filter(
                pk=installment_id,
                amount_ttc__lt=F("amount_ht"),
            ).update(
                amount_ht=amount_ttc,
                amount_ttc=amount_ht,
                updated_at=timezone.now(),
            )

    logger.info(
        "Installment amounts rectified",
        extra={"updated": updated, "total": len(candidates)},
    )
    return {"updated": updated, "total": len(candidates)}
