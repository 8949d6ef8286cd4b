from django.conf import settings
from django.db import models


class PaymentSchedule(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_PARTIALLY_PAID = "PARTIALLY_PAID"
    STATUS_PAID = "PAID"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "En attente"),
        (STATUS_PARTIALLY_PAID, "Partiellement payé"),
        (STATUS_PAID, "Payé"),
        (STATUS_CANCELLED, "Annulé"),
    ]

    quote = models.OneToOneField(
        "quotes.Quote",
        on_delete=models.CASCADE,
        related_name="payment_schedule",
    )
    total_amount_ht = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_amount_ttc = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    resiliation_date = models.DateField(null=True, blank=True)
    resiliation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "payments"
        ordering = ("-start_date",)

    def __str__(self):
        return f"Schedule {self.id} - {self.quote_id} ({self.status})"


class PaymentInstallment(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_OVERDUE = "OVERDUE"
    STATUS_PAID = "PAID"
    STATUS_PARTIALLY_PAID = "PARTIALLY_PAID"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "En attente"),
        (STATUS_OVERDUE, "En retard"),
        (STATUS_PAID, "Payé"),
        (STATUS_PARTIALLY_PAID, "Partiellement payé"),
        (STATUS_CANCELLED, "Annulé"),
    ]

    METHOD_CASH = "CASH"
    METHOD_CHECK = "CHECK"
    METHOD_BANK_TRANSFER = "BANK_TRANSFER"
    METHOD_CARD = "CARD"
    METHOD_SEPA_DEBIT = "SEPA_DEBIT"
    METHOD_OTHER = "OTHER"
    METHOD_CHOICES = [
        (METHOD_CASH, "Espèces"),
        (METHOD_CHECK, "Chèque"),
        (METHOD_BANK_TRANSFER, "Virement"),
        (METHOD_CARD, "Carte"),
        (METHOD_SEPA_DEBIT, "Prélèvement SEPA"),
        (METHOD_OTHER, "Autre"),
    ]

    # Fields reset when a payment confirmation is reverted.
    CONFIRMATION_FIELDS = (
        "paid_at",
        "paid_amount",
        "payment_method",
        "payment_reference",
        "admin_notes",
        "validated_by",
        "validated_at",
    )

    schedule = models.ForeignKey(
        PaymentSchedule,
        on_delete=models.CASCADE,
        related_name="installments",
    )
    installment_number = models.PositiveSmallIntegerField()
    due_date = models.DateField()
    amount_ht = models.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    amount_ttc = models.DecimalField(max_digits=14, decimal_places=2)
    rcd_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    pj_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    fees_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    resume_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    period_start = models.DateField()
    period_end = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    paid_at = models.DateTimeField(null=True, blank=True)
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, null=True, blank=True)
    payment_reference = models.CharField(max_length=120, null=True, blank=True)
    admin_notes = models.TextField(null=True, blank=True)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="validated_installments",
        null=True,
        blank=True,
    )
    validated_at = models.DateTimeField(null=True, blank=True)
    reminder_count = models.PositiveIntegerField(default=0)
    last_reminder_sent = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "payments"
        ordering = ("due_date", "installment_number")
        constraints = [
            models.UniqueConstraint(
                fields=("schedule", "installment_number"),
                name="uq_payment_installment_number",
            ),
        ]

    def __str__(self):
        return f"Installment {self.installment_number} of schedule {self.schedule_id} - {self.amount_ttc}"
