from django.conf import settings
from django.db import models


class Product(models.Model):
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=40, unique=True)
    product_type = models.CharField(max_length=40, default="RCD")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "quotes"
        ordering = ("name",)

    def __str__(self):
        return f"{self.code} - {self.name}"


class Quote(models.Model):
    STATUS_DRAFT = "DRAFT"
    STATUS_INCOMPLETE = "INCOMPLETE"
    STATUS_SUBMITTED = "SUBMITTED"
    STATUS_IN_PROGRESS = "IN_PROGRESS"
    STATUS_COMPLEMENT_REQUIRED = "COMPLEMENT_REQUIRED"
    STATUS_OFFER_READY = "OFFER_READY"
    STATUS_OFFER_SENT = "OFFER_SENT"
    STATUS_ACCEPTED = "ACCEPTED"
    STATUS_REJECTED = "REJECTED"
    STATUS_EXPIRED = "EXPIRED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Brouillon"),
        (STATUS_INCOMPLETE, "Incomplet"),
        (STATUS_SUBMITTED, "Soumis"),
        (STATUS_IN_PROGRESS, "En cours"),
        (STATUS_COMPLEMENT_REQUIRED, "Complément requis"),
        (STATUS_OFFER_READY, "Offre prête"),
        (STATUS_OFFER_SENT, "Offre envoyée"),
        (STATUS_ACCEPTED, "Accepté"),
        (STATUS_REJECTED, "Rejeté"),
        (STATUS_EXPIRED, "Expiré"),
    ]

    reference = models.CharField(max_length=40, unique=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    broker = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="quotes",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="quotes",
    )
    form_data = models.JSONField(default=dict, blank=True)
    company_data = models.JSONField(default=dict, blank=True)
    calculated_premium = models.JSONField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "quotes"
        ordering = ("-created_at",)

    def __str__(self):
        return f"Quote {self.reference} ({self.status})"


class InsuranceContract(models.Model):
    STATUS_ACTIVE = "ACTIVE"
    STATUS_SUSPENDED = "SUSPENDED"
    STATUS_EXPIRED = "EXPIRED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_PENDING_RENEWAL = "PENDING_RENEWAL"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Actif"),
        (STATUS_SUSPENDED, "Suspendu"),
        (STATUS_EXPIRED, "Expiré"),
        (STATUS_CANCELLED, "Résilié"),
        (STATUS_PENDING_RENEWAL, "En attente de renouvellement"),
    ]

    quote = models.OneToOneField(
        Quote,
        on_delete=models.PROTECT,
        related_name="contract",
    )
    broker = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="contracts",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="contracts",
    )
    reference = models.CharField(max_length=40, unique=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    start_date = models.DateField()
    end_date = models.DateField()
    annual_premium = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "quotes"
        ordering = ("-start_date",)

    def __str__(self):
        return f"Contract {self.reference} ({self.status})"
