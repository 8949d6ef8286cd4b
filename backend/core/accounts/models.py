from django.conf import settings
from django.db import models

from accounts import rbac


class UserProfile(models.Model):
    ROLE_ADMIN = rbac.ROLE_ADMIN
    ROLE_BROKER = rbac.ROLE_BROKER
    ROLE_INSURER = rbac.ROLE_INSURER
    ROLE_CHOICES = [
        (ROLE_ADMIN, "Administrateur"),
        (ROLE_BROKER, "Courtier"),
        (ROLE_INSURER, "Assureur"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_BROKER)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "accounts"

    def __str__(self):
        return f"{self.user} ({self.role})"


class BrokerProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="broker_profile",
    )
    code = models.CharField(max_length=40, unique=True)
    company_name = models.CharField(max_length=255, blank=True)
    siret = models.CharField(max_length=14, blank=True)
    phone = models.CharField(max_length=40, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "accounts"
        ordering = ("code",)

    def __str__(self):
        return f"{self.code} - {self.company_name or self.user}"


class Notification(models.Model):
    TYPE_PAYMENT_DUE = "PAYMENT_DUE"
    TYPE_QUOTE_UPDATE = "QUOTE_UPDATE"
    TYPE_SYSTEM = "SYSTEM"
    TYPE_CHOICES = [
        (TYPE_PAYMENT_DUE, "Paiement"),
        (TYPE_QUOTE_UPDATE, "Devis"),
        (TYPE_SYSTEM, "Système"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default=TYPE_SYSTEM)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    related_entity_type = models.CharField(max_length=40, blank=True)
    related_entity_id = models.CharField(max_length=64, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "accounts"
        ordering = ("-created_at",)

    def __str__(self):
        return f"Notification {self.id} - {self.title}"
