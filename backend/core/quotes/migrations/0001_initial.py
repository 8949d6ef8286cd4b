# Generated manually. Keep in sync with quotes/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("code", models.CharField(max_length=40, unique=True)),
                ("product_type", models.CharField(default="RCD", max_length=40)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="Quote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=40, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Brouillon"),
                            ("INCOMPLETE", "Incomplet"),
                            ("SUBMITTED", "Soumis"),
                            ("IN_PROGRESS", "En cours"),
                            ("COMPLEMENT_REQUIRED", "Complément requis"),
                            ("OFFER_READY", "Offre prête"),
                            ("OFFER_SENT", "Offre envoyée"),
                            ("ACCEPTED", "Accepté"),
                            ("REJECTED", "Rejeté"),
                            ("EXPIRED", "Expiré"),
                        ],
                        default="DRAFT",
                        max_length=30,
                    ),
                ),
                ("form_data", models.JSONField(blank=True, default=dict)),
                ("company_data", models.JSONField(blank=True, default=dict)),
                ("calculated_premium", models.JSONField(blank=True, null=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("broker", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to=settings.AUTH_USER_MODEL)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to="quotes.product")),
            ],
            options={
                "ordering": ("-created_at",),
            },
        ),
        migrations.CreateModel(
            name="InsuranceContract",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=40, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("ACTIVE", "Actif"),
                            ("SUSPENDED", "Suspendu"),
                            ("EXPIRED", "Expiré"),
                            ("CANCELLED", "Résilié"),
                            ("PENDING_RENEWAL", "En attente de renouvellement"),
                        ],
                        default="ACTIVE",
                        max_length=30,
                    ),
                ),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("annual_premium", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("broker", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="contracts", to=settings.AUTH_USER_MODEL)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="contracts", to="quotes.product")),
                ("quote", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="contract", to="quotes.quote")),
            ],
            options={
                "ordering": ("-start_date",),
            },
        ),
    ]
