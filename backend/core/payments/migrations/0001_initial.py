# Generated manually. Keep in sync with payments/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("quotes", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentSchedule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount_ht", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("total_tax_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("total_amount_ttc", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("PENDING", "En attente"), ("PARTIALLY_PAID", "Partiellement payé"), ("PAID", "Payé"), ("CANCELLED", "Annulé")], default="PENDING", max_length=20)),
                ("resiliation_date", models.DateField(blank=True, null=True)),
                ("resiliation_reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("quote", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="payment_schedule", to="quotes.quote")),
            ],
            options={
                "ordering": ("-start_date",),
            },
        ),
        migrations.CreateModel(
            name="PaymentInstallment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("installment_number", models.PositiveSmallIntegerField()),
                ("due_date", models.DateField()),
                ("amount_ht", models.DecimalField(decimal_places=2, max_digits=14)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("amount_ttc", models.DecimalField(decimal_places=2, max_digits=14)),
                ("rcd_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("pj_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("fees_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("resume_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("period_start", models.DateField()),
                ("period_end", models.DateField()),
                ("status", models.CharField(choices=[("PENDING", "En attente"), ("OVERDUE", "En retard"), ("PAID", "Payé"), ("PARTIALLY_PAID", "Partiellement payé"), ("CANCELLED", "Annulé")], default="PENDING", max_length=20)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("paid_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("payment_method", models.CharField(blank=True, choices=[("CASH", "Espèces"), ("CHECK", "Chèque"), ("BANK_TRANSFER", "Virement"), ("CARD", "Carte"), ("SEPA_DEBIT", "Prélèvement SEPA"), ("OTHER", "Autre")], max_length=20, null=True)),
                ("payment_reference", models.CharField(blank=True, max_length=120, null=True)),
                ("admin_notes", models.TextField(blank=True, null=True)),
                ("validated_at", models.DateTimeField(blank=True, null=True)),
                ("reminder_count", models.PositiveIntegerField(default=0)),
                ("last_reminder_sent", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("schedule", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="installments", to="payments.paymentschedule")),
                ("validated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="validated_installments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("due_date", "installment_number"),
            },
        ),
        migrations.AddConstraint(
            model_name="paymentinstallment",
            constraint=models.UniqueConstraint(fields=("schedule", "installment_number"), name="uq_payment_installment_number"),
        ),
    ]
