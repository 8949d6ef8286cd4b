# Generated manually. Keep in sync with bordereaux/models.py.

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
            name="Bordereau",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("generated_at", models.DateTimeField(auto_now_add=True)),
                ("period_start", models.DateField()),
                ("period_end", models.DateField()),
                ("filter_criteria", models.JSONField(blank=True, default=dict)),
                ("snapshot_version", models.PositiveSmallIntegerField(default=1)),
                ("csv_data_polices", models.JSONField(blank=True, default=list)),
                ("csv_data_quittances", models.JSONField(blank=True, default=list)),
                ("file_name_polices", models.CharField(max_length=120)),
                ("file_name_quittances", models.CharField(max_length=120)),
                (
                    "generated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="generated_bordereaux",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-generated_at", "-id"),
            },
        ),
    ]
