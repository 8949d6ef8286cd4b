from django.conf import settings
from django.db import models


class Bordereau(models.Model):
    generated_at = models.DateTimeField(auto_now_add=True)
    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="generated_bordereaux",
    )
    period_start = models.DateField()
    period_end = models.DateField()
    filter_criteria = models.JSONField(default=dict, blank=True)
    snapshot_version = models.PositiveSmallIntegerField(default=1)
    csv_data_polices = models.JSONField(default=list, blank=True)
    csv_data_quittances = models.JSONField(default=list, blank=True)
    file_name_polices = models.CharField(max_length=120)
    file_name_quittances = models.CharField(max_length=120)

    class Meta:
        app_label = "bordereaux"
        ordering = ("-generated_at", "-id")

    def __str__(self):
        return f"Bordereau {self.id} ({self.period_start} - {self.period_end})"
