from django.contrib import admin

from bordereaux.models import Bordereau


@admin.register(Bordereau)
class BordereauAdmin(admin.ModelAdmin):
    list_display = ("id", "generated_at", "generated_by", "period_start", "period_end", "snapshot_version")
    list_filter = ("snapshot_version",)
    readonly_fields = ("csv_data_polices", "csv_data_quittances", "filter_criteria")
