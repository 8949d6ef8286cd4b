from django.contrib import admin

from payments.models import PaymentInstallment, PaymentSchedule


class PaymentInstallmentInline(admin.TabularInline):
    model = PaymentInstallment
    extra = 0
    fields = ("installment_number", "due_date", "amount_ht", "amount_ttc", "status", "paid_at")
    readonly_fields = ("paid_at",)


@admin.register(PaymentSchedule)
class PaymentScheduleAdmin(admin.ModelAdmin):
    list_display = ("id", "quote", "status", "total_amount_ttc", "start_date", "end_date")
    list_filter = ("status",)
    search_fields = ("quote__reference",)
    inlines = [PaymentInstallmentInline]


@admin.register(PaymentInstallment)
class PaymentInstallmentAdmin(admin.ModelAdmin):
    list_display = ("id", "schedule", "installment_number", "due_date", "amount_ttc", "status")
    list_filter = ("status", "payment_method")
    search_fields = ("schedule__quote__reference", "payment_reference")
