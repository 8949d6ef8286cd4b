from django.contrib import admin

from quotes.models import InsuranceContract, Product, Quote


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "product_type", "is_active")
    search_fields = ("code", "name")


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ("reference", "status", "broker", "product", "created_at")
    list_filter = ("status", "product")
    search_fields = ("reference", "broker__username")
    readonly_fields = ("created_at", "updated_at")


@admin.register(InsuranceContract)
class InsuranceContractAdmin(admin.ModelAdmin):
    list_display = ("reference", "status", "broker", "start_date", "end_date")
    list_filter = ("status",)
    search_fields = ("reference", "quote__reference")
