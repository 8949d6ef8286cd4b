from django.apps import AppConfig


class TariffConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tariff"
