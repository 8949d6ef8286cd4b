from django.apps import AppConfig


class BordereauxConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "bordereaux"
