from django.apps import AppConfig


class SociosConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "socios"
    verbose_name = "Socios"
