from django.apps import AppConfig


class FiscalAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fiscal"
    verbose_name = "Fiscal documents"
