from django.apps import AppConfig


class EomConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.eom"
    verbose_name = "Employee of the Month"
