from django.apps import AppConfig


class DispatchConfig(AppConfig):
    """Delivery challans and the stock they move."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "dispatch"
