from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Sales orders and their delivery bookkeeping."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
