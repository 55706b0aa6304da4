"""Django app configuration for inventory."""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """Batch-tracked stock, reservations and FIFO selection."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
