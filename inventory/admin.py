"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import Batch, BatchMovement, BatchReservation


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "product",
        "batch_number",
        "current_stock",
        "reserved_stock",
        "import_date",
        "expiry_date",
        "is_active",
    )
    list_filter = ("is_active",)
    search_fields = ("batch_number", "product__product_name")


@admin.register(BatchMovement)
class BatchMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "batch", "movement_type", "quantity", "reason", "reference", "created_at")
    list_filter = ("movement_type",)
    search_fields = ("batch__batch_number", "reference")


@admin.register(BatchReservation)
class BatchReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "batch", "sales_order", "quantity", "state", "created_at")
    list_filter = ("state",)
    search_fields = ("batch__batch_number",)


# EOF
