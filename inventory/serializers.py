"""Serializers for inventory domain.

Read-only serializers for batches, movements, and reservations.
"""

from rest_framework import serializers

from .models import Batch, BatchMovement, BatchReservation
from .services import is_expired


class BatchSerializer(serializers.ModelSerializer):
    """Read-only representation of a batch.

    Exposes computed ``available_stock`` and ``is_expired`` for convenience.
    """

    product_name = serializers.CharField(source="product.product_name", read_only=True)
    available_stock = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    is_expired = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Batch
        fields = [
            "id",
            "product",
            "product_name",
            "batch_number",
            "current_stock",
            "reserved_stock",
            "available_stock",
            "expiry_date",
            "import_date",
            "packaging_details",
            "is_expired",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_expired(self, obj) -> bool:
        return is_expired(obj)


class BatchMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = BatchMovement
        fields = [
            "id",
            "batch",
            "movement_type",
            "quantity",
            "reason",
            "reference",
            "created_at",
        ]
        read_only_fields = fields


class BatchReservationSerializer(serializers.ModelSerializer):
    class Meta:
        model = BatchReservation
        fields = [
            "id",
            "batch",
            "sales_order",
            "quantity",
            "state",
            "created_at",
        ]
        read_only_fields = fields


# EOF
