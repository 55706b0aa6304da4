"""Serializers for the catalog app."""

from rest_framework import serializers

from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    total_stock = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True, required=False)

    class Meta:
        model = Product
        fields = [
            "id",
            "product_name",
            "product_code",
            "hsn_code",
            "category",
            "unit",
            "packaging_type",
            "default_supplier",
            "description",
            "min_stock_level",
            "is_active",
            "total_stock",
            "created_at",
        ]
        read_only_fields = ["id", "is_active", "total_stock", "created_at"]
