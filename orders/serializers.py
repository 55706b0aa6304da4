"""DRF serializers for sales orders."""

from decimal import Decimal

from catalog.models import Product
from customer.models import Customer
from rest_framework import serializers

from .models import SalesOrder, SalesOrderItem


class SalesOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.product_name", read_only=True)
    pending_quantity = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)

    class Meta:
        model = SalesOrderItem
        fields = ["id", "product", "product_name", "quantity", "delivered_quantity", "pending_quantity"]
        read_only_fields = ["id", "product_name", "delivered_quantity", "pending_quantity"]


class SalesOrderSerializer(serializers.ModelSerializer):
    items = SalesOrderItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source="customer.company_name", read_only=True)

    class Meta:
        model = SalesOrder
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_name",
            "order_date",
            "status",
            "notes",
            "is_archived",
            "archive_reason",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class SalesOrderLineInputSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_active=True))
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))


class SalesOrderCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.filter(is_active=True))
    order_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    reserve = serializers.BooleanField(required=False, default=True)
    items = SalesOrderLineInputSerializer(many=True, allow_empty=False)
