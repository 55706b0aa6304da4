"""Serializers for delivery challans."""

from decimal import Decimal

from customer.models import Customer
from orders.models import SalesOrder
from rest_framework import serializers

from .models import DeliveryChallan, DeliveryChallanItem


class DeliveryChallanItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.product_name", read_only=True)
    product_code = serializers.CharField(source="product.product_code", read_only=True)
    unit = serializers.CharField(source="product.unit", read_only=True)
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True)
    expiry_date = serializers.DateField(source="batch.expiry_date", read_only=True)

    class Meta:
        model = DeliveryChallanItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_code",
            "unit",
            "batch",
            "batch_number",
            "expiry_date",
            "quantity",
            "pack_size",
            "pack_type",
            "number_of_packs",
        ]
        read_only_fields = fields


class DeliveryChallanSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.company_name", read_only=True)
    sales_order_number = serializers.CharField(source="sales_order.order_number", read_only=True, default=None)
    items = DeliveryChallanItemSerializer(many=True, read_only=True)

    class Meta:
        model = DeliveryChallan
        fields = [
            "id",
            "challan_number",
            "customer",
            "customer_name",
            "sales_order",
            "sales_order_number",
            "challan_date",
            "delivery_address",
            "vehicle_number",
            "driver_name",
            "notes",
            "approval_status",
            "approved_at",
            "rejected_at",
            "rejection_reason",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class ChallanLineInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    batch_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    pack_size = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, allow_null=True)
    pack_type = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    number_of_packs = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class ChallanHeaderInputSerializer(serializers.Serializer):
    challan_date = serializers.DateField()
    delivery_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    vehicle_number = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    driver_name = serializers.CharField(max_length=120, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = ChallanLineInputSerializer(many=True, allow_empty=False)


class ChallanCreateSerializer(ChallanHeaderInputSerializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.filter(is_active=True))
    sales_order = serializers.PrimaryKeyRelatedField(queryset=SalesOrder.objects.all(), required=False, allow_null=True)


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True)
