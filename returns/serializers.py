from decimal import Decimal

from common.choices import ItemCondition, ReturnType
from customer.models import Customer
from dispatch.models import DeliveryChallan
from rest_framework import serializers

from .models import MaterialReturn, MaterialReturnItem


class MaterialReturnItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.product_name", read_only=True)
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True)

    class Meta:
        model = MaterialReturnItem
        fields = [
            "id",
            "product",
            "product_name",
            "batch",
            "batch_number",
            "quantity_returned",
            "original_quantity",
            "condition",
            "notes",
        ]
        read_only_fields = fields


class MaterialReturnSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.company_name", read_only=True)
    challan_number = serializers.CharField(source="original_challan.challan_number", read_only=True)
    items = MaterialReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = MaterialReturn
        fields = [
            "id",
            "return_number",
            "customer",
            "customer_name",
            "original_challan",
            "challan_number",
            "return_date",
            "return_type",
            "return_reason",
            "notes",
            "status",
            "approved_at",
            "rejected_at",
            "rejection_reason",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class ReturnLineInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    batch_id = serializers.IntegerField()
    quantity_returned = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0"))
    condition = serializers.ChoiceField(choices=ItemCondition.choices, default=ItemCondition.GOOD)
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ReturnCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    original_challan = serializers.PrimaryKeyRelatedField(queryset=DeliveryChallan.objects.all())
    return_date = serializers.DateField()
    return_type = serializers.ChoiceField(choices=ReturnType.choices, default=ReturnType.QUALITY_ISSUE)
    return_reason = serializers.CharField(allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = ReturnLineInputSerializer(many=True)


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True)
