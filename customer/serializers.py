"""Serializers for customers."""

from rest_framework import serializers

from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    delivery_address = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id",
            "company_name",
            "address",
            "city",
            "phone",
            "pbf_license",
            "is_active",
            "delivery_address",
        ]
        read_only_fields = ["id", "delivery_address"]

    def validate_company_name(self, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Company name is required.")
        return value
