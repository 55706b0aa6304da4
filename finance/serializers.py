from decimal import Decimal

from common.choices import PaymentMethod
from customer.models import Customer
from rest_framework import serializers

from .models import CustomerPayment, InvoicePaymentAllocation, JournalEntry, JournalEntryLine, SalesInvoice


class OutstandingInvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.company_name", read_only=True)
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    balance = serializers.SerializerMethodField()
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = SalesInvoice
        fields = [
            "id",
            "invoice_number",
            "customer",
            "customer_name",
            "invoice_date",
            "due_date",
            "total_amount",
            "paid_amount",
            "balance",
            "payment_status",
            "is_overdue",
        ]
        read_only_fields = fields

    def get_balance(self, obj) -> str:
        return str(Decimal(obj.total_amount) - Decimal(getattr(obj, "paid_amount", 0) or 0))

    def get_is_overdue(self, obj) -> bool:
        today = self.context.get("today")
        return bool(today and obj.due_date < today and obj.payment_status != SalesInvoice.STATUS_PAID)


class AllocationSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True)

    class Meta:
        model = InvoicePaymentAllocation
        fields = ["invoice", "invoice_number", "allocated_amount"]
        read_only_fields = fields


class CustomerPaymentSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.company_name", read_only=True)
    allocations = AllocationSerializer(many=True, read_only=True)

    class Meta:
        model = CustomerPayment
        fields = [
            "id",
            "payment_number",
            "customer",
            "customer_name",
            "payment_date",
            "amount",
            "payment_method",
            "reference_number",
            "notes",
            "allocations",
            "created_at",
        ]
        read_only_fields = fields


class AllocationInputSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class PaymentCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    payment_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    payment_date = serializers.DateField(required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.BANK_TRANSFER)
    reference_number = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    allocations = AllocationInputSerializer(many=True)

    def validate_allocations(self, value):
        merged = {}
        for row in value:
            if row["amount"] <= 0:
                raise serializers.ValidationError("Allocated amounts must be greater than zero")
            merged[row["invoice_id"]] = merged.get(row["invoice_id"], Decimal("0")) + row["amount"]
        return merged


class JournalEntryLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)
    customer_name = serializers.CharField(source="customer.company_name", read_only=True, default=None)

    class Meta:
        model = JournalEntryLine
        fields = ["line_number", "account_code", "account_name", "description", "debit", "credit", "customer_name"]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    source_module_label = serializers.CharField(source="get_source_module_display", read_only=True)

    class Meta:
        model = JournalEntry
        fields = [
            "id",
            "entry_number",
            "entry_date",
            "source_module",
            "source_module_label",
            "reference_number",
            "description",
            "total_debit",
            "total_credit",
            "is_posted",
        ]
        read_only_fields = fields


class JournalEntryDetailSerializer(JournalEntrySerializer):
    lines = JournalEntryLineSerializer(many=True, read_only=True)

    class Meta(JournalEntrySerializer.Meta):
        fields = JournalEntrySerializer.Meta.fields + ["lines"]
        read_only_fields = fields


class JournalQuerySerializer(serializers.Serializer):
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)
    source_module = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs.get("start") and attrs.get("end") and attrs["start"] > attrs["end"]:
            raise serializers.ValidationError({"start": "Start date must be on or before end date."})
        return attrs
