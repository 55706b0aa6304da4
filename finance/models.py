"""Receivables and general-ledger models.

An invoice's paid amount is always the sum of its allocation rows; the
``payment_status`` column is a cached copy refreshed whenever allocations
are written.
"""

from decimal import Decimal

from common.choices import PaymentMethod, PaymentStatus, SourceModule
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SalesInvoice(TimeStampedModel):
    STATUS_PENDING = PaymentStatus.PENDING
    STATUS_PARTIAL = PaymentStatus.PARTIAL
    STATUS_PAID = PaymentStatus.PAID
    STATUS_CHOICES = PaymentStatus.choices

    invoice_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey("customer.Customer", related_name="invoices", on_delete=models.PROTECT)
    delivery_challan = models.ForeignKey(
        "dispatch.DeliveryChallan", null=True, blank=True, related_name="invoices", on_delete=models.SET_NULL
    )
    invoice_date = models.DateField()
    due_date = models.DateField()
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["due_date", "id"]
        constraints = [
            models.CheckConstraint(name="invoice_total_positive", check=models.Q(total_amount__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.invoice_number} {self.payment_status}"


class SalesInvoiceItem(TimeStampedModel):
    invoice = models.ForeignKey(SalesInvoice, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="invoice_items", on_delete=models.PROTECT)
    batch = models.ForeignKey(
        "inventory.Batch", null=True, blank=True, related_name="invoice_items", on_delete=models.PROTECT
    )
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(self.unit_price)


class CustomerPayment(TimeStampedModel):
    payment_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey("customer.Customer", related_name="payments", on_delete=models.PROTECT)
    payment_date = models.DateField()
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=24, choices=PaymentMethod.choices, default=PaymentMethod.BANK_TRANSFER)
    reference_number = models.CharField(max_length=64, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.CheckConstraint(name="payment_amount_positive", check=models.Q(amount__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.payment_number} {self.amount}"


class InvoicePaymentAllocation(TimeStampedModel):
    payment = models.ForeignKey(CustomerPayment, related_name="allocations", on_delete=models.CASCADE)
    invoice = models.ForeignKey(SalesInvoice, related_name="allocations", on_delete=models.PROTECT)
    allocated_amount = models.DecimalField(max_digits=14, decimal_places=2)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="allocation_amount_positive", check=models.Q(allocated_amount__gt=0)),
        ]


class ChartOfAccount(TimeStampedModel):
    code = models.CharField(max_length=16, unique=True)
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} {self.name}"


class JournalEntry(TimeStampedModel):
    entry_number = models.CharField(max_length=32, unique=True)
    entry_date = models.DateField(db_index=True)
    source_module = models.CharField(max_length=32, choices=SourceModule.choices, default=SourceModule.MANUAL)
    reference_number = models.CharField(max_length=64, null=True, blank=True)
    description = models.TextField(blank=True)
    total_debit = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_credit = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    is_posted = models.BooleanField(default=True)

    class Meta:
        ordering = ["-entry_date", "-entry_number"]
        verbose_name_plural = "journal entries"

    def __str__(self) -> str:  # pragma: no cover
        return self.entry_number


class JournalEntryLine(models.Model):
    entry = models.ForeignKey(JournalEntry, related_name="lines", on_delete=models.CASCADE)
    line_number = models.PositiveIntegerField()
    account = models.ForeignKey(ChartOfAccount, related_name="journal_lines", on_delete=models.PROTECT)
    description = models.CharField(max_length=255, blank=True)
    debit = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    credit = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    customer = models.ForeignKey(
        "customer.Customer", null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["line_number"]


class IdempotencyKey(TimeStampedModel):
    """Stores idempotent request results to prevent duplicate processing."""

    key = models.CharField(max_length=128)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
