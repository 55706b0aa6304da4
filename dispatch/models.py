"""Delivery challan (dispatch document) models.

A challan records goods physically shipped to a customer. Each line item
points at the batch the goods were picked from.
"""

from common.choices import ApprovalStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class DeliveryChallan(TimeStampedModel):
    STATUS_PENDING_APPROVAL = ApprovalStatus.PENDING_APPROVAL
    STATUS_APPROVED = ApprovalStatus.APPROVED
    STATUS_REJECTED = ApprovalStatus.REJECTED
    STATUS_CHOICES = ApprovalStatus.choices

    challan_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey("customer.Customer", related_name="delivery_challans", on_delete=models.PROTECT)
    sales_order = models.ForeignKey(
        "orders.SalesOrder", null=True, blank=True, related_name="delivery_challans", on_delete=models.SET_NULL
    )
    challan_date = models.DateField()
    delivery_address = models.CharField(max_length=255, blank=True)
    vehicle_number = models.CharField(max_length=32, null=True, blank=True)
    driver_name = models.CharField(max_length=120, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    approval_status = models.CharField(
        max_length=24, choices=STATUS_CHOICES, default=STATUS_PENDING_APPROVAL, db_index=True
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["-challan_date", "-id"]
        indexes = [
            models.Index(fields=["customer", "challan_date"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.challan_number} status={self.approval_status}"


class DeliveryChallanItem(TimeStampedModel):
    challan = models.ForeignKey(DeliveryChallan, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="challan_items", on_delete=models.PROTECT)
    batch = models.ForeignKey("inventory.Batch", related_name="challan_items", on_delete=models.PROTECT)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    pack_size = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    pack_type = models.CharField(max_length=32, null=True, blank=True)
    number_of_packs = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="challan_item_positive_qty", check=models.Q(quantity__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"ChallanItem#{self.id} challan={self.challan_id} batch={self.batch_id} qty={self.quantity}"
