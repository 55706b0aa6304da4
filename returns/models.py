"""Material return models.

A return brings goods back against an earlier delivery challan. Stock is
only added back once the return is approved.
"""

from common.choices import ApprovalStatus, ItemCondition, ReturnType
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class MaterialReturn(TimeStampedModel):
    STATUS_PENDING_APPROVAL = ApprovalStatus.PENDING_APPROVAL
    STATUS_APPROVED = ApprovalStatus.APPROVED
    STATUS_REJECTED = ApprovalStatus.REJECTED
    STATUS_CHOICES = ApprovalStatus.choices

    return_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey("customer.Customer", related_name="material_returns", on_delete=models.PROTECT)
    original_challan = models.ForeignKey(
        "dispatch.DeliveryChallan", related_name="material_returns", on_delete=models.PROTECT
    )
    return_date = models.DateField()
    return_type = models.CharField(max_length=24, choices=ReturnType.choices, default=ReturnType.QUALITY_ISSUE)
    return_reason = models.TextField()
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default=STATUS_PENDING_APPROVAL, db_index=True)
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
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.return_number} status={self.status}"


class MaterialReturnItem(TimeStampedModel):
    material_return = models.ForeignKey(MaterialReturn, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="+", on_delete=models.PROTECT)
    batch = models.ForeignKey("inventory.Batch", related_name="return_items", on_delete=models.PROTECT)
    quantity_returned = models.DecimalField(max_digits=14, decimal_places=3)
    original_quantity = models.DecimalField(max_digits=14, decimal_places=3)
    condition = models.CharField(max_length=16, choices=ItemCondition.choices, default=ItemCondition.GOOD)
    notes = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="return_item_positive_qty", check=models.Q(quantity_returned__gt=0)),
            models.CheckConstraint(
                name="return_item_le_original",
                check=models.Q(quantity_returned__lte=models.F("original_quantity")),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"ReturnItem#{self.id} batch={self.batch_id} qty={self.quantity_returned}"
