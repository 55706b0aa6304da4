from decimal import Decimal

from common.choices import SalesOrderStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SalesOrder(TimeStampedModel):
    """Customer sales order fulfilled by one or more delivery challans.

    Fully delivered orders are archived with the reason recorded.
    """

    STATUS_PENDING_DELIVERY = SalesOrderStatus.PENDING_DELIVERY
    STATUS_PARTIALLY_DELIVERED = SalesOrderStatus.PARTIALLY_DELIVERED
    STATUS_DELIVERED = SalesOrderStatus.DELIVERED
    STATUS_CANCELLED = SalesOrderStatus.CANCELLED
    STATUS_CHOICES = SalesOrderStatus.choices

    order_number = models.CharField(max_length=32, unique=True, null=True, blank=True, db_index=True)
    customer = models.ForeignKey("customer.Customer", related_name="sales_orders", on_delete=models.PROTECT)
    order_date = models.DateField()
    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default=STATUS_PENDING_DELIVERY, db_index=True)
    notes = models.TextField(blank=True)
    is_archived = models.BooleanField(default=False)
    archived_at = models.DateTimeField(null=True, blank=True)
    archived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )
    archive_reason = models.CharField(max_length=255, null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["-order_date", "-id"]
        indexes = [
            models.Index(fields=["customer", "status"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"SalesOrder#{self.id} customer={self.customer_id} status={self.status}"


class SalesOrderItem(TimeStampedModel):
    order = models.ForeignKey(SalesOrder, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="sales_order_items", on_delete=models.PROTECT)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    delivered_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="sales_order_item_positive_qty", check=models.Q(quantity__gt=0)),
            models.CheckConstraint(
                name="sales_order_item_delivered_non_negative", check=models.Q(delivered_quantity__gte=0)
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"SalesOrderItem#{self.id} order={self.order_id} product={self.product_id} qty={self.quantity}"

    @property
    def pending_quantity(self) -> Decimal:
        return max(Decimal("0"), Decimal(self.quantity) - Decimal(self.delivered_quantity))
