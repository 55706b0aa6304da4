"""Inventory models (batch-tracked, single-location).

Stock is held per product batch. A batch is created on goods receipt,
mutated by every dispatch and return, and never deleted while a document
references it.
"""

from decimal import Decimal

from common.choices import MovementType, ReservationState
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Batch(TimeStampedModel):
    product = models.ForeignKey("catalog.Product", related_name="batches", on_delete=models.PROTECT)
    batch_number = models.CharField(max_length=64)
    current_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    reserved_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    expiry_date = models.DateField(null=True, blank=True)
    import_date = models.DateField(null=True, blank=True)
    # Free text such as "10 drums x 25kg"
    packaging_details = models.CharField(max_length=120, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["import_date", "id"]
        constraints = [
            models.CheckConstraint(name="batch_stock_non_negative", check=models.Q(current_stock__gte=0)),
            models.CheckConstraint(name="batch_reserved_non_negative", check=models.Q(reserved_stock__gte=0)),
            models.CheckConstraint(
                name="batch_reserved_le_stock",
                check=models.Q(reserved_stock__lte=models.F("current_stock")),
            ),
            models.UniqueConstraint(fields=["product", "batch_number"], name="unique_batch_number_per_product"),
        ]
        indexes = [
            models.Index(fields=["product", "import_date"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Batch<{self.batch_number}> stock={self.current_stock} reserved={self.reserved_stock}"

    @property
    def available_stock(self) -> Decimal:
        return Decimal(self.current_stock) - Decimal(self.reserved_stock)


class BatchMovement(TimeStampedModel):
    """Inventory transaction: one signed change to a batch's stock."""

    TYPE_INBOUND = MovementType.INBOUND
    TYPE_OUTBOUND = MovementType.OUTBOUND
    TYPE_ADJUST = MovementType.ADJUST
    TYPE_RETURN = MovementType.RETURN
    TYPE_CHOICES = MovementType.choices

    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name="movements")
    movement_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)  # signed: +inbound, -outbound
    reason = models.CharField(max_length=200, blank=True)
    reference = models.CharField(max_length=120, blank=True)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="batch_movement_non_zero", check=~models.Q(quantity=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.movement_type} {self.quantity} for {self.batch_id}"


class BatchReservation(TimeStampedModel):
    """Soft hold of batch stock against a sales order."""

    STATE_ACTIVE = ReservationState.ACTIVE
    STATE_RELEASED = ReservationState.RELEASED
    STATE_CONVERTED = ReservationState.CONVERTED
    STATE_CHOICES = ReservationState.choices

    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name="reservations")
    sales_order = models.ForeignKey(
        "orders.SalesOrder", null=True, blank=True, related_name="reservations", on_delete=models.CASCADE
    )
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_ACTIVE)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="batch_reservation_positive_qty", check=models.Q(quantity__gt=0)),
        ]
        indexes = [
            models.Index(fields=["sales_order", "state"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Reservation<{self.batch_id}> qty={self.quantity} state={self.state}"


# EOF
