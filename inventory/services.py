"""Inventory services: FIFO batch selection and transactional stock movements."""

import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from common.errors import DomainError
from django.db import transaction
from django.utils import timezone

from .models import Batch, BatchMovement, BatchReservation

logger = logging.getLogger("pharmadist.inventory")

_PACKAGING = re.compile(r"(\d+)\s+(\w+?)s?\s+x\s+(\d+(?:\.\d+)?)\s*kg", re.IGNORECASE)


class MovementError(DomainError):
    pass


@dataclass(frozen=True)
class PackInfo:
    number_of_packs: int
    pack_type: str
    pack_size: Decimal

    @property
    def quantity(self) -> Decimal:
        return self.pack_size * self.number_of_packs


def parse_packaging_details(text: Optional[str]) -> Optional[PackInfo]:
    """Parse strings such as ``"10 drums x 25kg"``; returns None when unrecognised."""
    if not text:
        return None
    match = _PACKAGING.search(text)
    if not match:
        return None
    return PackInfo(
        number_of_packs=int(match.group(1)),
        pack_type=match.group(2).lower(),
        pack_size=Decimal(match.group(3)),
    )


# FIFO selection


def _available(batch) -> Decimal:
    return Decimal(batch.current_stock) - Decimal(getattr(batch, "reserved_stock", 0) or 0)


def is_expired(batch, today: Optional[date] = None) -> bool:
    if batch.expiry_date is None:
        return False
    return batch.expiry_date < (today or timezone.localdate())


def is_fifo_eligible(batch, product_id, today: Optional[date] = None) -> bool:
    return batch.product_id == product_id and not is_expired(batch, today) and _available(batch) > 0


def select_fifo_batch(batches: Iterable, product_id, today: Optional[date] = None):
    """Return the oldest eligible batch for ``product_id`` or None.

    Eligible batches belong to the product, are not expired (expiry on or after
    ``today``, or no expiry) and have available stock. Oldest means earliest
    ``import_date``; ties go to the lowest id and undated batches sort last.
    Pure: the snapshot is not modified.
    """
    today = today or timezone.localdate()
    eligible = [b for b in batches if is_fifo_eligible(b, product_id, today)]
    if not eligible:
        return None
    return min(eligible, key=lambda b: (b.import_date is None, b.import_date or date.max, b.id))


def fifo_batch_for_product(product_id, today: Optional[date] = None) -> Optional[Batch]:
    """FIFO selection over the live active batches of a product."""
    snapshot = Batch.objects.filter(product_id=product_id, is_active=True, current_stock__gt=0)
    return select_fifo_batch(snapshot, product_id, today)


def suggest_line_items_for_order(order, today: Optional[date] = None) -> list[dict]:
    """Pre-fill challan lines for a sales order from FIFO batches.

    Lines without an eligible batch come back with ``batch_id=None`` so the
    caller can tell the user which product has no stock.
    """
    today = today or timezone.localdate()
    product_ids = {item.product_id for item in order.items.all()}
    snapshot = list(Batch.objects.filter(product_id__in=product_ids, is_active=True, current_stock__gt=0))
    lines = []
    for item in order.items.all():
        remaining = Decimal(item.quantity) - Decimal(item.delivered_quantity)
        if remaining <= 0:
            continue
        batch = select_fifo_batch(snapshot, item.product_id, today)
        pack = parse_packaging_details(batch.packaging_details) if batch else None
        lines.append(
            {
                "product_id": item.product_id,
                "batch_id": batch.id if batch else None,
                "quantity": remaining,
                "pack_size": pack.pack_size if pack else None,
                "pack_type": pack.pack_type if pack else None,
                "number_of_packs": pack.number_of_packs if pack else (1 if batch else None),
            }
        )
    return lines


# Stock movements


@transaction.atomic
def adjust_batch_stock(
    *,
    batch_id: int,
    adjustment: Decimal,
    movement_type: Optional[str] = None,
    reason: str = "",
    reference: str = "",
) -> Optional[BatchMovement]:
    """Apply a signed adjustment to a batch's current stock.

    adjustment: positive returns stock to the batch, negative consumes it.
    Stock may never drop below what is reserved on the batch.
    """
    adjustment = Decimal(adjustment)
    if adjustment == 0:
        return None
    try:
        batch = Batch.objects.select_for_update().get(id=batch_id)
    except Batch.DoesNotExist:
        raise MovementError("Batch not found")

    new_stock = Decimal(batch.current_stock) + adjustment
    if new_stock < Decimal(batch.reserved_stock):
        raise MovementError(
            f"Insufficient stock in batch {batch.batch_number}: "
            f"available {batch.available_stock}, requested {abs(adjustment)}"
        )
    batch.current_stock = new_stock
    batch.save(update_fields=["current_stock", "updated_at"])

    if movement_type is None:
        movement_type = BatchMovement.TYPE_INBOUND if adjustment > 0 else BatchMovement.TYPE_OUTBOUND
    movement = BatchMovement.objects.create(
        batch=batch,
        movement_type=movement_type,
        quantity=adjustment,
        reason=reason,
        reference=reference,
    )
    logger.info(
        "inventory.stock_adjusted",
        extra={
            "event": "inventory.stock_adjusted",
            "batch_id": batch.id,
            "adjustment": str(adjustment),
            "current_stock": str(batch.current_stock),
            "reference": reference,
        },
    )
    return movement


@transaction.atomic
def create_reservation(*, batch_id: int, quantity: Decimal, sales_order=None) -> BatchReservation:
    quantity = Decimal(quantity)
    if quantity <= 0:
        raise MovementError("Reservation quantity must be positive")
    try:
        batch = Batch.objects.select_for_update().get(id=batch_id)
    except Batch.DoesNotExist:
        raise MovementError("Batch not found")
    if quantity > batch.available_stock:
        raise MovementError("Insufficient available quantity to reserve")
    batch.reserved_stock = Decimal(batch.reserved_stock) + quantity
    batch.save(update_fields=["reserved_stock", "updated_at"])
    return BatchReservation.objects.create(
        batch=batch,
        sales_order=sales_order,
        quantity=quantity,
        state=BatchReservation.STATE_ACTIVE,
    )


@transaction.atomic
def release_reservation(*, reservation_id: int) -> None:
    try:
        res = BatchReservation.objects.select_for_update().get(id=reservation_id)
    except BatchReservation.DoesNotExist:
        return
    if res.state != BatchReservation.STATE_ACTIVE:
        return
    batch = Batch.objects.select_for_update().get(id=res.batch_id)
    batch.reserved_stock = max(Decimal("0"), Decimal(batch.reserved_stock) - Decimal(res.quantity))
    batch.save(update_fields=["reserved_stock", "updated_at"])
    res.state = BatchReservation.STATE_RELEASED
    res.save(update_fields=["state", "updated_at"])


@transaction.atomic
def deduct_stock_and_release_reservation(
    *, sales_order, batch_id: int, product_id: int, quantity: Decimal, reference: str = ""
) -> Optional[BatchMovement]:
    """Release up to ``quantity`` of the order's holds on the product, then deduct the batch.

    Reservations are consumed oldest first and may sit on other batches of the
    same product; a partially consumed reservation stays active with the rest.
    """
    quantity = Decimal(quantity)
    remaining = quantity
    reservations = BatchReservation.objects.select_for_update().filter(
        sales_order=sales_order,
        batch__product_id=product_id,
        state=BatchReservation.STATE_ACTIVE,
    ).order_by("id")
    for res in reservations:
        if remaining <= 0:
            break
        take = min(remaining, Decimal(res.quantity))
        held = Batch.objects.select_for_update().get(id=res.batch_id)
        held.reserved_stock = max(Decimal("0"), Decimal(held.reserved_stock) - take)
        held.save(update_fields=["reserved_stock", "updated_at"])
        if take == Decimal(res.quantity):
            res.state = BatchReservation.STATE_CONVERTED
            res.save(update_fields=["state", "updated_at"])
        else:
            res.quantity = Decimal(res.quantity) - take
            res.save(update_fields=["quantity", "updated_at"])
        remaining -= take

    return adjust_batch_stock(
        batch_id=batch_id,
        adjustment=-quantity,
        movement_type=BatchMovement.TYPE_OUTBOUND,
        reason="dispatch",
        reference=reference,
    )


# EOF
