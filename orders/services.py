"""Sales order services: creation with stock reservations and delivery bookkeeping."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping

from common.errors import DomainError
from common.numbering import financial_year_code, next_document_number
from django.db import transaction
from django.utils import timezone
from inventory.models import Batch, BatchReservation
from inventory.services import create_reservation, is_fifo_eligible, release_reservation

from .models import SalesOrder, SalesOrderItem

logger = logging.getLogger("pharmadist.orders")

FULLY_DELIVERED_REASON = "Delivery Challan created and all items delivered"


class SalesOrderError(DomainError):
    pass


def _log_status_change(order: SalesOrder, prev: str) -> None:
    try:
        logger.info(
            "order_status_changed",
            extra={
                "event": "order_status_changed",
                "sales_order_id": order.id,
                "status_from": prev,
                "status_to": order.status,
            },
        )
    except Exception:
        pass


def generate_order_number() -> str:
    year_code = financial_year_code()
    existing = SalesOrder.objects.filter(order_number__startswith=f"SO-{year_code}").values_list(
        "order_number", flat=True
    )
    return next_document_number(existing, "SO", year_code)


@transaction.atomic
def reserve_order_stock(order: SalesOrder) -> list[BatchReservation]:
    """Hold stock for every order line on FIFO batches, oldest first.

    A line may be spread across several batches. Raises MovementError when
    the product does not have enough available stock; nothing is held then.
    """
    today = timezone.localdate()
    reservations = []
    for item in order.items.select_related("product"):
        needed = Decimal(item.quantity)
        batches = [
            b
            for b in Batch.objects.select_for_update()
            .filter(product_id=item.product_id, is_active=True)
            .order_by("import_date", "id")
            if is_fifo_eligible(b, item.product_id, today)
        ]
        for batch in batches:
            if needed <= 0:
                break
            take = min(needed, batch.available_stock)
            reservations.append(create_reservation(batch_id=batch.id, quantity=take, sales_order=order))
            needed -= take
        if needed > 0:
            raise SalesOrderError(f"Insufficient stock to reserve {item.quantity} of {item.product.product_name}")
    return reservations


@transaction.atomic
def create_sales_order(*, customer, order_date, items: Iterable[Mapping], user=None, notes: str = "", reserve=True):
    items = list(items)
    if not items:
        raise SalesOrderError("A sales order needs at least one item")
    for line in items:
        if Decimal(line["quantity"]) <= 0:
            raise SalesOrderError("Quantity must be positive")

    order = SalesOrder.objects.create(
        order_number=generate_order_number(),
        customer=customer,
        order_date=order_date,
        notes=notes,
        created_by=user,
    )
    SalesOrderItem.objects.bulk_create(
        [SalesOrderItem(order=order, product_id=line["product_id"], quantity=line["quantity"]) for line in items]
    )
    if reserve:
        reserve_order_stock(order)
    logger.info(
        "orders.sales_order_created",
        extra={"event": "orders.sales_order_created", "sales_order_id": order.id, "reserved": bool(reserve)},
    )
    return order


@transaction.atomic
def record_delivery(order: SalesOrder, delivered: Mapping[int, Decimal], user=None) -> SalesOrder:
    """Add dispatched quantities (per product) to the order lines and promote its status.

    The order becomes ``delivered`` (and archived) when every line's delivered
    quantity reaches the ordered quantity, otherwise ``partially_delivered``.
    """
    order = SalesOrder.objects.select_for_update().get(id=order.id)
    remaining = defaultdict(Decimal)
    for product_id, qty in delivered.items():
        remaining[product_id] += Decimal(qty)

    lines = list(SalesOrderItem.objects.select_for_update().filter(order=order).order_by("id"))
    last_line_for_product = {line.product_id: line for line in lines}
    for line in lines:
        qty = remaining.get(line.product_id, Decimal("0"))
        if qty <= 0:
            continue
        # Fill each line up to its pending quantity; any excess lands on the last line
        take = qty if line is last_line_for_product[line.product_id] else min(qty, line.pending_quantity)
        line.delivered_quantity = Decimal(line.delivered_quantity) + take
        line.save(update_fields=["delivered_quantity", "updated_at"])
        remaining[line.product_id] = qty - take

    all_delivered = all(Decimal(line.delivered_quantity) >= Decimal(line.quantity) for line in lines)
    prev = order.status
    if all_delivered:
        order.status = SalesOrder.STATUS_DELIVERED
        order.is_archived = True
        order.archived_at = timezone.now()
        order.archived_by = user
        order.archive_reason = FULLY_DELIVERED_REASON
    else:
        order.status = SalesOrder.STATUS_PARTIALLY_DELIVERED
        order.is_archived = False
        order.archived_at = None
        order.archived_by = None
        order.archive_reason = None
    order.save(
        update_fields=["status", "is_archived", "archived_at", "archived_by", "archive_reason", "updated_at"]
    )
    _log_status_change(order, prev)
    return order


def revert_to_pending_delivery(order: SalesOrder) -> SalesOrder:
    """Used when a linked delivery challan is deleted."""
    prev = order.status
    order.status = SalesOrder.STATUS_PENDING_DELIVERY
    order.is_archived = False
    order.archived_at = None
    order.archived_by = None
    order.archive_reason = None
    order.save(
        update_fields=["status", "is_archived", "archived_at", "archived_by", "archive_reason", "updated_at"]
    )
    _log_status_change(order, prev)
    return order


@transaction.atomic
def cancel_order(order: SalesOrder) -> SalesOrder:
    """Cancel an order that has not been delivered and release its reservations."""

    if order.status == SalesOrder.STATUS_DELIVERED:
        raise SalesOrderError("Cannot cancel a delivered order")
    if order.status == SalesOrder.STATUS_CANCELLED:
        return order
    release_order_reservations(order)
    prev = order.status
    order.status = SalesOrder.STATUS_CANCELLED
    order.save(update_fields=["status", "updated_at"])
    _log_status_change(order, prev)
    return order


def release_order_reservations(order: SalesOrder) -> int:
    ids = list(
        BatchReservation.objects.filter(sales_order=order, state=BatchReservation.STATE_ACTIVE).values_list(
            "id", flat=True
        )
    )
    for reservation_id in ids:
        release_reservation(reservation_id=reservation_id)
    return len(ids)
