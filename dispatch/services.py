"""Delivery challan services.

Stock moves with the challan: creating one consumes batch stock, editing one
applies the net per-batch difference, and every multi-step mutation runs in a
single transaction so a failed stock write leaves nothing half-applied.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from common.approvals import transition
from common.choices import ApprovalStatus
from common.errors import DomainError
from common.numbering import financial_year_code, next_document_number
from django.db import transaction
from django.db.models import Q
from inventory.models import Batch, BatchMovement
from inventory.services import adjust_batch_stock, deduct_stock_and_release_reservation
from orders.models import SalesOrder
from orders.services import record_delivery, revert_to_pending_delivery

from .models import DeliveryChallan, DeliveryChallanItem

logger = logging.getLogger("pharmadist.dispatch")

CHALLAN_PREFIX = "DO"
LEGACY_CHALLAN_PREFIX = "DC"
HEADER_FIELDS = ("challan_date", "delivery_address", "vehicle_number", "driver_name", "notes")
ITEM_FIELDS = ("product_id", "batch_id", "quantity", "pack_size", "pack_type", "number_of_packs")


class DispatchError(DomainError):
    pass


def _get(item, name, default=None):
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def compute_stock_adjustments(original_items: Iterable, new_items: Iterable) -> dict:
    """Net stock change per batch when a challan's lines are replaced.

    adjustment = sum(original quantities) - sum(new quantities). A positive
    value returns stock to the batch, a negative one consumes more. Batches
    that net to zero are left out, so an unchanged edit yields ``{}``.
    """
    totals = defaultdict(Decimal)
    for item in original_items:
        totals[_get(item, "batch_id")] += Decimal(_get(item, "quantity"))
    for item in new_items:
        totals[_get(item, "batch_id")] -= Decimal(_get(item, "quantity"))
    return {batch_id: adj for batch_id, adj in totals.items() if adj != 0}


def validate_line_items(items: Iterable) -> list[dict]:
    """Check every line before anything is written; returns normalized dicts."""
    items = list(items)
    if not items:
        raise DispatchError("A delivery challan needs at least one item.")

    lines = []
    for item in items:
        product_id = _get(item, "product_id")
        batch_id = _get(item, "batch_id")
        quantity = _get(item, "quantity")
        if not product_id or not batch_id or quantity is None or Decimal(quantity) <= 0:
            raise DispatchError("Please select product, batch, and enter quantity for all items before saving.")
        lines.append({name: _get(item, name) for name in ITEM_FIELDS} | {"quantity": Decimal(quantity)})

    batch_products = dict(
        Batch.objects.filter(id__in={line["batch_id"] for line in lines}).values_list("id", "product_id")
    )
    for line in lines:
        if line["batch_id"] not in batch_products:
            raise DispatchError("Invalid batch selection. Please ensure all items have a valid batch selected.")
        if batch_products[line["batch_id"]] != line["product_id"]:
            raise DispatchError("Invalid product or batch selection. The batch does not belong to the product.")
    return lines


def generate_challan_number(today: Optional[date] = None) -> str:
    """Next ``DO-<yy>-<nnnn>`` number; legacy ``DC-`` numbers share the series."""
    year_code = financial_year_code(today)
    existing = DeliveryChallan.objects.filter(
        Q(challan_number__startswith=f"{CHALLAN_PREFIX}-{year_code}")
        | Q(challan_number__startswith=f"{LEGACY_CHALLAN_PREFIX}-{year_code}")
    ).values_list("challan_number", flat=True)
    return next_document_number(existing, CHALLAN_PREFIX, year_code)


def _insert_items(challan: DeliveryChallan, lines: list[dict]) -> None:
    DeliveryChallanItem.objects.bulk_create([DeliveryChallanItem(challan=challan, **line) for line in lines])


def _delivered_per_product(lines: list[dict]) -> dict:
    delivered = defaultdict(Decimal)
    for line in lines:
        delivered[line["product_id"]] += line["quantity"]
    return delivered


@transaction.atomic
def create_challan(
    *,
    customer,
    challan_date: date,
    items: Iterable,
    user=None,
    sales_order: Optional[SalesOrder] = None,
    challan_number: Optional[str] = None,
    delivery_address: Optional[str] = None,
    vehicle_number: Optional[str] = None,
    driver_name: Optional[str] = None,
    notes: Optional[str] = None,
) -> DeliveryChallan:
    """Create a challan pending approval and take its stock out of the batches.

    For a challan raised against a sales order, each line also releases the
    order's reservation on the product and the delivered quantities are
    booked on the order.
    """
    lines = validate_line_items(items)
    if sales_order is not None:
        if sales_order.customer_id != customer.id:
            raise DispatchError("The sales order belongs to a different customer.")
        if sales_order.status in (SalesOrder.STATUS_CANCELLED, SalesOrder.STATUS_DELIVERED):
            raise DispatchError(f"Sales order {sales_order.order_number} is {sales_order.get_status_display().lower()}.")

    challan = DeliveryChallan.objects.create(
        challan_number=challan_number or generate_challan_number(challan_date),
        customer=customer,
        sales_order=sales_order,
        challan_date=challan_date,
        delivery_address=delivery_address if delivery_address is not None else customer.delivery_address,
        vehicle_number=vehicle_number or None,
        driver_name=driver_name or None,
        notes=notes or None,
        approval_status=DeliveryChallan.STATUS_PENDING_APPROVAL,
        created_by=user,
    )
    _insert_items(challan, lines)

    for line in lines:
        if sales_order is not None:
            deduct_stock_and_release_reservation(
                sales_order=sales_order,
                batch_id=line["batch_id"],
                product_id=line["product_id"],
                quantity=line["quantity"],
                reference=challan.challan_number,
            )
        else:
            adjust_batch_stock(
                batch_id=line["batch_id"],
                adjustment=-line["quantity"],
                movement_type=BatchMovement.TYPE_OUTBOUND,
                reason="dispatch",
                reference=challan.challan_number,
            )

    if sales_order is not None:
        record_delivery(sales_order, _delivered_per_product(lines), user=user)

    logger.info(
        "dispatch.challan_created",
        extra={
            "event": "dispatch.challan_created",
            "challan_id": challan.id,
            "challan_number": challan.challan_number,
            "sales_order_id": getattr(sales_order, "id", None),
            "items": len(lines),
            "user_id": getattr(user, "id", None),
        },
    )
    return challan


@transaction.atomic
def update_challan(challan: DeliveryChallan, *, items: Iterable, user=None, **header) -> DeliveryChallan:
    """Replace a pending challan's header and line items.

    All net stock adjustments, the header update and the item replacement
    commit together; if any adjustment fails nothing is applied.
    """
    challan = DeliveryChallan.objects.select_for_update().get(id=challan.id)
    if challan.approval_status != ApprovalStatus.PENDING_APPROVAL:
        raise DispatchError("Only challans pending approval can be edited.")
    lines = validate_line_items(items)
    original = list(challan.items.values("batch_id", "quantity"))
    adjustments = compute_stock_adjustments(original, lines)

    # Fixed lock order across concurrent edits
    for batch_id in sorted(adjustments):
        adjust_batch_stock(
            batch_id=batch_id,
            adjustment=adjustments[batch_id],
            movement_type=BatchMovement.TYPE_ADJUST,
            reason="challan edit",
            reference=challan.challan_number,
        )

    fields = []
    for name in HEADER_FIELDS:
        if name in header:
            setattr(challan, name, header[name])
            fields.append(name)
    if fields:
        challan.save(update_fields=fields + ["updated_at"])

    challan.items.all().delete()
    _insert_items(challan, lines)

    logger.info(
        "dispatch.challan_updated",
        extra={
            "event": "dispatch.challan_updated",
            "challan_id": challan.id,
            "adjustments": {str(k): str(v) for k, v in adjustments.items()},
            "user_id": getattr(user, "id", None),
        },
    )
    return challan


@transaction.atomic
def delete_challan(challan: DeliveryChallan) -> None:
    """Delete a challan and revert its sales order to pending delivery.

    Batch stock consumed by the challan is not restored. A challan with
    material returns raised against it cannot be deleted.
    """
    if challan.material_returns.exists():
        raise DispatchError(
            "Cannot delete this delivery challan. Material returns have been recorded against it.",
            status_code=409,
        )
    sales_order = challan.sales_order
    challan_id, number = challan.id, challan.challan_number
    challan.delete()
    if sales_order is not None:
        revert_to_pending_delivery(sales_order)
    logger.info(
        "dispatch.challan_deleted",
        extra={
            "event": "dispatch.challan_deleted",
            "challan_id": challan_id,
            "challan_number": number,
            "sales_order_id": getattr(sales_order, "id", None),
        },
    )


@transaction.atomic
def approve_challan(challan: DeliveryChallan, user) -> DeliveryChallan:
    challan = DeliveryChallan.objects.select_for_update().get(id=challan.id)
    return transition(challan, ApprovalStatus.APPROVED, user)


@transaction.atomic
def reject_challan(challan: DeliveryChallan, user, reason: str) -> DeliveryChallan:
    challan = DeliveryChallan.objects.select_for_update().get(id=challan.id)
    return transition(challan, ApprovalStatus.REJECTED, user, reason=reason)
