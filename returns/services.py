"""Material return services.

Returns are created against a delivery challan and restock their ``good``
lines into the original batches once approved.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from common.approvals import transition
from common.choices import ApprovalStatus, ItemCondition
from common.errors import DomainError
from common.numbering import financial_year_code, next_document_number
from django.db import transaction
from inventory.models import BatchMovement
from inventory.services import adjust_batch_stock

from .models import MaterialReturn, MaterialReturnItem

logger = logging.getLogger("pharmadist.returns")


class ReturnError(DomainError):
    pass


def generate_return_number(today: date | None = None) -> str:
    year_code = financial_year_code(today)
    existing = MaterialReturn.objects.filter(return_number__startswith=f"MR-{year_code}").values_list(
        "return_number", flat=True
    )
    return next_document_number(existing, "MR", year_code)


def returnable_quantities(challan, exclude_return_id=None) -> dict:
    """Quantity still returnable per (product_id, batch_id) on a challan.

    Quantities already on other pending or approved returns are subtracted.
    """
    returnable = defaultdict(Decimal)
    for line in challan.items.all():
        returnable[(line.product_id, line.batch_id)] += Decimal(line.quantity)
    taken = MaterialReturnItem.objects.filter(material_return__original_challan=challan).exclude(
        material_return__status=ApprovalStatus.REJECTED
    )
    if exclude_return_id:
        taken = taken.exclude(material_return_id=exclude_return_id)
    for item in taken:
        returnable[(item.product_id, item.batch_id)] -= Decimal(item.quantity_returned)
    return dict(returnable)


@transaction.atomic
def create_return(
    *,
    customer,
    original_challan,
    return_date: date,
    return_reason: str,
    items: Iterable[Mapping],
    return_type: str = "quality_issue",
    notes: str = "",
    user=None,
) -> MaterialReturn:
    if customer is None or original_challan is None or not (return_reason or "").strip():
        raise ReturnError("Please complete all required fields")
    if original_challan.customer_id != customer.id:
        raise ReturnError("The delivery challan belongs to a different customer.")

    lines = [item for item in items if Decimal(item.get("quantity_returned") or 0) > 0]
    if not lines:
        raise ReturnError("Please enter at least one item with return quantity")

    returnable = returnable_quantities(original_challan)
    original = defaultdict(Decimal)
    for line in original_challan.items.all():
        original[(line.product_id, line.batch_id)] += Decimal(line.quantity)

    requested = defaultdict(Decimal)
    for item in lines:
        key = (item["product_id"], item["batch_id"])
        if key not in original:
            raise ReturnError("Returned items must come from the selected delivery challan.")
        requested[key] += Decimal(item["quantity_returned"])
    for key, qty in requested.items():
        if qty > returnable.get(key, Decimal("0")):
            raise ReturnError("Return quantity cannot exceed original quantity")

    ret = MaterialReturn.objects.create(
        return_number=generate_return_number(return_date),
        customer=customer,
        original_challan=original_challan,
        return_date=return_date,
        return_type=return_type,
        return_reason=return_reason.strip(),
        notes=notes or "",
        status=MaterialReturn.STATUS_PENDING_APPROVAL,
        created_by=user,
    )
    MaterialReturnItem.objects.bulk_create(
        [
            MaterialReturnItem(
                material_return=ret,
                product_id=item["product_id"],
                batch_id=item["batch_id"],
                quantity_returned=Decimal(item["quantity_returned"]),
                original_quantity=original[(item["product_id"], item["batch_id"])],
                condition=item.get("condition") or ItemCondition.GOOD,
                notes=item.get("notes") or "",
            )
            for item in lines
        ]
    )
    logger.info(
        "returns.return_created",
        extra={
            "event": "returns.return_created",
            "return_id": ret.id,
            "challan_id": original_challan.id,
            "items": len(lines),
            "user_id": getattr(user, "id", None),
        },
    )
    return ret


@transaction.atomic
def approve_return(ret: MaterialReturn, user) -> MaterialReturn:
    """Approve and put ``good`` items back into their batches."""
    ret = MaterialReturn.objects.select_for_update().get(id=ret.id)
    transition(ret, ApprovalStatus.APPROVED, user, status_field="status")
    restocked = Decimal("0")
    for item in ret.items.order_by("batch_id"):
        if item.condition != ItemCondition.GOOD:
            continue
        adjust_batch_stock(
            batch_id=item.batch_id,
            adjustment=Decimal(item.quantity_returned),
            movement_type=BatchMovement.TYPE_RETURN,
            reason=f"material return ({ret.get_return_type_display().lower()})",
            reference=ret.return_number,
        )
        restocked += Decimal(item.quantity_returned)
    logger.info(
        "returns.return_approved",
        extra={"event": "returns.return_approved", "return_id": ret.id, "restocked": str(restocked)},
    )
    return ret


@transaction.atomic
def reject_return(ret: MaterialReturn, user, reason: str) -> MaterialReturn:
    ret = MaterialReturn.objects.select_for_update().get(id=ret.id)
    return transition(ret, ApprovalStatus.REJECTED, user, reason=reason, status_field="status")


@transaction.atomic
def delete_return(ret: MaterialReturn) -> None:
    ret = MaterialReturn.objects.select_for_update().get(id=ret.id)
    if ret.status == ApprovalStatus.APPROVED:
        raise ReturnError("Approved returns cannot be deleted; stock has already been restored.")
    ret.delete()
