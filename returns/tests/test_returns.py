import datetime
from decimal import Decimal

import pytest
from common.approvals import ApprovalError
from customer.tests.factories import CustomerFactory
from dispatch.services import create_challan
from inventory.models import BatchMovement
from inventory.tests.factories import BatchFactory
from returns.models import MaterialReturn
from returns.services import ReturnError, approve_return, create_return, delete_return, reject_return
from rest_framework.test import APIClient
from users.tests.factories import ManagerFactory, UserFactory

RETURN_DATE = datetime.date(2025, 2, 10)


@pytest.fixture
def shipped():
    """A challan that shipped 40 from batch ``a`` and 10 from batch ``b``."""
    customer = CustomerFactory()
    a = BatchFactory(current_stock=Decimal("100"))
    b = BatchFactory(current_stock=Decimal("50"))
    challan = create_challan(
        customer=customer,
        challan_date=datetime.date(2025, 2, 1),
        items=[
            {"product_id": a.product_id, "batch_id": a.id, "quantity": Decimal("40")},
            {"product_id": b.product_id, "batch_id": b.id, "quantity": Decimal("10")},
        ],
    )
    return customer, challan, a, b


def _item(batch, qty, condition="good"):
    return {"product_id": batch.product_id, "batch_id": batch.id, "quantity_returned": Decimal(qty), "condition": condition}


@pytest.mark.django_db
def test_create_return_skips_zero_lines_and_records_original_quantity(shipped):
    customer, challan, a, b = shipped

    ret = create_return(
        customer=customer,
        original_challan=challan,
        return_date=RETURN_DATE,
        return_reason="Leaking drum",
        items=[_item(a, "5"), _item(b, "0")],
    )

    assert ret.return_number == "MR-25-0001"
    assert ret.status == MaterialReturn.STATUS_PENDING_APPROVAL
    item = ret.items.get()
    assert (item.batch_id, item.quantity_returned, item.original_quantity) == (a.id, Decimal("5"), Decimal("40"))


@pytest.mark.django_db
@pytest.mark.parametrize(
    "reason,items,message",
    [
        ("", None, "required fields"),
        ("Damaged", [], "at least one item"),
        ("Damaged", "over", "cannot exceed"),
    ],
)
def test_create_return_validation(shipped, reason, items, message):
    customer, challan, a, b = shipped
    if items is None:
        items = [_item(a, "1")]
    elif items == "over":
        items = [_item(b, "11")]
    with pytest.raises(ReturnError, match=message):
        create_return(customer=customer, original_challan=challan, return_date=RETURN_DATE, return_reason=reason, items=items)


@pytest.mark.django_db
def test_returned_quantity_counts_earlier_returns(shipped):
    customer, challan, a, _ = shipped
    create_return(customer=customer, original_challan=challan, return_date=RETURN_DATE, return_reason="x", items=[_item(a, "30")])
    with pytest.raises(ReturnError, match="cannot exceed"):
        create_return(
            customer=customer, original_challan=challan, return_date=RETURN_DATE, return_reason="y", items=[_item(a, "11")]
        )


@pytest.mark.django_db
def test_batch_not_on_challan_is_rejected(shipped):
    customer, challan, _, _ = shipped
    other = BatchFactory()
    with pytest.raises(ReturnError, match="selected delivery challan"):
        create_return(
            customer=customer, original_challan=challan, return_date=RETURN_DATE, return_reason="x", items=[_item(other, "1")]
        )


@pytest.mark.django_db
def test_approval_restocks_only_good_items(shipped):
    customer, challan, a, b = shipped
    ret = create_return(
        customer=customer,
        original_challan=challan,
        return_date=RETURN_DATE,
        return_reason="Mixed",
        items=[_item(a, "5", "good"), _item(b, "3", "damaged")],
    )

    approve_return(ret, ManagerFactory())

    a.refresh_from_db()
    b.refresh_from_db()
    assert a.current_stock == Decimal("65")
    assert b.current_stock == Decimal("40")
    movement = BatchMovement.objects.get(movement_type=BatchMovement.TYPE_RETURN)
    assert (movement.batch_id, movement.quantity, movement.reference) == (a.id, Decimal("5"), ret.return_number)

    with pytest.raises(ReturnError, match="cannot be deleted"):
        delete_return(MaterialReturn.objects.get(id=ret.id))


@pytest.mark.django_db
def test_rejected_return_does_not_restock_and_can_be_deleted(shipped):
    customer, challan, a, _ = shipped
    ret = create_return(customer=customer, original_challan=challan, return_date=RETURN_DATE, return_reason="x", items=[_item(a, "5")])

    with pytest.raises(ApprovalError):
        approve_return(ret, UserFactory())

    reject_return(ret, ManagerFactory(), "Customer error")
    a.refresh_from_db()
    assert a.current_stock == Decimal("60")

    delete_return(ret)
    assert not MaterialReturn.objects.exists()


@pytest.mark.django_db
def test_returns_api_flow(shipped):
    customer, challan, a, _ = shipped
    sales = APIClient()
    sales.force_authenticate(user=UserFactory())
    payload = {
        "customer": customer.id,
        "original_challan": challan.id,
        "return_date": "2025-02-10",
        "return_reason": "Wrong grade",
        "return_type": "wrong_product",
        "items": [{"product_id": a.product_id, "batch_id": a.id, "quantity_returned": "4"}],
    }

    created = sales.post("/api/v1/returns/material-returns/", payload, format="json")
    assert created.status_code == 201, created.content
    return_id = created.json()["id"]

    manager = APIClient()
    manager.force_authenticate(user=ManagerFactory())
    approved = manager.post(f"/api/v1/returns/material-returns/{return_id}/approve/")
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    deleted = sales.delete(f"/api/v1/returns/material-returns/{return_id}/")
    assert deleted.status_code == 400
