import datetime
from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from common.approvals import ApprovalError
from customer.tests.factories import CustomerFactory
from dispatch.models import DeliveryChallan
from dispatch.services import (
    DispatchError,
    approve_challan,
    create_challan,
    delete_challan,
    reject_challan,
    update_challan,
)
from inventory.models import Batch, BatchMovement, BatchReservation
from inventory.services import MovementError
from inventory.tests.factories import BatchFactory
from orders.models import SalesOrder
from orders.services import create_sales_order
from returns.services import create_return
from users.tests.factories import ManagerFactory, WarehouseFactory

CHALLAN_DATE = datetime.date(2025, 2, 1)


def _line(batch, qty):
    return {"product_id": batch.product_id, "batch_id": batch.id, "quantity": Decimal(qty)}


@pytest.mark.django_db
def test_create_challan_deducts_stock_and_numbers_document():
    batch = BatchFactory(current_stock=Decimal("100"))
    customer = CustomerFactory(address="Jl. Sudirman 1", city="Jakarta")

    challan = create_challan(customer=customer, challan_date=CHALLAN_DATE, items=[_line(batch, "20")])

    batch.refresh_from_db()
    assert batch.current_stock == Decimal("80")
    assert challan.challan_number == "DO-25-0001"
    assert challan.approval_status == DeliveryChallan.STATUS_PENDING_APPROVAL
    assert challan.delivery_address == "Jl. Sudirman 1, Jakarta"
    assert challan.items.count() == 1


@pytest.mark.django_db
def test_create_challan_rejects_batch_of_other_product():
    batch = BatchFactory()
    bad = {"product_id": ProductFactory().id, "batch_id": batch.id, "quantity": Decimal("1")}
    with pytest.raises(DispatchError, match="does not belong"):
        create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[bad])
    assert not DeliveryChallan.objects.exists()


@pytest.mark.django_db
def test_create_challan_requires_complete_lines():
    with pytest.raises(DispatchError, match="Please select product, batch"):
        create_challan(
            customer=CustomerFactory(),
            challan_date=CHALLAN_DATE,
            items=[{"product_id": None, "batch_id": None, "quantity": 1}],
        )


@pytest.mark.django_db
def test_insufficient_stock_rolls_back_whole_challan():
    ok = BatchFactory(current_stock=Decimal("50"))
    short = BatchFactory(current_stock=Decimal("5"))
    with pytest.raises(MovementError):
        create_challan(
            customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(ok, "10"), _line(short, "10")]
        )
    ok.refresh_from_db()
    assert ok.current_stock == Decimal("50")
    assert not DeliveryChallan.objects.exists()
    assert not BatchMovement.objects.exists()


@pytest.mark.django_db
def test_challan_for_order_releases_reservation_and_delivers_order():
    product = ProductFactory()
    batch = BatchFactory(product=product, current_stock=Decimal("100"))
    customer = CustomerFactory()
    order = create_sales_order(
        customer=customer, order_date=CHALLAN_DATE, items=[{"product_id": product.id, "quantity": Decimal("40")}]
    )
    batch.refresh_from_db()
    assert batch.reserved_stock == Decimal("40")

    create_challan(customer=customer, challan_date=CHALLAN_DATE, items=[_line(batch, "40")], sales_order=order)

    batch.refresh_from_db()
    order.refresh_from_db()
    assert batch.current_stock == Decimal("60")
    assert batch.reserved_stock == Decimal("0")
    assert order.status == SalesOrder.STATUS_DELIVERED
    assert order.is_archived
    assert order.archive_reason == "Delivery Challan created and all items delivered"
    assert not BatchReservation.objects.filter(state=BatchReservation.STATE_ACTIVE).exists()


@pytest.mark.django_db
def test_partial_delivery_keeps_order_open():
    product = ProductFactory()
    batch = BatchFactory(product=product)
    customer = CustomerFactory()
    order = create_sales_order(
        customer=customer, order_date=CHALLAN_DATE, items=[{"product_id": product.id, "quantity": Decimal("40")}]
    )

    create_challan(customer=customer, challan_date=CHALLAN_DATE, items=[_line(batch, "15")], sales_order=order)

    order.refresh_from_db()
    batch.refresh_from_db()
    assert order.status == SalesOrder.STATUS_PARTIALLY_DELIVERED
    assert not order.is_archived
    assert batch.reserved_stock == Decimal("25")
    assert order.items.get().delivered_quantity == Decimal("15")


@pytest.mark.django_db
def test_order_of_other_customer_is_rejected():
    product = ProductFactory()
    batch = BatchFactory(product=product)
    order = create_sales_order(
        customer=CustomerFactory(), order_date=CHALLAN_DATE, items=[{"product_id": product.id, "quantity": 1}]
    )
    with pytest.raises(DispatchError, match="different customer"):
        create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(batch, "1")], sales_order=order)


@pytest.mark.django_db
def test_edit_applies_net_adjustment_per_batch():
    batch = BatchFactory(current_stock=Decimal("100"))
    challan = create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(batch, "20")])

    update_challan(challan, items=[_line(batch, "35")], vehicle_number="B 1234 CD")

    batch.refresh_from_db()
    challan.refresh_from_db()
    assert batch.current_stock == Decimal("65")
    assert challan.vehicle_number == "B 1234 CD"
    assert [item.quantity for item in challan.items.all()] == [Decimal("35")]
    assert BatchMovement.objects.filter(batch=batch, movement_type=BatchMovement.TYPE_ADJUST).get().quantity == Decimal(
        "-15"
    )


@pytest.mark.django_db
def test_unchanged_edit_moves_no_stock():
    batch = BatchFactory(current_stock=Decimal("100"))
    challan = create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(batch, "20")])
    movements = BatchMovement.objects.count()

    update_challan(challan, items=[_line(batch, "20")])

    batch.refresh_from_db()
    assert batch.current_stock == Decimal("80")
    assert BatchMovement.objects.count() == movements


@pytest.mark.django_db
def test_failed_edit_leaves_everything_untouched():
    a = BatchFactory(current_stock=Decimal("100"))
    b = BatchFactory(current_stock=Decimal("5"))
    challan = create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(a, "20")])

    with pytest.raises(MovementError):
        update_challan(challan, items=[_line(a, "10"), _line(b, "50")], driver_name="Budi")

    a.refresh_from_db()
    b.refresh_from_db()
    challan.refresh_from_db()
    assert (a.current_stock, b.current_stock) == (Decimal("80"), Decimal("5"))
    assert challan.driver_name is None
    assert [(i.batch_id, i.quantity) for i in challan.items.all()] == [(a.id, Decimal("20"))]


@pytest.mark.django_db
def test_only_pending_challans_can_be_edited():
    batch = BatchFactory()
    challan = create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(batch, "1")])
    approve_challan(challan, ManagerFactory())
    with pytest.raises(DispatchError, match="pending approval"):
        update_challan(challan, items=[_line(batch, "2")])


@pytest.mark.django_db
def test_delete_reverts_order_without_restoring_stock():
    product = ProductFactory()
    batch = BatchFactory(product=product, current_stock=Decimal("100"))
    customer = CustomerFactory()
    order = create_sales_order(
        customer=customer, order_date=CHALLAN_DATE, items=[{"product_id": product.id, "quantity": Decimal("10")}]
    )
    challan = create_challan(customer=customer, challan_date=CHALLAN_DATE, items=[_line(batch, "10")], sales_order=order)

    delete_challan(challan)

    order.refresh_from_db()
    assert order.status == SalesOrder.STATUS_PENDING_DELIVERY
    assert not order.is_archived
    assert Batch.objects.get(id=batch.id).current_stock == Decimal("90")
    assert not DeliveryChallan.objects.exists()


@pytest.mark.django_db
def test_approval_workflow_on_challans():
    batch = BatchFactory()
    challan = create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(batch, "1")])

    with pytest.raises(ApprovalError):
        approve_challan(challan, WarehouseFactory())

    manager = ManagerFactory()
    reject_challan(challan, manager, "Wrong vehicle")
    challan.refresh_from_db()
    assert challan.approval_status == DeliveryChallan.STATUS_REJECTED
    assert challan.rejection_reason == "Wrong vehicle"
    assert challan.rejected_by == manager

    with pytest.raises(ApprovalError, match="already rejected"):
        approve_challan(challan, manager)


@pytest.mark.django_db
def test_challan_with_material_return_cannot_be_deleted():
    batch = BatchFactory(current_stock=Decimal("100"))
    customer = CustomerFactory()
    challan = create_challan(customer=customer, challan_date=CHALLAN_DATE, items=[_line(batch, "10")])
    create_return(
        customer=customer,
        original_challan=challan,
        return_date=datetime.date(2025, 2, 5),
        return_reason="Damaged in transit",
        items=[{"product_id": batch.product_id, "batch_id": batch.id, "quantity_returned": Decimal("2")}],
    )

    with pytest.raises(DispatchError, match="Material returns") as exc:
        delete_challan(challan)

    assert exc.value.status_code == 409
    assert DeliveryChallan.objects.filter(id=challan.id).exists()


@pytest.mark.django_db
def test_approval_reads_current_status_not_stale_instance():
    batch = BatchFactory()
    challan = create_challan(customer=CustomerFactory(), challan_date=CHALLAN_DATE, items=[_line(batch, "1")])
    stale = DeliveryChallan.objects.get(id=challan.id)
    manager = ManagerFactory()

    reject_challan(challan, manager, "Duplicate document")

    with pytest.raises(ApprovalError, match="already rejected"):
        approve_challan(stale, manager)
    assert DeliveryChallan.objects.get(id=challan.id).approval_status == DeliveryChallan.STATUS_REJECTED
