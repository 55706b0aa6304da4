import datetime
from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from customer.tests.factories import CustomerFactory
from inventory.models import Batch, BatchMovement, BatchReservation
from inventory.services import (
    MovementError,
    adjust_batch_stock,
    create_reservation,
    deduct_stock_and_release_reservation,
    fifo_batch_for_product,
    release_reservation,
    suggest_line_items_for_order,
)
from inventory.tests.factories import BatchFactory
from orders.models import SalesOrder, SalesOrderItem


@pytest.mark.django_db
def test_adjust_batch_stock_records_signed_movement():
    batch = BatchFactory(current_stock=Decimal("40"))

    adjust_batch_stock(batch_id=batch.id, adjustment=Decimal("5"), reason="count", reference="ADJ-1")
    movement = adjust_batch_stock(batch_id=batch.id, adjustment=Decimal("-15"), reference="DO-25-0001")

    batch.refresh_from_db()
    assert batch.current_stock == Decimal("30")
    assert movement.movement_type == BatchMovement.TYPE_OUTBOUND
    assert movement.quantity == Decimal("-15")
    assert list(batch.movements.order_by("id").values_list("movement_type", flat=True)) == ["in", "out"]


@pytest.mark.django_db
def test_adjust_batch_stock_cannot_dip_into_reserved_stock():
    batch = BatchFactory(current_stock=Decimal("10"), reserved_stock=Decimal("6"))
    with pytest.raises(MovementError) as exc:
        adjust_batch_stock(batch_id=batch.id, adjustment=Decimal("-5"))
    assert "Insufficient stock" in str(exc.value)
    batch.refresh_from_db()
    assert batch.current_stock == Decimal("10")
    assert not BatchMovement.objects.filter(batch=batch).exists()


@pytest.mark.django_db
def test_zero_adjustment_is_a_no_op():
    batch = BatchFactory()
    assert adjust_batch_stock(batch_id=batch.id, adjustment=Decimal("0")) is None
    assert not BatchMovement.objects.exists()


@pytest.mark.django_db
def test_reservation_create_and_release():
    batch = BatchFactory(current_stock=Decimal("8"))

    res = create_reservation(batch_id=batch.id, quantity=Decimal("3"))
    batch.refresh_from_db()
    assert batch.reserved_stock == Decimal("3")
    assert res.state == BatchReservation.STATE_ACTIVE

    with pytest.raises(MovementError):
        create_reservation(batch_id=batch.id, quantity=Decimal("6"))

    release_reservation(reservation_id=res.id)
    release_reservation(reservation_id=res.id)
    batch.refresh_from_db()
    res.refresh_from_db()
    assert batch.reserved_stock == Decimal("0")
    assert res.state == BatchReservation.STATE_RELEASED


@pytest.mark.django_db
def test_deduct_releases_reservations_oldest_first():
    product = ProductFactory()
    batch = BatchFactory(product=product, current_stock=Decimal("50"))
    order = SalesOrder.objects.create(customer=CustomerFactory(), order_date=datetime.date(2025, 1, 5))
    first = create_reservation(batch_id=batch.id, quantity=Decimal("10"), sales_order=order)
    second = create_reservation(batch_id=batch.id, quantity=Decimal("10"), sales_order=order)

    deduct_stock_and_release_reservation(
        sales_order=order, batch_id=batch.id, product_id=product.id, quantity=Decimal("15"), reference="DO-25-0001"
    )

    batch.refresh_from_db()
    first.refresh_from_db()
    second.refresh_from_db()
    assert batch.current_stock == Decimal("35")
    assert batch.reserved_stock == Decimal("5")
    assert first.state == BatchReservation.STATE_CONVERTED
    assert second.state == BatchReservation.STATE_ACTIVE
    assert second.quantity == Decimal("5")


@pytest.mark.django_db
def test_fifo_batch_for_product_scenario():
    product = ProductFactory()
    a = BatchFactory(product=product, import_date=datetime.date(2024, 1, 1), current_stock=Decimal("100"))
    BatchFactory(product=product, import_date=datetime.date(2024, 2, 1), current_stock=Decimal("50"))
    BatchFactory(product=product, import_date=datetime.date(2023, 1, 1), current_stock=Decimal("0"))

    assert fifo_batch_for_product(product.id, today=datetime.date(2025, 1, 1)).id == a.id


@pytest.mark.django_db
def test_suggest_line_items_uses_fifo_batch_and_packaging():
    product = ProductFactory()
    missing = ProductFactory()
    batch = BatchFactory(product=product, packaging_details="2 drums x 25kg")
    order = SalesOrder.objects.create(customer=CustomerFactory(), order_date=datetime.date(2025, 1, 5))
    SalesOrderItem.objects.create(order=order, product=product, quantity=Decimal("50"))
    SalesOrderItem.objects.create(order=order, product=missing, quantity=Decimal("10"))

    lines = suggest_line_items_for_order(order, today=datetime.date(2025, 1, 6))

    assert lines[0]["batch_id"] == batch.id
    assert lines[0]["quantity"] == Decimal("50")
    assert (lines[0]["pack_type"], lines[0]["pack_size"], lines[0]["number_of_packs"]) == ("drum", Decimal("25"), 2)
    assert lines[1]["product_id"] == missing.id and lines[1]["batch_id"] is None
    assert Batch.objects.get(id=batch.id).current_stock == Decimal("100")
