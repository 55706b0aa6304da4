import datetime
from decimal import Decimal

import pytest
from catalog.models import Product
from catalog.services import ProductInUseError, delete_product
from catalog.tests.factories import ProductFactory
from customer.tests.factories import CustomerFactory
from dispatch.services import create_challan
from finance.models import SalesInvoiceItem
from finance.tests.factories import SalesInvoiceFactory
from inventory.models import Batch, BatchMovement
from inventory.services import adjust_batch_stock
from inventory.tests.factories import BatchFactory
from orders.services import create_sales_order
from rest_framework.test import APIClient
from users.tests.factories import UserFactory, WarehouseFactory


@pytest.fixture
def warehouse():
    client = APIClient()
    client.force_authenticate(user=WarehouseFactory())
    return client


@pytest.mark.django_db
def test_delete_unused_product_removes_batches_and_movements():
    product = ProductFactory()
    batch = BatchFactory(product=product)
    adjust_batch_stock(batch_id=batch.id, adjustment=Decimal("5"))

    assert delete_product(product) == 1
    assert not Product.objects.filter(id=product.id).exists()
    assert not Batch.objects.exists()
    assert not BatchMovement.objects.exists()


@pytest.mark.django_db
def test_product_on_invoice_cannot_be_deleted():
    product = ProductFactory()
    SalesInvoiceItem.objects.create(
        invoice=SalesInvoiceFactory(), product=product, quantity=Decimal("1"), unit_price=Decimal("10")
    )
    with pytest.raises(ProductInUseError, match="sales invoices"):
        delete_product(product)
    assert Product.objects.filter(id=product.id).exists()


@pytest.mark.django_db
def test_delete_endpoint_answers_409_for_dispatched_product(warehouse):
    batch = BatchFactory()
    create_challan(
        customer=CustomerFactory(),
        challan_date=datetime.date(2025, 2, 1),
        items=[{"product_id": batch.product_id, "batch_id": batch.id, "quantity": Decimal("1")}],
    )

    resp = warehouse.delete(f"/api/v1/catalog/products/{batch.product_id}/")

    assert resp.status_code == 409
    assert "Deactivate" in resp.json()["detail"]


@pytest.mark.django_db
def test_deactivate_hides_product_from_default_list(warehouse):
    product = ProductFactory()

    resp = warehouse.post(f"/api/v1/catalog/products/{product.id}/deactivate/")
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    ids = [row["id"] for row in warehouse.get("/api/v1/catalog/products/").json()["results"]]
    assert product.id not in ids
    all_ids = [row["id"] for row in warehouse.get("/api/v1/catalog/products/?include_inactive=true").json()["results"]]
    assert product.id in all_ids


@pytest.mark.django_db
def test_list_reports_total_stock_and_low_stock(warehouse):
    low = ProductFactory(min_stock_level=Decimal("200"))
    BatchFactory(product=low, current_stock=Decimal("80"))
    BatchFactory(product=low, current_stock=Decimal("40"))
    BatchFactory(product=low, current_stock=Decimal("500"), is_active=False)
    ok = ProductFactory(min_stock_level=Decimal("10"))
    BatchFactory(product=ok, current_stock=Decimal("50"))

    rows = {row["id"]: row for row in warehouse.get("/api/v1/catalog/products/").json()["results"]}
    assert Decimal(rows[low.id]["total_stock"]) == Decimal("120")

    low_ids = [row["id"] for row in warehouse.get("/api/v1/catalog/products/low-stock/").json()]
    assert low_ids == [low.id]


@pytest.mark.django_db
def test_sales_role_cannot_create_products():
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    resp = client.post("/api/v1/catalog/products/", {"product_name": "Ibuprofen"}, format="json")
    assert resp.status_code == 403


@pytest.mark.django_db
def test_product_on_sales_order_cannot_be_deleted(warehouse):
    batch = BatchFactory(current_stock=Decimal("50"))
    create_sales_order(
        customer=CustomerFactory(),
        order_date=datetime.date(2025, 2, 1),
        items=[{"product_id": batch.product_id, "quantity": Decimal("5")}],
    )

    with pytest.raises(ProductInUseError, match="sales orders"):
        delete_product(batch.product)

    resp = warehouse.delete(f"/api/v1/catalog/products/{batch.product_id}/")
    assert resp.status_code == 409
    assert "Deactivate" in resp.json()["detail"]
    assert Product.objects.filter(id=batch.product_id).exists()
