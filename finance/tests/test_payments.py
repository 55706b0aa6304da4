from decimal import Decimal

import pytest
from customer.tests.factories import CustomerFactory
from finance.models import CustomerPayment, IdempotencyKey, InvoicePaymentAllocation
from finance.selectors import outstanding_invoices
from finance.services import (
    AllocationError,
    invoice_balance,
    invoice_paid_amount,
    record_payment,
    unallocated_amount,
    with_idempotency,
)
from finance.tests.factories import SalesInvoiceFactory
from rest_framework.test import APIClient
from users.tests.factories import AccountsFactory, WarehouseFactory


@pytest.mark.django_db
def test_partial_payment_scenario():
    invoice = SalesInvoiceFactory(total_amount=Decimal("1000"))

    payment = record_payment(customer=invoice.customer, amount=Decimal("600"), allocations={invoice.id: Decimal("600")})

    invoice.refresh_from_db()
    assert invoice_paid_amount(invoice) == Decimal("600")
    assert invoice_balance(invoice) == Decimal("400")
    assert invoice.payment_status == "partial"
    assert unallocated_amount(payment) == Decimal("0")


@pytest.mark.django_db
def test_payment_spread_over_invoices_with_credit_left():
    customer = CustomerFactory()
    first = SalesInvoiceFactory(customer=customer, total_amount=Decimal("300"))
    second = SalesInvoiceFactory(customer=customer, total_amount=Decimal("500"))

    payment = record_payment(
        customer=customer, amount=Decimal("1000"), allocations={first.id: Decimal("300"), second.id: Decimal("200")}
    )

    first.refresh_from_db()
    second.refresh_from_db()
    assert (first.payment_status, second.payment_status) == ("paid", "partial")
    assert payment.allocations.count() == 2
    assert unallocated_amount(payment) == Decimal("500")
    assert payment.payment_number.startswith("PAY-")
    assert [inv.id for inv in outstanding_invoices(customer)] == [second.id]
    assert outstanding_invoices(customer).get().paid_amount == Decimal("200")


@pytest.mark.django_db
def test_rejected_payment_writes_nothing():
    customer = CustomerFactory()
    invoice = SalesInvoiceFactory(customer=customer, total_amount=Decimal("100"))
    other = SalesInvoiceFactory(customer=customer, total_amount=Decimal("100"))

    with pytest.raises(AllocationError):
        record_payment(customer=customer, amount=Decimal("500"), allocations={invoice.id: Decimal("50"), other.id: Decimal("150")})

    assert not CustomerPayment.objects.exists()
    assert not InvoicePaymentAllocation.objects.exists()


@pytest.mark.django_db
def test_invoice_of_another_customer_cannot_be_allocated():
    invoice = SalesInvoiceFactory()
    with pytest.raises(AllocationError, match="not open"):
        record_payment(customer=CustomerFactory(), amount=Decimal("10"), allocations={invoice.id: Decimal("10")})


@pytest.mark.django_db
def test_second_payment_sees_reduced_balance():
    invoice = SalesInvoiceFactory(total_amount=Decimal("1000"))
    record_payment(customer=invoice.customer, amount=Decimal("600"), allocations={invoice.id: Decimal("600")})
    with pytest.raises(AllocationError, match="remaining balance"):
        record_payment(customer=invoice.customer, amount=Decimal("500"), allocations={invoice.id: Decimal("500")})
    record_payment(customer=invoice.customer, amount=Decimal("400"), allocations={invoice.id: Decimal("400")})
    invoice.refresh_from_db()
    assert invoice.payment_status == "paid"


@pytest.mark.django_db
def test_payments_api_is_idempotent():
    invoice = SalesInvoiceFactory(total_amount=Decimal("1000"))
    client = APIClient()
    client.force_authenticate(user=AccountsFactory())
    payload = {"customer": invoice.customer_id, "amount": "600.00", "allocations": [{"invoice_id": invoice.id, "amount": "600.00"}]}

    first = client.post("/api/v1/finance/payments/", payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")
    again = client.post("/api/v1/finance/payments/", payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")

    assert first.status_code == 201, first.content
    assert again.status_code == 201
    assert again.json()["id"] == first.json()["id"]
    assert CustomerPayment.objects.count() == 1

    changed = dict(payload, amount="700.00")
    conflict = client.post("/api/v1/finance/payments/", changed, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")
    assert conflict.status_code == 409


@pytest.mark.django_db
def test_failed_payment_does_not_burn_idempotency_key():
    invoice = SalesInvoiceFactory(total_amount=Decimal("100"))
    client = APIClient()
    client.force_authenticate(user=AccountsFactory())
    payload = {"customer": invoice.customer_id, "amount": "50.00", "allocations": [{"invoice_id": invoice.id, "amount": "80.00"}]}

    resp = client.post("/api/v1/finance/payments/", payload, format="json", HTTP_IDEMPOTENCY_KEY="k-2")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Total allocated amount cannot exceed payment amount"
    assert not IdempotencyKey.objects.exists()


@pytest.mark.django_db
def test_outstanding_invoices_api_and_role_gate():
    invoice = SalesInvoiceFactory(total_amount=Decimal("250"))
    SalesInvoiceFactory(payment_status="paid")
    client = APIClient()
    client.force_authenticate(user=WarehouseFactory())

    resp = client.get("/api/v1/finance/invoices/")
    assert resp.status_code == 200
    rows = resp.json()
    assert [row["id"] for row in rows] == [invoice.id]
    assert Decimal(rows[0]["balance"]) == Decimal("250")

    denied = client.post(
        "/api/v1/finance/payments/",
        {"customer": invoice.customer_id, "amount": "1", "allocations": [{"invoice_id": invoice.id, "amount": "1"}]},
        format="json",
    )
    assert denied.status_code == 403


@pytest.mark.django_db
def test_negative_allocation_row_rejects_whole_payment():
    invoice = SalesInvoiceFactory(total_amount=Decimal("1000"))
    client = APIClient()
    client.force_authenticate(user=AccountsFactory())
    payload = {
        "customer": invoice.customer_id,
        "amount": "600.00",
        "allocations": [{"invoice_id": invoice.id, "amount": "500.00"}, {"invoice_id": invoice.id, "amount": "-100.00"}],
    }

    resp = client.post("/api/v1/finance/payments/", payload, format="json")

    assert resp.status_code == 400
    assert "Allocated amounts must be greater than zero" in str(resp.json())
    assert not CustomerPayment.objects.exists()
    assert not InvoicePaymentAllocation.objects.exists()


@pytest.mark.django_db
def test_duplicate_payment_number_is_a_validation_error_and_frees_key():
    customer = CustomerFactory()
    first = SalesInvoiceFactory(customer=customer, total_amount=Decimal("500"))
    second = SalesInvoiceFactory(customer=customer, total_amount=Decimal("500"))
    record_payment(customer=customer, amount=Decimal("100"), allocations={first.id: Decimal("100")}, payment_number="PAY-X")
    client = APIClient()
    client.force_authenticate(user=AccountsFactory())
    payload = {
        "customer": customer.id,
        "payment_number": "PAY-X",
        "amount": "50.00",
        "allocations": [{"invoice_id": second.id, "amount": "50.00"}],
    }

    resp = client.post("/api/v1/finance/payments/", payload, format="json", HTTP_IDEMPOTENCY_KEY="k1")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment number PAY-X already exists"
    assert not IdempotencyKey.objects.exists()

    retry = client.post(
        "/api/v1/finance/payments/", dict(payload, payment_number="PAY-Y"), format="json", HTTP_IDEMPOTENCY_KEY="k1"
    )
    assert retry.status_code == 201, retry.content
    assert CustomerPayment.objects.count() == 2


@pytest.mark.django_db
def test_idempotency_key_is_released_when_handler_raises():
    user = AccountsFactory()

    def _boom():
        raise RuntimeError("storage unavailable")

    with pytest.raises(RuntimeError):
        with_idempotency(key="k-err", user=user, path="/api/v1/finance/payments/", method="POST", handler=_boom)

    assert not IdempotencyKey.objects.exists()
