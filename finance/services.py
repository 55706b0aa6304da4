"""Payment allocation and idempotent request handling.

Allocations are validated as a whole before anything is written: one bad
line rejects the payment and no rows are inserted.
"""

import hashlib
import json
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Mapping, Optional, Tuple

from common.choices import PaymentMethod, PaymentStatus
from common.errors import DomainError
from common.numbering import financial_year_code, next_document_number
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from .models import CustomerPayment, IdempotencyKey, InvoicePaymentAllocation, SalesInvoice

logger = logging.getLogger("pharmadist.finance")

ZERO = Decimal("0")


class AllocationError(DomainError):
    pass


def derive_payment_status(total_amount, paid_amount) -> str:
    paid = Decimal(paid_amount or 0)
    if paid <= 0:
        return PaymentStatus.PENDING
    if paid < Decimal(total_amount):
        return PaymentStatus.PARTIAL
    return PaymentStatus.PAID


def invoice_paid_amount(invoice) -> Decimal:
    """Sum of the allocation rows for ``invoice``."""
    total = InvoicePaymentAllocation.objects.filter(invoice=invoice).aggregate(total=Sum("allocated_amount"))["total"]
    return total or ZERO


def invoice_balance(invoice) -> Decimal:
    return Decimal(invoice.total_amount) - invoice_paid_amount(invoice)


def validate_allocations(payment_amount, allocations: Mapping, balances: Mapping) -> dict:
    """Check a caller-chosen allocation set against the invoices' remaining balances.

    allocations: invoice id -> amount to apply.
    balances: invoice id -> remaining balance (total - paid) of the candidates.

    Returns the allocations as Decimals. Allocating less than the payment is
    allowed; the remainder stays on the payment as unallocated credit.
    """
    amount = Decimal(payment_amount or 0)
    if amount <= 0:
        raise AllocationError("Payment amount must be greater than zero")
    cleaned = {invoice_id: Decimal(value) for invoice_id, value in allocations.items()}
    if not cleaned or sum(cleaned.values(), ZERO) == 0:
        raise AllocationError("Please allocate the payment to at least one invoice")

    for invoice_id, value in cleaned.items():
        if invoice_id not in balances:
            raise AllocationError(f"Invoice {invoice_id} is not open for this customer")
        if value <= 0:
            raise AllocationError("Allocated amounts must be greater than zero")
        if value > Decimal(balances[invoice_id]):
            raise AllocationError(
                f"Allocation of {value} exceeds the remaining balance {balances[invoice_id]} of invoice {invoice_id}"
            )
    if sum(cleaned.values(), ZERO) > amount:
        raise AllocationError("Total allocated amount cannot exceed payment amount")
    return cleaned


def generate_payment_number(today: Optional[date] = None) -> str:
    year_code = financial_year_code(today)
    existing = CustomerPayment.objects.filter(payment_number__startswith=f"PAY-{year_code}").values_list(
        "payment_number", flat=True
    )
    return next_document_number(existing, "PAY", year_code)


def refresh_payment_status(invoice: SalesInvoice) -> SalesInvoice:
    status = derive_payment_status(invoice.total_amount, invoice_paid_amount(invoice))
    if invoice.payment_status != status:
        invoice.payment_status = status
        invoice.save(update_fields=["payment_status", "updated_at"])
    return invoice


@transaction.atomic
def record_payment(
    *,
    customer,
    amount,
    allocations: Mapping,
    payment_date: Optional[date] = None,
    payment_method: str = PaymentMethod.BANK_TRANSFER,
    payment_number: Optional[str] = None,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
    user=None,
) -> CustomerPayment:
    """Insert a customer payment and its invoice allocations in one transaction.

    The customer's open invoices are locked while balances are recomputed so
    two payments cannot both consume the same balance.
    """
    invoices = {
        inv.id: inv
        for inv in SalesInvoice.objects.select_for_update()
        .filter(customer=customer, payment_status__in=[PaymentStatus.PENDING, PaymentStatus.PARTIAL])
        .order_by("id")
    }
    balances = {invoice_id: invoice_balance(inv) for invoice_id, inv in invoices.items()}
    cleaned = validate_allocations(amount, allocations, balances)
    if payment_number and CustomerPayment.objects.filter(payment_number=payment_number).exists():
        raise AllocationError(f"Payment number {payment_number} already exists")

    payment_date = payment_date or timezone.localdate()
    payment = CustomerPayment.objects.create(
        payment_number=payment_number or generate_payment_number(payment_date),
        customer=customer,
        payment_date=payment_date,
        amount=Decimal(amount),
        payment_method=payment_method,
        reference_number=reference_number or None,
        notes=notes or None,
        created_by=user,
    )
    InvoicePaymentAllocation.objects.bulk_create(
        [
            InvoicePaymentAllocation(payment=payment, invoice_id=invoice_id, allocated_amount=value, created_by=user)
            for invoice_id, value in sorted(cleaned.items())
        ]
    )
    for invoice_id in sorted(cleaned):
        refresh_payment_status(invoices[invoice_id])

    try:
        logger.info(
            "finance.payment_recorded",
            extra={
                "event": "finance.payment_recorded",
                "payment_id": payment.id,
                "customer_id": customer.id,
                "amount": str(payment.amount),
                "allocated": str(sum(cleaned.values(), ZERO)),
                "invoices": sorted(cleaned),
                "user_id": getattr(user, "id", None),
            },
        )
    except Exception:
        pass
    return payment


def unallocated_amount(payment: CustomerPayment) -> Decimal:
    allocated = payment.allocations.aggregate(total=Sum("allocated_amount"))["total"] or ZERO
    return Decimal(payment.amount) - allocated


def with_idempotency(
    *,
    key: str,
    user,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - Scope is "user:<id>" for authenticated callers, otherwise "anon".
    - A stored record with a different ``request_hash`` answers 409.
    - A stored record without a response yet answers 409 (in progress).
    """

    scope = f"user:{getattr(user, 'id', None)}" if getattr(user, "id", None) else "anon"
    method = str(method).upper()
    path = str(path)
    ttl_hours = int(getattr(settings, "IDEMPOTENCY_TTL_HOURS", 24))

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                user=user if getattr(user, "id", None) else None,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + timedelta(hours=ttl_hours),
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress"}, 409

    try:
        body, code = handler()
    except Exception:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise
    if code >= 400:
        # Failed attempts may be retried with the same key
        IdempotencyKey.objects.filter(id=idem.id).delete()
        return body, code

    IdempotencyKey.objects.filter(id=idem.id).update(response_json=_json_safe(body), response_code=code)
    return body, code


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date,)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Canonical SHA256 of the request body (sorted-key JSON); None for an empty body."""
    if not data:
        return None
    try:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
    except (TypeError, ValueError):
        return None
