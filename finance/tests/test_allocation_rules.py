from decimal import Decimal

import pytest
from finance.services import AllocationError, derive_payment_status, validate_allocations


@pytest.mark.parametrize(
    "total,paid,status",
    [
        ("1000", "0", "pending"),
        ("1000", "0.01", "partial"),
        ("1000", "999.99", "partial"),
        ("1000", "1000", "paid"),
        ("1000", None, "pending"),
    ],
)
def test_derive_payment_status(total, paid, status):
    assert derive_payment_status(Decimal(total), Decimal(paid) if paid else None) == status


def test_allocation_below_payment_leaves_credit():
    cleaned = validate_allocations(Decimal("600"), {1: "400", 2: "100"}, {1: Decimal("1000"), 2: Decimal("100")})
    assert cleaned == {1: Decimal("400"), 2: Decimal("100")}


def test_full_allocation_accepted():
    assert validate_allocations("600", {1: "600"}, {1: "1000"}) == {1: Decimal("600")}


@pytest.mark.parametrize(
    "amount,allocations,message",
    [
        ("0", {1: "10"}, "greater than zero"),
        ("100", {}, "at least one invoice"),
        ("100", {1: "0"}, "at least one invoice"),
        ("100", {1: "50", 2: "-5"}, "greater than zero"),
        ("500", {1: "300"}, "remaining balance"),
        ("100", {9: "10"}, "not open"),
        ("100", {1: "80", 2: "30"}, "cannot exceed payment amount"),
    ],
)
def test_rejections(amount, allocations, message):
    balances = {1: Decimal("200"), 2: Decimal("50")}
    with pytest.raises(AllocationError, match=message):
        validate_allocations(amount, allocations, balances)
