import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from inventory.services import is_expired, parse_packaging_details, select_fifo_batch

TODAY = datetime.date(2025, 3, 1)


def _batch(id, *, product_id=1, import_date=None, expiry_date=None, stock="10", reserved="0"):
    return SimpleNamespace(
        id=id,
        product_id=product_id,
        import_date=import_date,
        expiry_date=expiry_date,
        current_stock=Decimal(stock),
        reserved_stock=Decimal(reserved),
    )


def test_oldest_import_date_wins():
    a = _batch(1, import_date=datetime.date(2024, 1, 1), stock="100")
    b = _batch(2, import_date=datetime.date(2024, 2, 1), stock="50")
    assert select_fifo_batch([b, a], product_id=1, today=TODAY) is a


def test_expired_and_empty_batches_are_skipped():
    expired = _batch(1, import_date=datetime.date(2023, 1, 1), expiry_date=datetime.date(2025, 2, 28))
    empty = _batch(2, import_date=datetime.date(2023, 6, 1), stock="0")
    fully_reserved = _batch(3, import_date=datetime.date(2023, 7, 1), stock="5", reserved="5")
    fresh = _batch(4, import_date=datetime.date(2024, 6, 1))
    assert select_fifo_batch([expired, empty, fully_reserved, fresh], product_id=1, today=TODAY) is fresh


def test_batch_expiring_today_is_still_eligible():
    b = _batch(1, import_date=datetime.date(2024, 1, 1), expiry_date=TODAY)
    assert not is_expired(b, TODAY)
    assert select_fifo_batch([b], product_id=1, today=TODAY) is b


def test_other_products_are_ignored():
    other = _batch(1, product_id=2, import_date=datetime.date(2020, 1, 1))
    mine = _batch(2, product_id=1, import_date=datetime.date(2024, 1, 1))
    assert select_fifo_batch([other, mine], product_id=1, today=TODAY) is mine


def test_ties_break_on_id_and_undated_batches_sort_last():
    undated = _batch(1)
    later_id = _batch(3, import_date=datetime.date(2024, 1, 1))
    earlier_id = _batch(2, import_date=datetime.date(2024, 1, 1))
    assert select_fifo_batch([undated, later_id, earlier_id], product_id=1, today=TODAY) is earlier_id
    assert select_fifo_batch([undated], product_id=1, today=TODAY) is undated


def test_none_when_nothing_qualifies():
    assert select_fifo_batch([], product_id=1, today=TODAY) is None
    assert select_fifo_batch([_batch(1, stock="0")], product_id=1, today=TODAY) is None


def test_selection_does_not_modify_snapshot():
    batches = [_batch(2, import_date=datetime.date(2024, 2, 1)), _batch(1, import_date=datetime.date(2024, 1, 1))]
    before = [(b.id, b.current_stock) for b in batches]
    select_fifo_batch(batches, product_id=1, today=TODAY)
    assert [(b.id, b.current_stock) for b in batches] == before


@pytest.mark.parametrize(
    "text,expected",
    [
        ("10 drums x 25kg", (10, "drum", Decimal("25"))),
        ("4 Bags x 12.5 kg", (4, "bag", Decimal("12.5"))),
        ("1 drum x 200kg", (1, "drum", Decimal("200"))),
    ],
)
def test_parse_packaging_details(text, expected):
    pack = parse_packaging_details(text)
    assert (pack.number_of_packs, pack.pack_type, pack.pack_size) == expected


def test_parse_packaging_details_unrecognised():
    assert parse_packaging_details("") is None
    assert parse_packaging_details(None) is None
    assert parse_packaging_details("loose") is None
    assert parse_packaging_details("10 drums x 25kg").quantity == Decimal("250")
