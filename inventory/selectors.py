"""Selectors for the inventory domain."""

from datetime import date
from typing import Optional

from django.db.models import F, Q, QuerySet
from django.utils import timezone

from .models import Batch, BatchReservation


def list_batches(
    *,
    product_id: Optional[int] = None,
    in_stock: bool = False,
    include_expired: bool = True,
    today: Optional[date] = None,
) -> QuerySet[Batch]:
    qs = Batch.objects.filter(is_active=True).select_related("product").order_by("import_date", "id")
    if product_id:
        qs = qs.filter(product_id=product_id)
    if in_stock:
        qs = qs.filter(current_stock__gt=F("reserved_stock"))
    if not include_expired:
        today = today or timezone.localdate()
        qs = qs.filter(Q(expiry_date__isnull=True) | Q(expiry_date__gte=today))
    return qs


def available_stock_for_batch(batch_id: int):
    try:
        batch = Batch.objects.only("current_stock", "reserved_stock").get(id=batch_id)
    except Batch.DoesNotExist:
        return 0
    return batch.available_stock


def list_active_reservations_for_order(sales_order_id: int):
    return list(
        BatchReservation.objects.filter(sales_order_id=sales_order_id, state=BatchReservation.STATE_ACTIVE)
        .order_by("id")
        .values("id", "batch_id", "quantity")
    )


# EOF
