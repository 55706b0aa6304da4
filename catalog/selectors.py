"""Selectors for the catalog domain.

Read-only query helpers that keep views thin.
"""

from decimal import Decimal
from typing import Optional

from django.db.models import DecimalField, F, Q, QuerySet, Sum, Value
from django.db.models.functions import Coalesce

from .models import Product


def list_products(*, include_inactive: bool = False, category: Optional[str] = None) -> QuerySet[Product]:
    qs = Product.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if category:
        qs = qs.filter(category=category)
    return qs.order_by("-created_at", "id")


def with_stock_totals(qs: QuerySet[Product]) -> QuerySet[Product]:
    """Annotate products with ``total_stock`` summed over their active batches."""
    zero = Value(Decimal("0"), output_field=DecimalField(max_digits=14, decimal_places=3))
    return qs.annotate(
        total_stock=Coalesce(Sum("batches__current_stock", filter=Q(batches__is_active=True)), zero)
    )


def products_below_min_stock() -> QuerySet[Product]:
    """Active products whose stock has fallen below ``min_stock_level``."""
    qs = with_stock_totals(Product.objects.filter(is_active=True, min_stock_level__isnull=False))
    return qs.filter(total_stock__lt=F("min_stock_level")).order_by("product_name")
