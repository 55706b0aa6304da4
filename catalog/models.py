"""Catalog app models.

Products traded by the distributor: APIs, excipients and solvents sold by
weight or volume. Stock lives on `inventory.Batch`.
"""

from common.choices import ProductCategory, Unit
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Sellable product master record."""

    CATEGORY_CHOICES = ProductCategory.choices
    UNIT_CHOICES = Unit.choices

    product_name = models.CharField(max_length=200)
    product_code = models.CharField(max_length=64, null=True, blank=True, unique=True)
    hsn_code = models.CharField(max_length=32, blank=True)
    category = models.CharField(max_length=16, choices=CATEGORY_CHOICES, default=ProductCategory.API)
    unit = models.CharField(max_length=16, choices=UNIT_CHOICES, default=Unit.KG)
    packaging_type = models.CharField(max_length=120, blank=True)
    default_supplier = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)
    min_stock_level = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(
                name="product_min_stock_non_negative",
                check=models.Q(min_stock_level__isnull=True) | models.Q(min_stock_level__gte=0),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.product_name
