"""Customer domain models.

Pharmacies, hospitals and wholesalers that receive deliveries and invoices.
"""

from django.core.validators import RegexValidator
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Customer(TimeStampedModel):
    """Trading customer.

    `pbf_license` is the wholesaler licence number printed on delivery challans.
    """

    company_name = models.CharField(max_length=200)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=80, blank=True)
    phone = models.CharField(
        max_length=16,
        blank=True,
        validators=[RegexValidator(r"^\+?[0-9]{6,15}$", message="Use digits with an optional leading +")],
    )
    pbf_license = models.CharField(max_length=64, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["company_name", "id"]
        indexes = [
            models.Index(fields=["company_name"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.company_name

    @property
    def delivery_address(self) -> str:
        """Default delivery address as shown on a new challan."""
        parts = [p.strip() for p in (self.address, self.city) if p and p.strip()]
        return ", ".join(parts)
