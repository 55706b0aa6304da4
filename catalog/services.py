"""Catalog services: product mutations guarded by referential checks."""

import logging

from common.errors import DomainError
from django.db import transaction

from .models import Product

logger = logging.getLogger("pharmadist.catalog")


class ProductInUseError(DomainError):
    """Raised when a destructive operation would orphan business documents."""

    status_code = 409


def ensure_product_deletable(product: Product) -> None:
    """Block deletion of products referenced by business documents."""
    from dispatch.models import DeliveryChallanItem
    from finance.models import SalesInvoiceItem
    from orders.models import SalesOrderItem
    from returns.models import MaterialReturnItem

    if SalesInvoiceItem.objects.filter(product_id=product.id).exists():
        raise ProductInUseError(
            "Cannot delete this product. It has been used in sales invoices. "
            'Please use the "Deactivate" option instead or contact your administrator.'
        )
    if DeliveryChallanItem.objects.filter(product_id=product.id).exists():
        raise ProductInUseError(
            "Cannot delete this product. It has been used in delivery challans. "
            'Please use the "Deactivate" option instead.'
        )
    if SalesOrderItem.objects.filter(product_id=product.id).exists():
        raise ProductInUseError(
            "Cannot delete this product. It has been used in sales orders. "
            'Please use the "Deactivate" option instead.'
        )
    if MaterialReturnItem.objects.filter(product_id=product.id).exists():
        raise ProductInUseError(
            "Cannot delete this product. It has been used in material returns. "
            'Please use the "Deactivate" option instead.'
        )


@transaction.atomic
def delete_product(product: Product) -> int:
    """Delete a product with its batches, movements and reservations.

    Returns the number of batches removed.
    """
    from inventory.models import Batch, BatchMovement, BatchReservation

    ensure_product_deletable(product)
    batch_ids = list(Batch.objects.filter(product_id=product.id).values_list("id", flat=True))
    if batch_ids:
        BatchMovement.objects.filter(batch_id__in=batch_ids).delete()
        BatchReservation.objects.filter(batch_id__in=batch_ids).delete()
        Batch.objects.filter(id__in=batch_ids).delete()
    product_id = product.id
    product.delete()
    logger.info(
        "catalog.product_deleted",
        extra={"event": "catalog.product_deleted", "product_id": product_id, "batches": len(batch_ids)},
    )
    return len(batch_ids)


def deactivate_product(product: Product) -> Product:
    if not product.is_active:
        return product
    product.is_active = False
    product.save(update_fields=["is_active", "updated_at"])
    logger.info(
        "catalog.product_deactivated",
        extra={"event": "catalog.product_deactivated", "product_id": product.id},
    )
    return product
