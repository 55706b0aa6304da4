"""Read-only data access helpers for the customer app."""

from django.db.models import QuerySet

from .models import Customer


def list_active_customers() -> QuerySet[Customer]:
    return Customer.objects.filter(is_active=True).order_by("company_name")
