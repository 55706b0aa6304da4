from datetime import datetime
from typing import Optional

from django.db.models import Q, QuerySet
from django.utils import timezone

from .models import Appointment


def list_appointments(*, customer=None, lead=None) -> QuerySet:
    qs = Appointment.objects.select_related("customer", "lead", "created_by")
    if customer is not None:
        qs = qs.filter(customer=customer)
    elif lead is not None:
        qs = qs.filter(lead=lead)
    return qs.order_by("follow_up_date", "id")


def upcoming_appointments(qs: QuerySet, now: Optional[datetime] = None) -> QuerySet:
    return qs.filter(is_completed=False, follow_up_date__gte=now or timezone.now())


def past_appointments(qs: QuerySet, now: Optional[datetime] = None) -> QuerySet:
    """Completed or already overdue."""
    return qs.filter(Q(is_completed=True) | Q(follow_up_date__lt=now or timezone.now()))
