import logging
from datetime import datetime, timedelta
from typing import Optional

from common.choices import AppointmentType, AppointmentUrgency
from common.errors import DomainError
from django.conf import settings
from django.utils import timezone

from .models import Appointment

logger = logging.getLogger("pharmadist.crm")

EDITABLE_FIELDS = ("activity_type", "subject", "description", "location", "follow_up_date")


class AppointmentError(DomainError):
    pass


def _validate(activity_type, subject, follow_up_date) -> None:
    if activity_type not in AppointmentType.values:
        raise AppointmentError("Appointments must be a meeting, video call or phone call.")
    if not (subject or "").strip():
        raise AppointmentError("Please enter a subject for the appointment.")
    if follow_up_date is None:
        raise AppointmentError("Please choose a date and time for the appointment.")


def create_appointment(
    *,
    activity_type: str,
    subject: str,
    follow_up_date: datetime,
    customer=None,
    lead=None,
    description: Optional[str] = None,
    location: str = "",
    user=None,
) -> Appointment:
    _validate(activity_type, subject, follow_up_date)
    if customer is None and lead is None:
        raise AppointmentError("Select a customer or a lead for the appointment.")
    if customer is not None and lead is not None:
        raise AppointmentError("An appointment belongs to either a customer or a lead, not both.")
    appt = Appointment.objects.create(
        activity_type=activity_type,
        subject=subject.strip(),
        description=description or None,
        location=location or "",
        follow_up_date=follow_up_date,
        customer=customer,
        lead=lead,
        created_by=user,
    )
    logger.info(
        "crm.appointment_created",
        extra={"event": "crm.appointment_created", "appointment_id": appt.id, "activity_type": activity_type},
    )
    return appt


def update_appointment(appt: Appointment, **changes) -> Appointment:
    for name in EDITABLE_FIELDS:
        if name in changes:
            setattr(appt, name, changes[name])
    _validate(appt.activity_type, appt.subject, appt.follow_up_date)
    appt.save()
    return appt


def delete_appointment(appt: Appointment) -> None:
    appt_id = appt.id
    appt.delete()
    logger.info("crm.appointment_deleted", extra={"event": "crm.appointment_deleted", "appointment_id": appt_id})


def complete_appointment(appt: Appointment, now: Optional[datetime] = None) -> Appointment:
    if appt.is_completed:
        return appt
    appt.is_completed = True
    appt.completed_at = now or timezone.now()
    appt.save(update_fields=["is_completed", "completed_at", "updated_at"])
    logger.info(
        "crm.appointment_completed",
        extra={"event": "crm.appointment_completed", "appointment_id": appt.id},
    )
    return appt


def appointment_urgency(appt, now: Optional[datetime] = None) -> str:
    """Classify an appointment for display.

    Completed wins; otherwise a past date is overdue and a date inside the
    APPOINTMENT_DUE_SOON_HOURS window is due soon.
    """
    if appt.is_completed:
        return AppointmentUrgency.COMPLETED
    now = now or timezone.now()
    if appt.follow_up_date < now:
        return AppointmentUrgency.OVERDUE
    window = timedelta(hours=int(getattr(settings, "APPOINTMENT_DUE_SOON_HOURS", 24)))
    if appt.follow_up_date < now + window:
        return AppointmentUrgency.DUE_SOON
    return AppointmentUrgency.UPCOMING
