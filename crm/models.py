"""CRM models: leads and the appointments scheduled with them or with customers."""

from common.choices import AppointmentType
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Lead(TimeStampedModel):
    company_name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=120, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["company_name", "id"]

    def __str__(self) -> str:  # pragma: no cover
        return self.company_name


class Appointment(TimeStampedModel):
    TYPE_MEETING = AppointmentType.MEETING
    TYPE_VIDEO_CALL = AppointmentType.VIDEO_CALL
    TYPE_PHONE_CALL = AppointmentType.PHONE_CALL

    activity_type = models.CharField(max_length=16, choices=AppointmentType.choices, default=TYPE_MEETING)
    subject = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    location = models.CharField(max_length=255, blank=True)
    follow_up_date = models.DateTimeField(db_index=True)
    customer = models.ForeignKey(
        "customer.Customer", null=True, blank=True, related_name="appointments", on_delete=models.CASCADE
    )
    lead = models.ForeignKey(Lead, null=True, blank=True, related_name="appointments", on_delete=models.CASCADE)
    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["follow_up_date", "id"]
        constraints = [
            models.CheckConstraint(
                name="appointment_has_customer_or_lead",
                check=models.Q(customer__isnull=False) | models.Q(lead__isnull=False),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.get_activity_type_display()}: {self.subject}"
