from django.contrib import admin

from .models import Appointment, Lead


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ("company_name", "contact_person", "phone", "is_active")
    search_fields = ("company_name", "contact_person", "email")


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("subject", "activity_type", "follow_up_date", "customer", "lead", "is_completed")
    list_filter = ("activity_type", "is_completed")
    search_fields = ("subject", "customer__company_name", "lead__company_name")
