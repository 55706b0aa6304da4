from django.contrib import admin

from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("company_name", "city", "phone", "pbf_license", "is_active")
    search_fields = ("company_name", "city", "pbf_license")
    list_filter = ("is_active",)
