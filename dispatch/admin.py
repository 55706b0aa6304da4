from django.contrib import admin

from .models import DeliveryChallan, DeliveryChallanItem


class DeliveryChallanItemInline(admin.TabularInline):
    model = DeliveryChallanItem
    extra = 0
    raw_id_fields = ("batch",)


@admin.register(DeliveryChallan)
class DeliveryChallanAdmin(admin.ModelAdmin):
    list_display = ("challan_number", "customer", "challan_date", "sales_order", "approval_status")
    list_filter = ("approval_status",)
    search_fields = ("challan_number", "customer__company_name")
    inlines = [DeliveryChallanItemInline]
