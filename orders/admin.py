from django.contrib import admin

from .models import SalesOrder, SalesOrderItem


class SalesOrderItemInline(admin.TabularInline):
    model = SalesOrderItem
    extra = 0


@admin.register(SalesOrder)
class SalesOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "order_number", "customer", "order_date", "status", "is_archived")
    list_filter = ("status", "is_archived")
    search_fields = ("order_number", "customer__company_name")
    inlines = [SalesOrderItemInline]
