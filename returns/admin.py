from django.contrib import admin

from .models import MaterialReturn, MaterialReturnItem


class MaterialReturnItemInline(admin.TabularInline):
    model = MaterialReturnItem
    extra = 0
    raw_id_fields = ("batch",)


@admin.register(MaterialReturn)
class MaterialReturnAdmin(admin.ModelAdmin):
    list_display = ("return_number", "customer", "original_challan", "return_date", "return_type", "status")
    list_filter = ("status", "return_type")
    search_fields = ("return_number", "customer__company_name", "original_challan__challan_number")
    inlines = [MaterialReturnItemInline]
