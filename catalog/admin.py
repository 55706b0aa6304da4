"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("product_name", "product_code", "category", "unit", "min_stock_level", "is_active")
    search_fields = ("product_name", "product_code", "hsn_code")
    list_filter = ("category", "unit", "is_active")
