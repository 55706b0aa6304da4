from django.contrib import admin

from .models import (
    ChartOfAccount,
    CustomerPayment,
    IdempotencyKey,
    InvoicePaymentAllocation,
    JournalEntry,
    JournalEntryLine,
    SalesInvoice,
    SalesInvoiceItem,
)


class SalesInvoiceItemInline(admin.TabularInline):
    model = SalesInvoiceItem
    extra = 0


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "customer", "invoice_date", "due_date", "total_amount", "payment_status")
    list_filter = ("payment_status",)
    search_fields = ("invoice_number", "customer__company_name")
    inlines = [SalesInvoiceItemInline]


class AllocationInline(admin.TabularInline):
    model = InvoicePaymentAllocation
    extra = 0
    raw_id_fields = ("invoice",)


@admin.register(CustomerPayment)
class CustomerPaymentAdmin(admin.ModelAdmin):
    list_display = ("payment_number", "customer", "payment_date", "amount", "payment_method")
    list_filter = ("payment_method",)
    search_fields = ("payment_number", "reference_number", "customer__company_name")
    inlines = [AllocationInline]


@admin.register(ChartOfAccount)
class ChartOfAccountAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    search_fields = ("code", "name")


class JournalEntryLineInline(admin.TabularInline):
    model = JournalEntryLine
    extra = 0


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = ("entry_number", "entry_date", "source_module", "total_debit", "total_credit", "is_posted")
    list_filter = ("source_module", "is_posted")
    search_fields = ("entry_number", "reference_number", "description")
    inlines = [JournalEntryLineInline]


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("key", "scope", "method", "path", "response_code", "expires_at")
    search_fields = ("key", "scope", "path")
