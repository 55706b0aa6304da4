from django.urls import path

from .views import (
    JournalEntryDetailView,
    JournalEntryExportView,
    JournalEntryListView,
    OutstandingInvoiceListView,
    PaymentListCreateView,
)

urlpatterns = [
    path("invoices/", OutstandingInvoiceListView.as_view(), name="finance-outstanding-invoices"),
    path("payments/", PaymentListCreateView.as_view(), name="finance-payments"),
    path("journal-entries/", JournalEntryListView.as_view(), name="finance-journal-entries"),
    path("journal-entries/export/", JournalEntryExportView.as_view(), name="finance-journal-export"),
    path("journal-entries/<int:entry_id>/", JournalEntryDetailView.as_view(), name="finance-journal-entry"),
]
