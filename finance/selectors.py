"""Read-side queries for receivables and the journal."""

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Optional

from common.choices import PaymentStatus
from django.db.models import DecimalField, Q, QuerySet, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from .models import CustomerPayment, JournalEntry, SalesInvoice

ZERO = Decimal("0")

JOURNAL_CSV_HEADER = ["Entry Number", "Date", "Source", "Reference", "Description", "Debit", "Credit"]
JOURNAL_CSV_LINE_HEADER = ["", "", "Account Code", "Account Name", "Line Description", "Debit", "Credit"]


def outstanding_invoices(customer=None) -> QuerySet:
    """Pending and partially paid invoices, earliest due first, with ``paid_amount`` and ``balance``."""
    qs = (
        SalesInvoice.objects.select_related("customer")
        .filter(payment_status__in=[PaymentStatus.PENDING, PaymentStatus.PARTIAL])
        .annotate(
            paid_amount=Coalesce(
                Sum("allocations__allocated_amount"),
                Value(ZERO),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            )
        )
    )
    if customer is not None:
        qs = qs.filter(customer=customer)
    return qs.order_by("due_date", "id")


def recent_payments(customer=None, limit: int = 50) -> QuerySet:
    qs = CustomerPayment.objects.select_related("customer").prefetch_related("allocations__invoice")
    if customer is not None:
        qs = qs.filter(customer=customer)
    return qs.order_by("-payment_date", "-id")[:limit]


def default_journal_range(today: Optional[date] = None) -> tuple[date, date]:
    """First day of the current month through today."""
    today = today or timezone.localdate()
    return today.replace(day=1), today


def journal_entries(
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    source_module: Optional[str] = None,
    search: Optional[str] = None,
) -> QuerySet:
    default_start, default_end = default_journal_range()
    qs = JournalEntry.objects.filter(entry_date__gte=start or default_start, entry_date__lte=end or default_end)
    if source_module and source_module != "all":
        qs = qs.filter(source_module=source_module)
    if search:
        qs = qs.filter(
            Q(entry_number__icontains=search) | Q(reference_number__icontains=search) | Q(description__icontains=search)
        )
    return qs.order_by("-entry_date", "-entry_number")


def journal_totals(entries: QuerySet) -> dict:
    totals = entries.aggregate(debit=Sum("total_debit"), credit=Sum("total_credit"))
    return {"debit": totals["debit"] or ZERO, "credit": totals["credit"] or ZERO}


def journal_entry_with_lines(entry_id) -> JournalEntry:
    return JournalEntry.objects.prefetch_related("lines__account", "lines__customer").get(id=entry_id)


def journal_csv_filename(start: date, end: date) -> str:
    return f"journal_entries_{start.isoformat()}_to_{end.isoformat()}.csv"


def export_journal_csv(entries) -> str:
    """Entries with their lines; each entry's lines follow under their own header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(JOURNAL_CSV_HEADER)
    for entry in entries.prefetch_related("lines__account") if isinstance(entries, QuerySet) else entries:
        writer.writerow(
            [
                entry.entry_number,
                entry.entry_date.isoformat(),
                entry.source_module or "Manual",
                entry.reference_number or "",
                entry.description or "",
                entry.total_debit,
                entry.total_credit,
            ]
        )
        lines = list(entry.lines.all())
        if not lines:
            continue
        writer.writerow(JOURNAL_CSV_LINE_HEADER)
        for line in lines:
            writer.writerow(["", "", line.account.code, line.account.name, line.description or "", line.debit, line.credit])
        writer.writerow([""] * len(JOURNAL_CSV_HEADER))
    return buffer.getvalue()
