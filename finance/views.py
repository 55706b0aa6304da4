"""Receivables and journal endpoints."""

from common.api import error_response
from common.errors import DomainError
from common.permissions import FINANCE_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from customer.models import Customer
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import JournalEntry
from .selectors import (
    default_journal_range,
    export_journal_csv,
    journal_csv_filename,
    journal_entries,
    journal_entry_with_lines,
    journal_totals,
    outstanding_invoices,
    recent_payments,
)
from .serializers import (
    CustomerPaymentSerializer,
    JournalEntryDetailSerializer,
    JournalEntrySerializer,
    JournalQuerySerializer,
    OutstandingInvoiceSerializer,
    PaymentCreateSerializer,
)
from .services import compute_request_hash, record_payment, with_idempotency


def _customer_filter(request):
    customer_id = request.query_params.get("customer")
    if not customer_id:
        return None
    return get_object_or_404(Customer, pk=customer_id)


class OutstandingInvoiceListView(APIView):
    """Receivables: invoices not yet fully paid."""

    permission_classes = [RoleWritePermission]
    write_roles = FINANCE_ROLES
    throttle_scope = "finance"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Finance Endpoints"],
        summary="List outstanding invoices",
        parameters=[OpenApiParameter(name="customer", required=False, type=int)],
        responses={200: OutstandingInvoiceSerializer(many=True)},
    )
    def get(self, request):
        qs = outstanding_invoices(_customer_filter(request))
        data = OutstandingInvoiceSerializer(qs, many=True, context={"today": timezone.localdate()}).data
        return Response(data)


class PaymentListCreateView(APIView):
    """List recent payments or record a new one with its allocations.

    POST is idempotent when `Idempotency-Key` is provided. Returns 409 on key reuse with different payload.
    """

    permission_classes = [RoleWritePermission]
    write_roles = FINANCE_ROLES
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "finance" if self.request.method == "GET" else "finance_write"
        return super().get_throttles()

    @extend_schema(
        tags=["Finance Endpoints"],
        summary="List recent payments",
        parameters=[OpenApiParameter(name="customer", required=False, type=int)],
        responses={200: CustomerPaymentSerializer(many=True)},
    )
    def get(self, request):
        return Response(CustomerPaymentSerializer(recent_payments(_customer_filter(request)), many=True).data)

    @extend_schema(
        tags=["Finance Endpoints"],
        summary="Record customer payment",
        description=(
            "Inserts the payment and one allocation per invoice in a single transaction. "
            "Allocating less than the amount leaves the rest as unallocated credit."
        ),
        request=PaymentCreateSerializer,
        responses={201: CustomerPaymentSerializer},
        parameters=[
            OpenApiParameter(
                name="Idempotency-Key",
                type=str,
                location=OpenApiParameter.HEADER,
                required=False,
                description="Makes the request idempotent within scope+path+method",
            )
        ],
        examples=[
            OpenApiExample(
                "Partial payment",
                value={
                    "customer": 3,
                    "amount": "600.00",
                    "payment_method": "bank_transfer",
                    "allocations": [{"invoice_id": 21, "amount": "600.00"}],
                },
                request_only=True,
            ),
            OpenApiExample(
                "Over-allocation",
                value={"detail": "Total allocated amount cannot exceed payment amount"},
                response_only=True,
                status_codes=["400"],
            ),
        ],
    )
    def post(self, request):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        def _handler():
            try:
                payment = record_payment(user=request.user, **data)
            except DomainError as exc:
                return {"detail": str(exc)}, exc.status_code
            return CustomerPaymentSerializer(payment).data, status.HTTP_201_CREATED

        idem_key = request.headers.get("Idempotency-Key")
        if idem_key:
            body, code = with_idempotency(
                key=idem_key,
                user=request.user,
                path=str(request.path),
                method=str(request.method),
                request_hash=compute_request_hash(getattr(request, "data", None)),
                handler=_handler,
            )
            return Response(body, status=code)

        body, code = _handler()
        return Response(body, status=code)


class JournalEntryListView(APIView):
    permission_classes = [RoleWritePermission]
    write_roles = FINANCE_ROLES
    throttle_scope = "finance"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Finance Endpoints"],
        summary="List journal entries",
        description="Defaults to the current month. Totals cover the filtered entries.",
        parameters=[
            OpenApiParameter(name="start", required=False, type=str, description="YYYY-MM-DD"),
            OpenApiParameter(name="end", required=False, type=str, description="YYYY-MM-DD"),
            OpenApiParameter(name="source_module", required=False, type=str),
            OpenApiParameter(name="search", required=False, type=str),
        ],
    )
    def get(self, request):
        params = JournalQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        start, end = _resolve_range(params.validated_data)
        entries = journal_entries(
            start=start,
            end=end,
            source_module=params.validated_data.get("source_module"),
            search=params.validated_data.get("search"),
        )
        totals = journal_totals(entries)
        return Response(
            {
                "start": start,
                "end": end,
                "totals": {"debit": str(totals["debit"]), "credit": str(totals["credit"])},
                "results": JournalEntrySerializer(entries, many=True).data,
            }
        )


class JournalEntryDetailView(APIView):
    permission_classes = [RoleWritePermission]
    throttle_scope = "finance"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(tags=["Finance Endpoints"], summary="Journal entry with lines", responses=JournalEntryDetailSerializer)
    def get(self, request, entry_id: int):
        try:
            entry = journal_entry_with_lines(entry_id)
        except JournalEntry.DoesNotExist:
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(JournalEntryDetailSerializer(entry).data)


class JournalEntryExportView(APIView):
    permission_classes = [RoleWritePermission]
    throttle_scope = "finance"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Finance Endpoints"],
        summary="Export journal entries as CSV",
        parameters=[
            OpenApiParameter(name="start", required=False, type=str),
            OpenApiParameter(name="end", required=False, type=str),
            OpenApiParameter(name="source_module", required=False, type=str),
            OpenApiParameter(name="search", required=False, type=str),
        ],
        responses={(200, "text/csv"): str},
    )
    def get(self, request):
        params = JournalQuerySerializer(data=request.query_params)
        if not params.is_valid():
            return error_response(DomainError("Invalid date range"))
        start, end = _resolve_range(params.validated_data)
        entries = journal_entries(
            start=start,
            end=end,
            source_module=params.validated_data.get("source_module"),
            search=params.validated_data.get("search"),
        )
        response = HttpResponse(export_journal_csv(entries), content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{journal_csv_filename(start, end)}"'
        return response


def _resolve_range(data):
    default_start, default_end = default_journal_range()
    return data.get("start") or default_start, data.get("end") or default_end
