"""Inventory read-only list views and FIFO batch lookup."""

from common.throttling import SettingsScopedRateThrottle
from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import BatchMovement, BatchReservation
from .selectors import list_batches
from .serializers import BatchMovementSerializer, BatchReservationSerializer, BatchSerializer
from .services import fifo_batch_for_product


class InventoryBaseMixin:
    permission_classes = [IsAuthenticated]
    throttle_scope = "inventory"
    throttle_classes = [SettingsScopedRateThrottle]


class BatchListView(InventoryBaseMixin, generics.ListAPIView):
    serializer_class = BatchSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List batches",
        description=(
            "Active batches in FIFO order (oldest import first). "
            "Filters: product_id, in_stock (true/false), include_expired (default true)."
        ),
        examples=[
            OpenApiExample(
                "Batches",
                value={
                    "results": [
                        {
                            "id": 1,
                            "product": 10,
                            "product_name": "Paracetamol USP",
                            "batch_number": "PCM-2401",
                            "current_stock": "100.000",
                            "reserved_stock": "20.000",
                            "available_stock": "80.000",
                            "expiry_date": "2027-01-31",
                            "import_date": "2024-01-01",
                            "packaging_details": "4 drums x 25kg",
                            "is_expired": False,
                            "updated_at": "2025-01-01T12:00:00Z",
                        }
                    ]
                },
            )
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        params = self.request.query_params
        return list_batches(
            product_id=params.get("product_id") or None,
            in_stock=params.get("in_stock") in {"1", "true", "True"},
            include_expired=params.get("include_expired") not in {"0", "false", "False"},
        )


class FifoBatchView(InventoryBaseMixin, APIView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="FIFO batch for a product",
        description="Oldest non-expired batch with available stock, or 404 when none qualifies.",
        parameters=[OpenApiParameter(name="product_id", required=True, type=int)],
        responses={200: BatchSerializer},
    )
    def get(self, request):
        product_id = request.query_params.get("product_id")
        try:
            product_id = int(product_id)
        except (TypeError, ValueError):
            return Response({"detail": "product_id is required"}, status=status.HTTP_400_BAD_REQUEST)
        batch = fifo_batch_for_product(product_id)
        if batch is None:
            return Response(
                {"detail": "No eligible batch with available stock for this product."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(BatchSerializer(batch).data)


class MovementListView(InventoryBaseMixin, generics.ListAPIView):
    serializer_class = BatchMovementSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock movements",
        description="Filters: batch, movement_type (in/out/adjust/return), created_after (ISO).",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        qs = BatchMovement.objects.select_related("batch").order_by("-created_at", "id")
        batch = self.request.query_params.get("batch")
        movement_type = self.request.query_params.get("movement_type")
        created_after = self.request.query_params.get("created_after")

        if batch:
            qs = qs.filter(batch_id=batch)
        if movement_type:
            qs = qs.filter(movement_type=movement_type)
        if created_after:
            dt = parse_datetime(created_after)
            if dt:
                qs = qs.filter(created_at__gte=dt)
        return qs


class ReservationListView(InventoryBaseMixin, generics.ListAPIView):
    serializer_class = BatchReservationSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock reservations",
        description="Filters: batch, sales_order, state (active/released/converted).",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        qs = BatchReservation.objects.select_related("batch").order_by("-created_at", "id")
        batch = self.request.query_params.get("batch")
        sales_order = self.request.query_params.get("sales_order")
        state = self.request.query_params.get("state")

        if batch:
            qs = qs.filter(batch_id=batch)
        if sales_order:
            qs = qs.filter(sales_order_id=sales_order)
        if state:
            qs = qs.filter(state=state)
        return qs


# EOF
