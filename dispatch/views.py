"""Delivery challan endpoints.

Views stay thin: validation of line items, stock movements and approval
guards live in ``dispatch.services``.
"""

from common.api import error_response
from common.errors import DomainError
from common.permissions import DISPATCH_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from inventory.services import suggest_line_items_for_order
from orders.models import SalesOrder
from rest_framework import generics, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import DeliveryChallan
from .serializers import (
    ChallanCreateSerializer,
    ChallanHeaderInputSerializer,
    DeliveryChallanSerializer,
    RejectSerializer,
)
from .services import approve_challan, create_challan, delete_challan, reject_challan, update_challan


@extend_schema_view(
    list=extend_schema(
        tags=["Dispatch Endpoints"],
        summary="List delivery challans",
        parameters=[
            OpenApiParameter(name="approval_status", required=False, type=str),
            OpenApiParameter(name="customer", required=False, type=int),
        ],
    ),
    retrieve=extend_schema(tags=["Dispatch Endpoints"], summary="Get delivery challan"),
    destroy=extend_schema(
        tags=["Dispatch Endpoints"],
        summary="Delete delivery challan",
        description=(
            "Deletes the challan and reverts a linked sales order to pending delivery. Stock is not restored. "
            "Refused with 409 when material returns reference the challan."
        ),
    ),
)
class DeliveryChallanViewSet(
    mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet
):
    serializer_class = DeliveryChallanSerializer
    permission_classes = [RoleWritePermission]
    write_roles = DISPATCH_ROLES
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "dispatch" if self.request.method == "GET" else "dispatch_write"
        return super().get_throttles()

    def get_queryset(self):
        qs = DeliveryChallan.objects.select_related("customer", "sales_order").prefetch_related(
            "items__product", "items__batch"
        )
        params = self.request.query_params
        if params.get("approval_status"):
            qs = qs.filter(approval_status=params["approval_status"])
        if params.get("customer"):
            qs = qs.filter(customer_id=params["customer"])
        return qs.order_by("-challan_date", "-id")

    @extend_schema(
        tags=["Dispatch Endpoints"],
        summary="Create delivery challan",
        description=(
            "Creates a challan pending approval and deducts stock from the selected batches. "
            "When `sales_order` is set, the order's reservations are released and its delivery status updated."
        ),
        request=ChallanCreateSerializer,
        responses={201: DeliveryChallanSerializer},
        examples=[
            OpenApiExample(
                "Create",
                value={
                    "customer": 3,
                    "challan_date": "2025-02-01",
                    "items": [{"product_id": 10, "batch_id": 4, "quantity": "50.000", "pack_size": "25", "pack_type": "drum", "number_of_packs": 2}],
                },
                request_only=True,
            )
        ],
    )
    def create(self, request, *args, **kwargs):
        serializer = ChallanCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        try:
            challan = create_challan(
                customer=data.pop("customer"),
                sales_order=data.pop("sales_order", None),
                items=data.pop("items"),
                user=request.user,
                **data,
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(DeliveryChallanSerializer(self._fresh(challan)).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Dispatch Endpoints"],
        summary="Update delivery challan",
        description="Replaces header and items of a pending challan, applying net stock adjustments per batch.",
        request=ChallanHeaderInputSerializer,
        responses={200: DeliveryChallanSerializer},
    )
    def update(self, request, *args, **kwargs):
        challan = self.get_object()
        serializer = ChallanHeaderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        try:
            challan = update_challan(challan, items=data.pop("items"), user=request.user, **data)
        except DomainError as exc:
            return error_response(exc)
        return Response(DeliveryChallanSerializer(self._fresh(challan)).data)

    def destroy(self, request, *args, **kwargs):
        try:
            delete_challan(self.get_object())
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Dispatch Endpoints"], summary="Approve delivery challan", request=None)
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        try:
            challan = approve_challan(self.get_object(), request.user)
        except DomainError as exc:
            return error_response(exc)
        return Response(DeliveryChallanSerializer(self._fresh(challan)).data)

    @extend_schema(tags=["Dispatch Endpoints"], summary="Reject delivery challan", request=RejectSerializer)
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            challan = reject_challan(self.get_object(), request.user, serializer.validated_data["reason"])
        except DomainError as exc:
            return error_response(exc)
        return Response(DeliveryChallanSerializer(self._fresh(challan)).data)

    def _fresh(self, challan):
        return self.get_queryset().get(pk=challan.pk)


class SuggestedItemsView(APIView):
    """FIFO pre-fill of challan lines for a sales order."""

    permission_classes = [RoleWritePermission]
    throttle_scope = "dispatch"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Dispatch Endpoints"],
        summary="Suggested challan items for a sales order",
        description="Pending quantity per order line with the FIFO batch; `batch_id` is null when no batch qualifies.",
    )
    def get(self, request, order_id: int):
        order = generics.get_object_or_404(SalesOrder.objects.prefetch_related("items"), pk=order_id)
        return Response({"sales_order": order.id, "items": suggest_line_items_for_order(order)})
