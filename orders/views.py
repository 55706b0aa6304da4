"""Sales order endpoints.

Orders are created with FIFO stock reservations; delivery progress is
driven by delivery challans.
"""

from common.api import error_response
from common.errors import DomainError
from common.permissions import DISPATCH_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import SalesOrder
from .serializers import SalesOrderCreateSerializer, SalesOrderSerializer
from .services import cancel_order, create_sales_order


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class SalesOrderListView(generics.ListAPIView):
    """List sales orders with basic filters.

    Filters:
    - `status`: one of the SalesOrderStatus values
    - `customer`: customer id
    - `archived`: true/false
    """

    permission_classes = [RoleWritePermission]
    write_roles = DISPATCH_ROLES
    serializer_class = SalesOrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "dispatch"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_queryset(self):
        qs = SalesOrder.objects.select_related("customer").prefetch_related("items__product").order_by("-id")
        params = self.request.query_params
        if params.get("status"):
            qs = qs.filter(status=params["status"])
        if params.get("customer"):
            qs = qs.filter(customer_id=params["customer"])
        archived = params.get("archived")
        if archived is not None:
            qs = qs.filter(is_archived=archived in {"1", "true", "True"})
        return qs

    @extend_schema(
        tags=["Sales Orders"],
        summary="List sales orders",
        parameters=[
            OpenApiParameter(name="status", required=False, type=str),
            OpenApiParameter(name="customer", required=False, type=int),
            OpenApiParameter(name="archived", required=False, type=bool),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Sales Orders"],
        summary="Create sales order",
        description="Creates the order and reserves stock on FIFO batches unless `reserve` is false.",
        request=SalesOrderCreateSerializer,
        responses={201: SalesOrderSerializer},
    )
    def post(self, request, *args, **kwargs):
        serializer = SalesOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            order = create_sales_order(
                customer=data["customer"],
                order_date=data["order_date"],
                notes=data.get("notes", ""),
                reserve=data.get("reserve", True),
                items=[{"product_id": line["product_id"].id, "quantity": line["quantity"]} for line in data["items"]],
                user=request.user,
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(SalesOrderSerializer(order).data, status=status.HTTP_201_CREATED)


class SalesOrderDetailView(generics.RetrieveAPIView):
    permission_classes = [RoleWritePermission]
    serializer_class = SalesOrderSerializer
    throttle_scope = "dispatch"
    throttle_classes = [SettingsScopedRateThrottle]
    lookup_url_kwarg = "order_id"

    def get_queryset(self):
        return SalesOrder.objects.select_related("customer").prefetch_related("items__product")

    @extend_schema(tags=["Sales Orders"], summary="Get sales order")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class SalesOrderCancelView(APIView):
    permission_classes = [RoleWritePermission]
    write_roles = DISPATCH_ROLES
    throttle_scope = "dispatch_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Sales Orders"],
        summary="Cancel sales order",
        description="Cancels an undelivered order and releases its stock reservations.",
        request=None,
        responses={200: SalesOrderSerializer},
    )
    def post(self, request, order_id: int):
        order = generics.get_object_or_404(SalesOrder, pk=order_id)
        try:
            order = cancel_order(order)
        except DomainError as exc:
            return error_response(exc)
        return Response(SalesOrderSerializer(order).data)
