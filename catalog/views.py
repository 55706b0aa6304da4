"""Product endpoints: CRUD with guarded delete and deactivation."""

from common.api import error_response
from common.permissions import CATALOG_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import selectors
from .serializers import ProductSerializer
from .services import ProductInUseError, deactivate_product, delete_product


@extend_schema_view(
    list=extend_schema(
        tags=["Catalog Endpoints"],
        summary="List products",
        description="Active products with total batch stock. Pass `include_inactive=true` to list all.",
        parameters=[
            OpenApiParameter("category", OpenApiTypes.STR, location="query", description="api/excipient/solvent/other"),
            OpenApiParameter("include_inactive", OpenApiTypes.BOOL, location="query"),
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search by name or code"),
        ],
    ),
    retrieve=extend_schema(tags=["Catalog Endpoints"], summary="Get product"),
    create=extend_schema(tags=["Catalog Endpoints"], summary="Create product"),
    update=extend_schema(tags=["Catalog Endpoints"], summary="Update product"),
    partial_update=extend_schema(tags=["Catalog Endpoints"], summary="Partial update product"),
    destroy=extend_schema(
        tags=["Catalog Endpoints"],
        summary="Delete product",
        description="Refused with 409 when the product is used on invoices, delivery challans, sales orders or returns.",
    ),
)
class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [RoleWritePermission]
    write_roles = CATALOG_ROLES
    throttle_scope = "catalog"
    throttle_classes = [SettingsScopedRateThrottle]
    filter_backends = [drf_filters.SearchFilter, drf_filters.OrderingFilter]
    search_fields = ["product_name", "product_code", "hsn_code"]
    ordering_fields = ["product_name", "created_at"]

    def get_queryset(self):
        include_inactive = self.request.query_params.get("include_inactive") in {"1", "true", "True"}
        if self.action != "list":
            include_inactive = True
        qs = selectors.list_products(
            include_inactive=include_inactive,
            category=self.request.query_params.get("category"),
        )
        return selectors.with_stock_totals(qs)

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            delete_product(product)
        except ProductInUseError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Catalog Endpoints"], summary="Deactivate product", request=None)
    @action(detail=True, methods=["post"])
    def deactivate(self, request, pk=None):
        product = deactivate_product(self.get_object())
        return Response(ProductSerializer(product).data)

    @extend_schema(tags=["Catalog Endpoints"], summary="Products below minimum stock level")
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        qs = selectors.products_below_min_stock()
        return Response(ProductSerializer(qs, many=True).data)
