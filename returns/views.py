"""Material return endpoints."""

from common.api import error_response
from common.errors import DomainError
from common.permissions import RETURNS_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import MaterialReturn
from .serializers import MaterialReturnSerializer, RejectSerializer, ReturnCreateSerializer
from .services import approve_return, create_return, delete_return, reject_return


@extend_schema_view(
    list=extend_schema(
        tags=["Returns Endpoints"],
        summary="List material returns",
        parameters=[
            OpenApiParameter(name="status", required=False, type=str),
            OpenApiParameter(name="customer", required=False, type=int),
        ],
    ),
    retrieve=extend_schema(tags=["Returns Endpoints"], summary="Get material return"),
    destroy=extend_schema(
        tags=["Returns Endpoints"],
        summary="Delete material return",
        description="Only returns that are not approved can be deleted.",
    ),
)
class MaterialReturnViewSet(
    mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet
):
    serializer_class = MaterialReturnSerializer
    permission_classes = [RoleWritePermission]
    write_roles = RETURNS_ROLES
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "returns" if self.request.method == "GET" else "returns_write"
        return super().get_throttles()

    def get_queryset(self):
        qs = MaterialReturn.objects.select_related("customer", "original_challan").prefetch_related(
            "items__product", "items__batch"
        )
        params = self.request.query_params
        if params.get("status"):
            qs = qs.filter(status=params["status"])
        if params.get("customer"):
            qs = qs.filter(customer_id=params["customer"])
        return qs.order_by("-created_at", "-id")

    @extend_schema(
        tags=["Returns Endpoints"],
        summary="Create material return",
        description="Lines with a zero quantity are ignored. Quantities are checked against the original challan.",
        request=ReturnCreateSerializer,
        responses={201: MaterialReturnSerializer},
        examples=[
            OpenApiExample(
                "Create",
                value={
                    "customer": 3,
                    "original_challan": 12,
                    "return_date": "2025-02-10",
                    "return_type": "quality_issue",
                    "return_reason": "Moisture in two drums",
                    "items": [{"product_id": 10, "batch_id": 4, "quantity_returned": "50", "condition": "damaged"}],
                },
                request_only=True,
            )
        ],
    )
    def create(self, request, *args, **kwargs):
        serializer = ReturnCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        try:
            ret = create_return(user=request.user, **data)
        except DomainError as exc:
            return error_response(exc)
        return Response(MaterialReturnSerializer(self._fresh(ret)).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        try:
            delete_return(self.get_object())
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Returns Endpoints"],
        summary="Approve material return",
        description="Approves the return and restocks items in good condition into their batches.",
        request=None,
    )
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        try:
            ret = approve_return(self.get_object(), request.user)
        except DomainError as exc:
            return error_response(exc)
        return Response(MaterialReturnSerializer(self._fresh(ret)).data)

    @extend_schema(tags=["Returns Endpoints"], summary="Reject material return", request=RejectSerializer)
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            ret = reject_return(self.get_object(), request.user, serializer.validated_data["reason"])
        except DomainError as exc:
            return error_response(exc)
        return Response(MaterialReturnSerializer(self._fresh(ret)).data)

    def _fresh(self, ret):
        return self.get_queryset().get(pk=ret.pk)
