"""CRM endpoints: leads and appointment scheduling."""

from common.api import error_response
from common.errors import DomainError
from common.permissions import CRM_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from customer.models import Customer
from django.shortcuts import get_object_or_404
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Lead
from .selectors import list_appointments, past_appointments, upcoming_appointments
from .serializers import (
    AppointmentCreateSerializer,
    AppointmentInputSerializer,
    AppointmentSerializer,
    LeadSerializer,
)
from .services import complete_appointment, create_appointment, delete_appointment, update_appointment


@extend_schema_view(
    list=extend_schema(tags=["CRM Endpoints"], summary="List leads"),
    retrieve=extend_schema(tags=["CRM Endpoints"], summary="Get lead"),
    create=extend_schema(tags=["CRM Endpoints"], summary="Create lead"),
    update=extend_schema(tags=["CRM Endpoints"], summary="Update lead"),
    partial_update=extend_schema(tags=["CRM Endpoints"], summary="Partial update lead"),
    destroy=extend_schema(tags=["CRM Endpoints"], summary="Delete lead"),
)
class LeadViewSet(viewsets.ModelViewSet):
    queryset = Lead.objects.all()
    serializer_class = LeadSerializer
    permission_classes = [RoleWritePermission]
    write_roles = CRM_ROLES
    throttle_scope = "crm"
    throttle_classes = [SettingsScopedRateThrottle]
    filter_backends = [drf_filters.SearchFilter]
    search_fields = ["company_name", "contact_person"]


@extend_schema_view(
    list=extend_schema(
        tags=["CRM Endpoints"],
        summary="List appointments",
        parameters=[
            OpenApiParameter(name="customer", required=False, type=int),
            OpenApiParameter(name="lead", required=False, type=int),
            OpenApiParameter(name="when", required=False, type=str, enum=["upcoming", "past"]),
        ],
    ),
    retrieve=extend_schema(tags=["CRM Endpoints"], summary="Get appointment"),
    destroy=extend_schema(tags=["CRM Endpoints"], summary="Delete appointment"),
)
class AppointmentViewSet(
    mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet
):
    serializer_class = AppointmentSerializer
    permission_classes = [RoleWritePermission]
    write_roles = CRM_ROLES
    throttle_scope = "crm"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_queryset(self):
        params = self.request.query_params
        customer = get_object_or_404(Customer, pk=params["customer"]) if params.get("customer") else None
        lead = get_object_or_404(Lead, pk=params["lead"]) if params.get("lead") else None
        qs = list_appointments(customer=customer, lead=lead)
        if params.get("when") == "upcoming":
            qs = upcoming_appointments(qs)
        elif params.get("when") == "past":
            qs = past_appointments(qs)
        return qs

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["now"] = timezone.now()
        return context

    @extend_schema(
        tags=["CRM Endpoints"],
        summary="Schedule appointment",
        request=AppointmentCreateSerializer,
        responses={201: AppointmentSerializer},
    )
    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            appt = create_appointment(user=request.user, **serializer.validated_data)
        except DomainError as exc:
            return error_response(exc)
        return Response(self.get_serializer(appt).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["CRM Endpoints"],
        summary="Update appointment",
        request=AppointmentInputSerializer,
        responses={200: AppointmentSerializer},
    )
    def partial_update(self, request, *args, **kwargs):
        serializer = AppointmentInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            appt = update_appointment(self.get_object(), **serializer.validated_data)
        except DomainError as exc:
            return error_response(exc)
        return Response(self.get_serializer(appt).data)

    def perform_destroy(self, instance):
        delete_appointment(instance)

    @extend_schema(tags=["CRM Endpoints"], summary="Mark appointment completed", request=None)
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        appt = complete_appointment(self.get_object())
        return Response(self.get_serializer(appt).data)
