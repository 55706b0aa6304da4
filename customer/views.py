"""Customer API views.

Reads are open to authenticated staff; writes are limited to sales roles.
"""

from common.permissions import CRM_ROLES, RoleWritePermission
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import viewsets

from .models import Customer
from .selectors import list_active_customers
from .serializers import CustomerSerializer


@extend_schema_view(
    list=extend_schema(tags=["Customer Endpoints"], summary="List active customers"),
    retrieve=extend_schema(tags=["Customer Endpoints"], summary="Get customer"),
    create=extend_schema(tags=["Customer Endpoints"], summary="Create customer"),
    update=extend_schema(tags=["Customer Endpoints"], summary="Update customer"),
    partial_update=extend_schema(tags=["Customer Endpoints"], summary="Partial update customer"),
    destroy=extend_schema(tags=["Customer Endpoints"], summary="Delete customer"),
)
class CustomerViewSet(viewsets.ModelViewSet):
    serializer_class = CustomerSerializer
    permission_classes = [RoleWritePermission]
    write_roles = CRM_ROLES
    throttle_scope = "crm"
    throttle_classes = [SettingsScopedRateThrottle]
    filter_backends = [drf_filters.SearchFilter]
    search_fields = ["company_name", "city"]

    def get_queryset(self):
        if self.action == "list":
            return list_active_customers()
        return Customer.objects.all()
