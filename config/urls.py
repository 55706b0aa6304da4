"""URL configuration for the PharmaDist ERP API."""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .health import health

admin.site.site_header = "PharmaDist Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Versioned v1 routes only
    path("api/v1/account/", include("users.urls")),
    path("api/v1/catalog/", include("catalog.urls")),
    path("api/v1/", include("customer.urls")),
    path("api/v1/inventory/", include("inventory.urls")),
    path("api/v1/sales-orders/", include("orders.urls")),
    path("api/v1/dispatch/", include("dispatch.urls")),
    path("api/v1/returns/", include("returns.urls")),
    path("api/v1/finance/", include("finance.urls")),
    path("api/v1/crm/", include("crm.urls")),
]
