"""URL routes for the sales orders app (v1)."""

from django.urls import path

from .views import SalesOrderCancelView, SalesOrderDetailView, SalesOrderListView

app_name = "orders"

urlpatterns = [
    path("", SalesOrderListView.as_view(), name="sales-order-list"),
    path("<int:order_id>/", SalesOrderDetailView.as_view(), name="sales-order-detail"),
    path("<int:order_id>/cancel/", SalesOrderCancelView.as_view(), name="sales-order-cancel"),
]
