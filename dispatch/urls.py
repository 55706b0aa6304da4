from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import DeliveryChallanViewSet, SuggestedItemsView

router = SimpleRouter()
router.register(r"challans", DeliveryChallanViewSet, basename="challan")

urlpatterns = [
    path("", include(router.urls)),
    path("orders/<int:order_id>/suggested-items/", SuggestedItemsView.as_view(), name="challan-suggested-items"),
]
