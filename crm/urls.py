from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import AppointmentViewSet, LeadViewSet

router = SimpleRouter()
router.register(r"leads", LeadViewSet, basename="lead")
router.register(r"appointments", AppointmentViewSet, basename="appointment")

urlpatterns = [path("", include(router.urls))]
