from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import MaterialReturnViewSet

router = SimpleRouter()
router.register(r"material-returns", MaterialReturnViewSet, basename="material-return")

urlpatterns = [
    path("", include(router.urls)),
]
