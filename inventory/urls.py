from django.urls import path

from .views import BatchListView, FifoBatchView, MovementListView, ReservationListView

urlpatterns = [
    path("batches/", BatchListView.as_view(), name="batch-list"),
    path("batches/fifo/", FifoBatchView.as_view(), name="batch-fifo"),
    path("movements/", MovementListView.as_view(), name="movement-list"),
    path("reservations/", ReservationListView.as_view(), name="reservation-list"),
]

# EOF
