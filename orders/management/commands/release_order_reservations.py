from django.core.management.base import BaseCommand
from inventory.models import BatchReservation
from orders.models import SalesOrder
from orders.services import release_order_reservations


class Command(BaseCommand):
    help = "Release active stock reservations still held by cancelled sales orders."

    def handle(self, *args, **options):
        held = BatchReservation.objects.filter(
            state=BatchReservation.STATE_ACTIVE, sales_order__status=SalesOrder.STATUS_CANCELLED
        ).values_list("sales_order_id", flat=True)
        count = 0
        for order in SalesOrder.objects.filter(id__in=set(held)):
            count += release_order_reservations(order)
        self.stdout.write(self.style.SUCCESS(f"Reservations released: {count}"))
