from django.core.management.base import BaseCommand
from django.utils import timezone

from housing.realtime.consumers import notify_refresh
from housing.services.dashboard import DashboardCache, build_detailed


class Command(BaseCommand):
    help = "Rebuild the cached superadmin dashboard and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        cache = DashboardCache()
        data = build_detailed()
        cache.set(data)

        event = notify_refresh([cache.key])
        if event is None:
            self.stdout.write(self.style.WARNING("No channel layer configured; skipped broadcast"))

        self.stdout.write(self.style.SUCCESS(
            f"Dashboard refreshed at {timezone.now()}: {data['totalStudentsCount']} students, "
            f"{data['totalRoomsCount']} rooms"
        ))
