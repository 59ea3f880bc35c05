from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.management.base import BaseCommand
from django.utils import timezone

from hms.services.cash import UPDATES_GROUP
from hms.services.dashboard import STATS_CACHE_KEY, refresh_stats


class Command(BaseCommand):
    help = "Warm the dashboard caches and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        refresh_stats()
        keys_refreshed = [STATS_CACHE_KEY]

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(),
                     "keys": keys_refreshed}
            async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
