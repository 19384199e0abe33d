"""
WebSocket push for dashboard clients.

Clients connected to ``ws/updates/`` join the ``updates`` group and are
told to re-fetch whenever ``refresh_dashboard`` rebuilds the cached
dashboard.
"""
import json

from asgiref.sync import async_to_sync
from channels.generic.websocket import AsyncWebsocketConsumer
from channels.layers import get_channel_layer
from django.utils import timezone

UPDATES_GROUP = "updates"


class UpdatesConsumer(AsyncWebsocketConsumer):
    async def connect(self):
        await self.channel_layer.group_add(UPDATES_GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "group": UPDATES_GROUP}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(UPDATES_GROUP, self.channel_name)

    async def broadcast_refresh(self, event):
        # {"type": "broadcast.refresh", "version": int, "ts": iso, "keys": [...]}
        await self.send(json.dumps(event))


def notify_refresh(keys) -> dict | None:
    """Send a ``broadcast.refresh`` event to the updates group; returns the event or None without a layer."""
    layer = get_channel_layer()
    if layer is None:
        return None
    now = timezone.now()
    event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(),
             "keys": list(keys)[:50]}
    async_to_sync(layer.group_send)(UPDATES_GROUP, event)
    return event
