"""
WebSocket consumers for live poll updates.
"""

import json
import logging
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from apps.polls.models import Poll
from apps.polls.services import get_poll_group_name

logger = logging.getLogger(__name__)


def normalize_poll_id(poll_id):
    """Canonical string form of a poll id, or None if it is not a UUID."""
    try:
        return str(uuid.UUID(str(poll_id)))
    except (TypeError, ValueError):
        return None


class PollUpdatesConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer for real-time poll updates.

    One connection may watch several polls. Clients join and leave poll
    groups with messages; every member of ``poll_<id>`` receives
    ``vote-update`` and ``options-update`` events for that poll.

    Client messages:
    - {"type": "join-poll", "poll_id": "<uuid>"}
    - {"type": "leave-poll", "poll_id": "<uuid>"}
    - {"type": "ping"}
    """

    async def connect(self):
        """Handle WebSocket connection."""
        self.joined_groups = set()
        await self.accept()
        logger.info(f"WebSocket connected: channel={self.channel_name}")

    async def disconnect(self, close_code):
        """Leave every poll group this connection joined."""
        for group_name in list(self.joined_groups):
            await self.channel_layer.group_discard(group_name, self.channel_name)
        self.joined_groups.clear()

        logger.info(f"WebSocket disconnected: channel={self.channel_name}, close_code={close_code}")

    async def receive(self, text_data=None, bytes_data=None):
        """Handle messages received from WebSocket."""
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON format")
            return

        if not isinstance(data, dict):
            await self.send_error("Message must be a JSON object")
            return

        message_type = data.get("type")
        poll_id = data.get("poll_id") or data.get("pollId")

        if message_type == "join-poll":
            await self.join_poll(poll_id)
        elif message_type == "leave-poll":
            await self.leave_poll(poll_id)
        elif message_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_error(f"Unknown message type: {message_type}")

    async def join_poll(self, poll_id):
        poll_id = normalize_poll_id(poll_id)
        if not poll_id or not await self.poll_exists(poll_id):
            await self.send_error("Poll not found")
            return

        group_name = get_poll_group_name(poll_id)
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.joined_groups.add(group_name)

        logger.debug(f"Channel {self.channel_name} joined {group_name}")
        await self.send_json({"type": "joined", "poll_id": str(poll_id)})

    async def leave_poll(self, poll_id):
        poll_id = normalize_poll_id(poll_id)
        if not poll_id:
            await self.send_error("A valid poll_id is required")
            return

        group_name = get_poll_group_name(poll_id)
        await self.channel_layer.group_discard(group_name, self.channel_name)
        self.joined_groups.discard(group_name)

        await self.send_json({"type": "left", "poll_id": str(poll_id)})

    async def vote_update(self, event):
        """Relay a results-changed event to the client."""
        await self.send_json(
            {
                "type": "vote-update",
                "poll_id": event["poll_id"],
                "options": event["options"],
                "stats": event["stats"],
            }
        )

    async def options_update(self, event):
        """Relay an options-changed event to the client."""
        await self.send_json(
            {
                "type": "options-update",
                "poll_id": event["poll_id"],
                "options": event["options"],
            }
        )

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))

    async def send_error(self, message):
        await self.send_json({"type": "error", "message": message})

    @database_sync_to_async
    def poll_exists(self, poll_id):
        return Poll.objects.filter(id=poll_id).exists()
