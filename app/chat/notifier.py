"""
Realtime fan-out of chat events through the channel layer.

Every room has one channel group, "chat_room_<room_id>". ChatRoomConsumer
instances join the group of the room they are viewing; this module
publishes to it.

Row events (message created, message deleted, receipt created) are
published from transaction.on_commit, so subscribers never see a row that
was rolled back and events leave in commit order. Typing events carry no
row and are published immediately.

A channel layer failure is logged; it never undoes the committed write.
Offline or disconnected clients reconcile through the message list API.

Event types (consumer handler in parentheses):
    chat.message          (chat_message)
    chat.message_deleted  (chat_message_deleted)
    chat.receipt          (chat_receipt)
    chat.typing           (chat_typing)
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from rest_framework.renderers import JSONRenderer

if TYPE_CHECKING:
    from chat.models import Message, ReadReceipt

logger = logging.getLogger(__name__)


def room_group_name(room_id) -> str:
    """Channel group for a room."""
    return f"chat_room_{room_id}"


def _json_safe(data) -> dict:
    # Channel layers serialize with msgpack; UUIDs and datetimes must be strings
    return json.loads(JSONRenderer().render(data))


class RoomNotifier:
    """
    Publishes chat events to a room's subscribers.

    Usage:
        with transaction.atomic():
            message = Message.objects.create(...)
            RoomNotifier.message_created(message)
        # event is sent once the transaction commits
    """

    @classmethod
    def message_created(cls, message: "Message") -> None:
        from chat.serializers import MessageSerializer

        payload = _json_safe(MessageSerializer(message).data)
        cls._publish_on_commit(
            message.room_id,
            {"type": "chat.message", "message": payload},
        )

    @classmethod
    def message_deleted(cls, room_id, message_id) -> None:
        cls._publish_on_commit(
            room_id,
            {"type": "chat.message_deleted", "message_id": str(message_id)},
        )

    @classmethod
    def receipt_created(cls, receipt: "ReadReceipt", room_id) -> None:
        cls._publish_on_commit(
            room_id,
            {
                "type": "chat.receipt",
                "receipt": {
                    "message_id": str(receipt.message_id),
                    "user_id": str(receipt.user_id),
                    "read_at": receipt.read_at.isoformat(),
                },
            },
        )

    @classmethod
    def typing(cls, room_id, user_id, display_name: str, is_typing: bool) -> None:
        cls.publish(
            room_id,
            {
                "type": "chat.typing",
                "user_id": str(user_id),
                "display_name": display_name,
                "is_typing": is_typing,
            },
        )

    @classmethod
    def _publish_on_commit(cls, room_id, event: dict) -> None:
        transaction.on_commit(lambda: cls.publish(room_id, event))

    @classmethod
    def publish(cls, room_id, event: dict) -> bool:
        """
        Send an event to the room's group.

        Returns:
            True if the channel layer accepted the event
        """
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("No channel layer configured; dropping chat event")
            return False

        try:
            async_to_sync(channel_layer.group_send)(room_group_name(room_id), event)
        except Exception as e:
            logger.warning(
                f"Failed to publish {event.get('type')} to room {room_id}: {e}"
            )
            return False

        return True
