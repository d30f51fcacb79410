"""
WebSocket consumers for the chat application.

This module implements the WebSocket consumer for live chat rooms, handling
connection management, event fan-out and the client-side actions that
mirror the REST endpoints.

Consumers:
    ChatRoomConsumer: One connection per user viewing one room

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"].

Close codes:
    4001: Not authenticated
    4004: Room does not exist
    4003: Not allowed to read the room

Channel Groups:
    Each room has a channel group named "chat_room_{room_id}".

Message Types (from client):
    - typing:  {"type": "typing", "is_typing": true}
    - message: {"type": "message", "content": "Hello!"}
    - read:    {"type": "read", "message_id": "<uuid>"}

Message Types (to client):
    - typing.snapshot: Users typing when the connection opened
    - message: New message in the room
    - message.deleted: A message was deleted
    - receipt: A message was read
    - typing: A user started or stopped typing
    - error: The last client frame was rejected
"""

from __future__ import annotations

import logging
from uuid import UUID

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.authorization import RoomAccessPolicy
from chat.models import ChatRoom, Message
from chat.notifier import room_group_name
from chat.services import MessageService, ReadReceiptService, TypingService

logger = logging.getLogger(__name__)

CLOSE_UNAUTHENTICATED = 4001
CLOSE_FORBIDDEN = 4003
CLOSE_NOT_FOUND = 4004


class ChatRoomConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for a single chat room.

    Handles:
        - Connection authentication and authorization
        - Joining/leaving the room's channel group
        - Sending messages, typing indicators and read receipts
        - Relaying room events to the client

    Attributes:
        room_id: UUID of the connected room
        room: ChatRoom instance (after connect)
        room_group_name: Channel layer group for the room
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.room_id: UUID | None = None
        self.room: ChatRoom | None = None
        self.room_group_name: str | None = None

    async def connect(self):
        """
        Handle WebSocket connection.

        Validates:
            1. User is authenticated
            2. Room exists
            3. User may read the room

        On success, joins the channel group, accepts, and sends the current
        typing snapshot.
        """
        self.room_id = self.scope["url_route"]["kwargs"]["room_id"]
        user = self.scope.get("user")

        if user is None or not user.is_authenticated:
            logger.warning(f"Rejected unauthenticated connection to room {self.room_id}")
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        self.room = await self._get_room()
        if self.room is None:
            logger.warning(
                f"User {user.id} tried to connect to non-existent room {self.room_id}"
            )
            await self.close(code=CLOSE_NOT_FOUND)
            return

        if not await self._can_read(user):
            logger.warning(f"User {user.id} denied access to room {self.room_id}")
            await self.close(code=CLOSE_FORBIDDEN)
            return

        self.room_group_name = room_group_name(self.room_id)
        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        # Echo the "jwt" subprotocol when the token arrived that way
        subprotocols = self.scope.get("subprotocols") or []
        await self.accept(subprotocol="jwt" if subprotocols[:1] == ["jwt"] else None)

        typists = await database_sync_to_async(TypingService.snapshot)(self.room_id)
        await self.send_json({"type": "typing.snapshot", "typists": typists})

        logger.info(f"User {user.id} connected to room {self.room_id}")

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Clears the user's typing state (broadcasting false) and leaves the
        channel group if one was joined.
        """
        if not self.room_group_name:
            return

        user = self.scope["user"]
        await database_sync_to_async(TypingService.clear)(self.room_id, user)
        await self.channel_layer.group_discard(self.room_group_name, self.channel_name)
        logger.info(f"User {user.id} disconnected from room {self.room_id}")

    async def receive_json(self, content, **kwargs):
        """Dispatch a client frame by its type."""
        message_type = content.get("type") if isinstance(content, dict) else None
        user = self.scope["user"]

        if message_type == "typing":
            await self._handle_typing(user, content)
        elif message_type == "message":
            await self._handle_message(user, content)
        elif message_type == "read":
            await self._handle_read(user, content)
        else:
            await self._send_error(
                f"Unknown message type: {message_type}", "UNKNOWN_TYPE"
            )

    # =========================================================================
    # Client frames
    # =========================================================================

    async def _handle_typing(self, user, content):
        result = await database_sync_to_async(TypingService.set_typing)(
            self.room, user, bool(content.get("is_typing", False))
        )
        if not result.success:
            await self._send_error(result.error, result.error_code)

    async def _handle_message(self, user, content):
        """
        Send a text message through MessageService.

        The sender receives their own message through the group broadcast,
        like every other subscriber.
        """
        text = content.get("content")
        if not isinstance(text, str):
            text = ""

        result = await database_sync_to_async(MessageService.send_message)(
            self.room, user, content=text
        )
        if not result.success:
            await self._send_error(result.error, result.error_code)

    async def _handle_read(self, user, content):
        message = await self._get_message(content.get("message_id"))
        if message is None:
            await self._send_error("Message not found", "MESSAGE_NOT_FOUND")
            return

        result = await database_sync_to_async(ReadReceiptService.mark_read)(
            message, user
        )
        if not result.success:
            await self._send_error(result.error, result.error_code)

    async def _send_error(self, error: str, error_code: str | None):
        await self.send_json({"type": "error", "error": error, "error_code": error_code})

    # =========================================================================
    # Group events
    # =========================================================================

    async def chat_message(self, event):
        await self.send_json({"type": "message", "message": event["message"]})

    async def chat_message_deleted(self, event):
        await self.send_json(
            {"type": "message.deleted", "message_id": event["message_id"]}
        )

    async def chat_receipt(self, event):
        await self.send_json({"type": "receipt", "receipt": event["receipt"]})

    async def chat_typing(self, event):
        """Relay typing indicators from other users only."""
        if event["user_id"] == str(self.scope["user"].id):
            return

        await self.send_json(
            {
                "type": "typing",
                "user_id": event["user_id"],
                "display_name": event["display_name"],
                "is_typing": event["is_typing"],
            }
        )

    # =========================================================================
    # Database helpers
    # =========================================================================

    @database_sync_to_async
    def _get_room(self) -> ChatRoom | None:
        return ChatRoom.objects.filter(id=self.room_id).first()

    @database_sync_to_async
    def _can_read(self, user) -> bool:
        return RoomAccessPolicy.can_read_messages(user, self.room)

    @database_sync_to_async
    def _get_message(self, message_id) -> Message | None:
        try:
            message_uuid = UUID(str(message_id))
        except ValueError:
            return None
        return (
            Message.objects.select_related("room")
            .filter(id=message_uuid, room_id=self.room_id)
            .first()
        )
