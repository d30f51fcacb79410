"""
Chat system models.

This module defines the data models for campus chat:
- Campus room: one global room every student can read and write
- Open rooms: pairwise rooms any student can see, created on demand
- Direct rooms: private rooms between two connected students

Models:
    ChatRoom: Container for messages; type is fixed at creation
    RoomPair: Normalized user-pair identity of a direct or open room
    ChatParticipant: Membership edge between a user and a room
    MessageAttachment: Metadata of a file stored in object storage
    Message: A message posted to a room
    ReadReceipt: A user's acknowledgement that a message has been viewed

Design Decisions:
    - At most one campus room exists (partial unique constraint on type)
    - At most one direct and one open room per unordered user pair (RoomPair)
    - Messages are immutable; senders may hard-delete their own
    - Typing state is never stored here (see TypingService)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from core.exceptions import ValidationError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class RoomType(models.TextChoices):
    """
    Type of chat room.

    CAMPUS: Global singleton, readable and writable by every student
    OPEN: Pairwise room, readable and writable by every student
    DIRECT: Private pairwise room, membership-gated
    """

    CAMPUS = "campus", "Campus"
    OPEN = "open", "Open"
    DIRECT = "direct", "Direct"


# Room types whose access does not depend on membership
PUBLIC_ROOM_TYPES = frozenset({RoomType.CAMPUS, RoomType.OPEN})

# Room types created for exactly one pair of users
PAIRWISE_ROOM_TYPES = frozenset({RoomType.OPEN, RoomType.DIRECT})


class ChatRoom(UUIDPrimaryKeyMixin, BaseModel):
    """
    A conversation context.

    Fields:
        name: Optional display name ("Campus General Chat" for campus)
        room_type: campus, open or direct (immutable after creation)
        created_by: User who created the room (NULL for system-created rooms)

    Constraints:
        - single_campus_room: at most one row with room_type='campus'
    """

    name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Optional room name",
    )
    room_type = models.CharField(
        max_length=10,
        choices=RoomType.choices,
        db_index=True,
        help_text="Room type; cannot change after creation",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_chat_rooms",
        help_text="User who created the room",
    )

    class Meta:
        db_table = "chat_room"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["room_type"],
                condition=Q(room_type="campus"),
                name="single_campus_room",
            ),
        ]

    def __str__(self) -> str:
        return self.name or f"{self.get_room_type_display()} room {self.pk}"

    @property
    def is_public(self) -> bool:
        """Whether access is granted by room type rather than membership."""
        return self.room_type in PUBLIC_ROOM_TYPES

    def save(self, *args, **kwargs):
        """Reject changes to room_type on existing rooms."""
        if not self._state.adding:
            stored_type = (
                ChatRoom.objects.filter(pk=self.pk)
                .values_list("room_type", flat=True)
                .first()
            )
            if stored_type is not None and stored_type != self.room_type:
                raise ValidationError(
                    "Room type cannot be changed after creation",
                    error_code="ROOM_TYPE_IMMUTABLE",
                )
        super().save(*args, **kwargs)


class RoomPair(models.Model):
    """
    Normalized user-pair identity of a pairwise room.

    Users are stored in canonical order (lower id first). The unique
    constraint makes concurrent lookup-or-create for the same pair collapse
    onto one room: the losing insert fails and the caller re-reads.

    Fields:
        room: The direct or open room (OneToOne, serves as PK)
        room_type: Copy of room.room_type, part of the uniqueness key
        user_lower: User with lower id
        user_higher: User with higher id
    """

    room = models.OneToOneField(
        ChatRoom,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="pair",
    )
    room_type = models.CharField(
        max_length=10,
        choices=[(RoomType.OPEN, "Open"), (RoomType.DIRECT, "Direct")],
    )
    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )

    class Meta:
        db_table = "chat_room_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["room_type", "user_lower", "user_higher"],
                name="unique_room_per_user_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="room_pair_user_lower_less_than_higher",
            ),
            models.CheckConstraint(
                condition=Q(room_type__in=["open", "direct"]),
                name="room_pair_pairwise_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.room_type} pair {self.user_lower_id}/{self.user_higher_id}"

    @staticmethod
    def normalize(user_a_id, user_b_id) -> tuple:
        """Return the two user ids in canonical (lower, higher) order."""
        if user_a_id < user_b_id:
            return user_a_id, user_b_id
        return user_b_id, user_a_id


class ChatParticipant(UUIDPrimaryKeyMixin, models.Model):
    """
    A user's membership edge into a room.

    Required for direct-room access. Campus and open rooms also record
    participants for bookkeeping (room lists), but access there is by type.
    """

    room = models.ForeignKey(
        ChatRoom,
        on_delete=models.CASCADE,
        related_name="participants",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_participations",
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["room", "user"],
                name="unique_room_participant",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} in {self.room_id}"


class MessageAttachment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Metadata for a file uploaded with a message.

    The bytes live in object storage under storage_path
    (chat-attachments/<user_id>/<random>.<ext>); the bucket is private and
    clients read through temporary URLs.
    """

    storage_path = models.CharField(max_length=500, unique=True)
    content_type = models.CharField(max_length=100)
    size = models.PositiveBigIntegerField(help_text="Size in bytes")
    original_filename = models.CharField(max_length=255)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="chat_attachments",
    )

    class Meta:
        db_table = "chat_message_attachment"

    def __str__(self) -> str:
        return self.original_filename

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class Message(UUIDPrimaryKeyMixin, models.Model):
    """
    A message posted to a room.

    Messages are ordered within a room by (created_at, id). Content is
    bounded by MESSAGE_CONFIG.MAX_CONTENT_LENGTH (validated in
    MessageService). Only the sender may delete a message.
    """

    room = models.ForeignKey(
        ChatRoom,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
    )
    content = models.TextField(blank=True)
    attachment = models.OneToOneField(
        MessageAttachment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="message",
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["room", "created_at", "id"], name="chat_msg_room_order_idx"),
        ]

    def __str__(self) -> str:
        return f"Message {self.pk} in {self.room_id}"


class ReadReceipt(UUIDPrimaryKeyMixin, models.Model):
    """
    Per-user acknowledgement that a message has been viewed.

    A message is read by a user iff a receipt exists for the pair.
    Senders never hold receipts for their own messages.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="read_receipts",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_read_receipts",
    )
    read_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "chat_read_receipt"
        ordering = ["read_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_message_read_receipt",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} read {self.message_id}"

    def save(self, *args, **kwargs):
        """Reject receipts by the message's own sender."""
        if self.message.sender_id == self.user_id:
            raise ValidationError(
                "Senders cannot hold read receipts for their own messages",
                error_code="OWN_MESSAGE",
            )
        super().save(*args, **kwargs)
