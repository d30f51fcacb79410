"""
Serializers for chat API.

This module provides serializers for the chat system:
- Room serializers (read, pairwise create)
- Participant serializers (read, create)
- Message serializers (read with receipts, create)

Serializer Hierarchy:
    ChatRoomSerializer: Room with participant count
    PairRoomCreateSerializer: Target user for direct/open room creation

    ParticipantSerializer: Participant with user info
    ParticipantCreateSerializer: Join a room or add a user

    MessageSerializer: Message with attachment, receipts and read state
    MessageCreateSerializer: Send new message (JSON or multipart)
    ReadReceiptSerializer: Single receipt

Design Decisions:
    - Read and write serializers are separate
    - Content limits are enforced by MessageService, not here, so the API
      reports the same error codes as the WebSocket path
    - Attachment URLs are temporary; clients must re-fetch them once expired
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from chat.models import (
    ChatParticipant,
    ChatRoom,
    Message,
    MessageAttachment,
    ReadReceipt,
    RoomType,
)
from chat.services import ReadReceiptService
from chat.storage import AttachmentStorageService

User = get_user_model()


# =============================================================================
# Message Serializers
# =============================================================================


class ReadReceiptSerializer(serializers.ModelSerializer):
    """A user's read receipt for a message."""

    message_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ReadReceipt
        fields = ["message_id", "user_id", "read_at"]
        read_only_fields = fields


class MessageAttachmentSerializer(serializers.ModelSerializer):
    """
    Attachment metadata with a temporary download URL.

    The URL is absolute when a request is in the serializer context.
    """

    url = serializers.SerializerMethodField()
    is_image = serializers.BooleanField(read_only=True)

    class Meta:
        model = MessageAttachment
        fields = ["id", "original_filename", "content_type", "size", "is_image", "url"]
        read_only_fields = fields

    def get_url(self, obj) -> str:
        url = AttachmentStorageService.create_temporary_url(obj.storage_path)
        request = self.context.get("request")
        if request is not None and url.startswith("/"):
            return request.build_absolute_uri(url)
        return url


class MessageSerializer(serializers.ModelSerializer):
    """
    Message with sender, attachment, receipts and aggregate read state.

    read_state is "read" once anyone other than the sender holds a receipt,
    otherwise "sent".
    """

    room_id = serializers.UUIDField(read_only=True)
    sender = UserSummarySerializer(read_only=True)
    attachment = MessageAttachmentSerializer(read_only=True, allow_null=True)
    read_receipts = ReadReceiptSerializer(many=True, read_only=True)
    read_state = serializers.SerializerMethodField(
        help_text="'read' or 'sent'",
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "room_id",
            "sender",
            "content",
            "attachment",
            "read_receipts",
            "read_state",
            "created_at",
        ]
        read_only_fields = fields

    def get_read_state(self, obj) -> str:
        return ReadReceiptService.read_state(obj)


class MessageCreateSerializer(serializers.Serializer):
    """
    Input for sending a message.

    Either content or file must be present; limits are checked by
    MessageService.
    """

    content = serializers.CharField(
        required=False,
        allow_blank=True,
        trim_whitespace=False,
        default="",
    )
    file = serializers.FileField(required=False, allow_empty_file=False)


# =============================================================================
# Participant Serializers
# =============================================================================


class ParticipantSerializer(serializers.ModelSerializer):
    """Participant with compact user info."""

    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = ChatParticipant
        fields = ["id", "user", "joined_at"]
        read_only_fields = fields


class ParticipantCreateSerializer(serializers.Serializer):
    """
    Input for adding a participant.

    Omit user_id to join the room yourself.
    """

    user_id = serializers.UUIDField(required=False)

    def validate_user_id(self, value):
        user = User.objects.filter(id=value, is_active=True).first()
        if user is None:
            raise serializers.ValidationError("User not found")
        return user


# =============================================================================
# Room Serializers
# =============================================================================


class ChatRoomSerializer(serializers.ModelSerializer):
    """
    Room representation for lists and detail.

    Pairwise rooms include both members; the campus room does not list
    its (potentially large) membership.
    """

    created_by = serializers.UUIDField(source="created_by_id", read_only=True)
    participant_count = serializers.SerializerMethodField()
    members = serializers.SerializerMethodField()

    class Meta:
        model = ChatRoom
        fields = [
            "id",
            "name",
            "room_type",
            "created_by",
            "participant_count",
            "members",
            "created_at",
        ]
        read_only_fields = fields

    def get_participant_count(self, obj) -> int:
        annotated = getattr(obj, "participant_count", None)
        if annotated is not None:
            return annotated
        return obj.participants.count()

    def get_members(self, obj) -> list:
        if obj.room_type == RoomType.CAMPUS:
            return []
        users = [
            participant.user
            for participant in obj.participants.select_related("user", "user__profile")
        ]
        return UserSummarySerializer(users, many=True).data


class PairRoomCreateSerializer(serializers.Serializer):
    """Target user for a direct or open room."""

    user_id = serializers.UUIDField()

    def validate_user_id(self, value):
        user = User.objects.filter(id=value, is_active=True).first()
        if user is None:
            raise serializers.ValidationError("User not found")
        return user
