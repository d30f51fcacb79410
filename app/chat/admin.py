"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Room management with participants inline
- Message moderation
- Read receipt and attachment inspection
"""

from django.contrib import admin

from chat.models import (
    ChatParticipant,
    ChatRoom,
    Message,
    MessageAttachment,
    ReadReceipt,
    RoomPair,
)


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in room admin."""

    model = ChatParticipant
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]


@admin.register(ChatRoom)
class ChatRoomAdmin(admin.ModelAdmin):
    """Admin interface for ChatRoom model."""

    list_display = ["id", "room_type", "name", "created_by", "created_at"]
    list_filter = ["room_type", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["created_by"]
    inlines = [ParticipantInline]
    ordering = ["-created_at"]

    def get_readonly_fields(self, request, obj=None):
        # Room type is fixed once the room exists
        if obj is not None:
            return [*self.readonly_fields, "room_type"]
        return self.readonly_fields


@admin.register(RoomPair)
class RoomPairAdmin(admin.ModelAdmin):
    """Admin interface for RoomPair model."""

    list_display = ["room", "room_type", "user_lower", "user_higher"]
    list_filter = ["room_type"]
    raw_id_fields = ["room", "user_lower", "user_higher"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = ["id", "room", "sender", "content_preview", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["created_at"]
    raw_id_fields = ["room", "sender", "attachment"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content


@admin.register(MessageAttachment)
class MessageAttachmentAdmin(admin.ModelAdmin):
    list_display = ["id", "original_filename", "content_type", "size", "uploaded_by"]
    search_fields = ["original_filename", "storage_path"]
    raw_id_fields = ["uploaded_by"]


@admin.register(ReadReceipt)
class ReadReceiptAdmin(admin.ModelAdmin):
    list_display = ["message", "user", "read_at"]
    raw_id_fields = ["message", "user"]
