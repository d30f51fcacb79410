"""
Chat application configuration.

This app provides campus chat with:
- The campus-wide room, open rooms and direct rooms
- Attachments, read receipts and typing indicators
- Live delivery over WebSockets (Django Channels)
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
