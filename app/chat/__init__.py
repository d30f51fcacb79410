"""
Chat app for real-time campus messaging.

This app handles:
- Campus, open and direct rooms
- Message sending, history and deletion
- File attachments in private storage
- WebSocket live updates, read receipts and typing indicators

Related apps:
    - authentication: User model and profiles for display names
    - connections: Accepted connections create direct rooms

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import RoomService, MessageService

    room = RoomService.get_or_create_campus_room(user).data

    result = MessageService.send_message(room, user, "Hello campus!")
"""
