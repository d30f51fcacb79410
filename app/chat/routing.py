"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/<room_id>/ - Subscribe to a room's live events

Authentication:
    JWT passed as ?token=<jwt_access_token> or via the "jwt" subprotocol.
    JWTAuthMiddleware validates it and attaches the user to the scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path(
        "ws/chat/<uuid:room_id>/",
        consumers.ChatRoomConsumer.as_asgi(),
    ),
]
