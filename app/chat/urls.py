"""
URL configuration for chat API.

URL Structure:
    Rooms:
        /rooms/                                  GET
        /rooms/campus/                           POST
        /rooms/direct/                           POST
        /rooms/open/                             POST
        /rooms/{id}/                             GET
        /rooms/{id}/typing/                      GET

    Participants:
        /rooms/{id}/participants/                GET, POST
        /rooms/{id}/participants/me/             DELETE

    Messages:
        /rooms/{id}/messages/                    GET, POST
        /rooms/{id}/messages/{pk}/               DELETE
        /rooms/{id}/messages/{pk}/read/          POST

    Attachments:
        /attachments/{id}/url/                   GET
        /attachments/download/{token}/           GET

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    AttachmentDownloadView,
    AttachmentUrlView,
    MessageViewSet,
    ParticipantViewSet,
    RoomViewSet,
    TypingView,
)

router = DefaultRouter()
router.register(r"rooms", RoomViewSet, basename="room")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    path("rooms/<uuid:room_pk>/typing/", TypingView.as_view(), name="room-typing"),
    # Nested routes for participants
    path(
        "rooms/<uuid:room_pk>/participants/",
        ParticipantViewSet.as_view({"get": "list", "post": "create"}),
        name="room-participant-list",
    ),
    path(
        "rooms/<uuid:room_pk>/participants/me/",
        ParticipantViewSet.as_view({"delete": "leave"}),
        name="room-participant-leave",
    ),
    # Nested routes for messages
    path(
        "rooms/<uuid:room_pk>/messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="room-message-list",
    ),
    path(
        "rooms/<uuid:room_pk>/messages/<uuid:pk>/",
        MessageViewSet.as_view({"delete": "destroy"}),
        name="room-message-detail",
    ),
    path(
        "rooms/<uuid:room_pk>/messages/<uuid:pk>/read/",
        MessageViewSet.as_view({"post": "read"}),
        name="room-message-read",
    ),
    # Attachments
    path(
        "attachments/<uuid:attachment_id>/url/",
        AttachmentUrlView.as_view(),
        name="attachment-url",
    ),
    path(
        "attachments/download/<str:token>/",
        AttachmentDownloadView.as_view(),
        name="attachment-download",
    ),
]
