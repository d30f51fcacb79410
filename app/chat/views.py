"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- RoomViewSet: Room list, detail, campus/direct/open lookup-or-create
- ParticipantViewSet: Participants (nested under room)
- MessageViewSet: Messages, deletion and read receipts (nested under room)
- TypingView: Current typing snapshot of a room
- AttachmentUrlView / AttachmentDownloadView: Temporary file access

URL Structure:
    /api/v1/chat/rooms/                                   GET
    /api/v1/chat/rooms/campus/                            POST
    /api/v1/chat/rooms/direct/                            POST
    /api/v1/chat/rooms/open/                              POST
    /api/v1/chat/rooms/{id}/                              GET
    /api/v1/chat/rooms/{id}/participants/                 GET, POST
    /api/v1/chat/rooms/{id}/participants/me/              DELETE
    /api/v1/chat/rooms/{id}/messages/                     GET, POST
    /api/v1/chat/rooms/{id}/messages/{pk}/                DELETE
    /api/v1/chat/rooms/{id}/messages/{pk}/read/           POST
    /api/v1/chat/rooms/{id}/typing/                       GET
    /api/v1/chat/attachments/{id}/url/                    GET
    /api/v1/chat/attachments/download/{token}/            GET

Design Decisions:
    - Access checks live in the service layer (chat.authorization); views
      only translate ServiceResult failures into HTTP responses
    - Missing rooms are 404, denied rooms are 403 NOT_ALLOWED
    - Listing messages marks them read for the viewer after the page is
      serialized, so the response shows receipts as they were
"""

from __future__ import annotations

from django.http import Http404
from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.authorization import RoomAccessPolicy
from chat.constants import ATTACHMENT_CONFIG
from chat.models import Message, MessageAttachment, RoomType
from chat.pagination import MessageCursorPagination, RoomCursorPagination
from chat.serializers import (
    ChatRoomSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    PairRoomCreateSerializer,
    ParticipantCreateSerializer,
    ParticipantSerializer,
    ReadReceiptSerializer,
)
from chat.services import (
    MessageService,
    ReadReceiptService,
    RoomService,
    TypingService,
)
from chat.storage import AttachmentStorageService
from connections.services import ConnectionService
from core.exceptions import http_status_for
from core.services import ServiceResult


def error_response(result: ServiceResult) -> Response:
    """Build the HTTP error response for a failed ServiceResult."""
    return Response(result.to_response(), status=http_status_for(result.exception))


class RoomScopedMixin:
    """
    Resolve the room from the URL for nested views.

    get_room() returns a ServiceResult so views can return the 404/403
    response directly.
    """

    room_lookup_kwarg = "room_pk"

    def get_room(self, action: str | None = "read_messages") -> ServiceResult:
        return RoomService.get_room_for_user(
            self.kwargs[self.room_lookup_kwarg], self.request.user, action=action
        )


# =============================================================================
# Rooms
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_rooms",
        summary="List my rooms",
        tags=["Chat - Rooms"],
        parameters=[
            OpenApiParameter(
                name="type",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                enum=[choice for choice, _ in RoomType.choices],
                description="Only rooms of this type",
            ),
        ],
    ),
    retrieve=extend_schema(
        operation_id="get_room",
        summary="Get room",
        tags=["Chat - Rooms"],
    ),
)
class RoomViewSet(viewsets.GenericViewSet):
    """
    ViewSet for room operations.

    list:
        Rooms the current user participates in, newest first.
        Inert pairwise rooms are never listed.

    retrieve:
        Room details. Campus and open rooms are visible to everyone;
        direct rooms only to their participants.

    campus / direct / open:
        Lookup-or-create. Repeating the call returns the same room.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[0-9a-f-]{36}"
    serializer_class = ChatRoomSerializer
    pagination_class = RoomCursorPagination

    def get_queryset(self):
        return RoomService.list_user_rooms(
            self.request.user, room_type=self.request.query_params.get("type")
        )

    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = ChatRoomSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(ChatRoomSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        result = RoomService.get_room_for_user(pk, request.user)
        if not result.success:
            return error_response(result)
        return Response(ChatRoomSerializer(result.data).data)

    @extend_schema(
        operation_id="join_campus_room",
        summary="Get or create the campus room",
        description=(
            "Returns the single campus-wide room, creating it on first use, "
            "and records the caller as a participant."
        ),
        request=None,
        responses={200: ChatRoomSerializer},
        tags=["Chat - Rooms"],
    )
    @action(detail=False, methods=["post"])
    def campus(self, request):
        result = RoomService.get_or_create_campus_room(request.user)
        if not result.success:
            return error_response(result)
        return Response(ChatRoomSerializer(result.data).data)

    @extend_schema(
        operation_id="get_or_create_direct_room",
        summary="Get or create a direct room",
        description=(
            "Direct rooms exist between connected students. Returns the existing "
            "room for the pair, or creates it with both users as participants."
        ),
        request=PairRoomCreateSerializer,
        responses={
            200: ChatRoomSerializer,
            400: OpenApiResponse(description="Unknown user or same user"),
            403: OpenApiResponse(description="Users are not connected"),
        },
        tags=["Chat - Rooms"],
    )
    @action(detail=False, methods=["post"])
    def direct(self, request):
        serializer = PairRoomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        other_user = serializer.validated_data["user_id"]

        if other_user.id != request.user.id and not ConnectionService.are_connected(
            request.user, other_user
        ):
            return Response(
                {"error": "Not allowed", "error_code": "NOT_CONNECTED"},
                status=status.HTTP_403_FORBIDDEN,
            )

        result = RoomService.create_direct_room(
            request.user, other_user, created_by=request.user
        )
        if not result.success:
            return error_response(result)
        return Response(ChatRoomSerializer(result.data).data)

    @extend_schema(
        operation_id="get_or_create_open_room",
        summary="Get or create an open room",
        description="Open rooms are pairwise but readable by every student.",
        request=PairRoomCreateSerializer,
        responses={200: ChatRoomSerializer},
        tags=["Chat - Rooms"],
    )
    @action(detail=False, methods=["post"])
    def open(self, request):
        serializer = PairRoomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RoomService.create_open_room(
            request.user, serializer.validated_data["user_id"]
        )
        if not result.success:
            return error_response(result)
        return Response(ChatRoomSerializer(result.data).data)


# =============================================================================
# Participants
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_room_participants",
        summary="List participants",
        tags=["Chat - Participants"],
    ),
    create=extend_schema(
        operation_id="add_room_participant",
        summary="Join room or add participant",
        request=ParticipantCreateSerializer,
        responses={201: ParticipantSerializer},
        tags=["Chat - Participants"],
    ),
    leave=extend_schema(
        operation_id="leave_room",
        summary="Leave room",
        description=(
            "Remove the caller's participant row. Leaving a direct room ends "
            "the caller's access to it."
        ),
        request=None,
        responses={
            204: None,
            404: OpenApiResponse(description="ROOM_NOT_FOUND or NOT_PARTICIPANT"),
        },
        tags=["Chat - Participants"],
    ),
)
class ParticipantViewSet(RoomScopedMixin, viewsets.GenericViewSet):
    """
    ViewSet for participants within a room.

    list:
        Participants with profiles (same access as reading messages).

    create:
        Without user_id: join the room (campus and open rooms).
        With user_id: add a user (creator bootstrapping a direct room).

    leave:
        Remove yourself from the room.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ParticipantSerializer

    def list(self, request, room_pk=None):
        room_result = self.get_room()
        if not room_result.success:
            return error_response(room_result)

        result = RoomService.list_participants(room_result.data, request.user)
        if not result.success:
            return error_response(result)
        return Response(ParticipantSerializer(result.data, many=True).data)

    def create(self, request, room_pk=None):
        room_result = self.get_room(action=None)
        if not room_result.success:
            return error_response(room_result)

        serializer = ParticipantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # Policy is checked by join_room: direct-room creators may add
        # participants before being members themselves
        result = RoomService.join_room(
            room_result.data,
            request.user,
            new_user=serializer.validated_data.get("user_id"),
        )
        if not result.success:
            return error_response(result)
        return Response(
            ParticipantSerializer(result.data).data, status=status.HTTP_201_CREATED
        )

    def leave(self, request, room_pk=None):
        room_result = self.get_room(action=None)
        if not room_result.success:
            return error_response(room_result)

        result = RoomService.leave_room(room_result.data, request.user)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Messages
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_room_messages",
        summary="List messages",
        description=(
            "Messages oldest first with read receipts and read state. Loading "
            "messages marks every message from other users as read by the caller."
        ),
        tags=["Chat - Messages"],
    ),
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        description=(
            "Send text and/or a file (multipart field 'file'). Allowed files: "
            "JPEG, PNG, GIF, WebP images and PDF, up to 10MB."
        ),
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(
                description="CONTENT_TOO_LONG, INVALID_FILE_TYPE, FILE_TOO_LARGE or EMPTY_MESSAGE"
            ),
            403: OpenApiResponse(description="NOT_ALLOWED"),
            404: OpenApiResponse(description="Room not found"),
        },
        tags=["Chat - Messages"],
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        tags=["Chat - Messages"],
    ),
)
class MessageViewSet(RoomScopedMixin, viewsets.GenericViewSet):
    """
    ViewSet for message operations within a room.

    list:
        Cursor-paginated, oldest first.

    create:
        Send a message (JSON or multipart).

    destroy:
        Hard delete; only the sender may delete.

    read:
        Explicitly mark one message as read (idempotent).
    """

    permission_classes = [IsAuthenticated]
    pagination_class = MessageCursorPagination
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    serializer_class = MessageSerializer

    def get_message(self, room, pk) -> Message:
        return get_object_or_404(
            Message.objects.select_related("room", "sender", "attachment"),
            pk=pk,
            room=room,
        )

    def list(self, request, room_pk=None):
        room_result = self.get_room()
        if not room_result.success:
            return error_response(room_result)
        room = room_result.data

        queryset = MessageService.message_queryset(room)
        page = self.paginate_queryset(queryset)
        context = {"request": request}

        if page is not None:
            data = MessageSerializer(page, many=True, context=context).data
            ReadReceiptService.mark_room_read(room, request.user)
            return self.get_paginated_response(data)

        data = MessageSerializer(queryset, many=True, context=context).data
        ReadReceiptService.mark_room_read(room, request.user)
        return Response(data)

    def create(self, request, room_pk=None):
        room_result = self.get_room(action="send_message")
        if not room_result.success:
            return error_response(room_result)

        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_message(
            room_result.data,
            request.user,
            content=serializer.validated_data.get("content", ""),
            upload=serializer.validated_data.get("file"),
        )
        if not result.success:
            return error_response(result)

        return Response(
            MessageSerializer(result.data, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, room_pk=None, pk=None):
        room_result = self.get_room()
        if not room_result.success:
            return error_response(room_result)

        message = self.get_message(room_result.data, pk)
        result = MessageService.delete_message(message, request.user)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="mark_message_read",
        summary="Mark message as read",
        description="Idempotent. Marking your own message returns 204.",
        request=None,
        responses={
            200: ReadReceiptSerializer,
            204: OpenApiResponse(description="Own message; nothing recorded"),
        },
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, room_pk=None, pk=None):
        room_result = self.get_room()
        if not room_result.success:
            return error_response(room_result)

        message = self.get_message(room_result.data, pk)
        result = ReadReceiptService.mark_read(message, request.user)
        if not result.success:
            return error_response(result)
        if result.data is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(ReadReceiptSerializer(result.data).data)


# =============================================================================
# Typing
# =============================================================================


class TypingView(RoomScopedMixin, APIView):
    """Current typing snapshot for a room."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_room_typing",
        summary="Who is typing",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Rooms"],
    )
    def get(self, request, room_pk):
        room_result = self.get_room(action="read_typing")
        if not room_result.success:
            return error_response(room_result)
        return Response({"typists": TypingService.snapshot(room_result.data.id)})


# =============================================================================
# Attachments
# =============================================================================


class AttachmentUrlView(APIView):
    """Issue a temporary URL for an attachment the caller may read."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_attachment_url",
        summary="Get temporary attachment URL",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Attachments"],
    )
    def get(self, request, attachment_id):
        attachment = get_object_or_404(
            MessageAttachment.objects.select_related("message__room"),
            pk=attachment_id,
        )
        try:
            room = attachment.message.room
        except Message.DoesNotExist:
            raise Http404("Attachment not found")

        if not RoomAccessPolicy.can_read_messages(request.user, room):
            return Response(
                {"error": "Not allowed", "error_code": "NOT_ALLOWED"},
                status=status.HTTP_403_FORBIDDEN,
            )

        url = AttachmentStorageService.create_temporary_url(attachment.storage_path)
        if url.startswith("/"):
            url = request.build_absolute_uri(url)
        return Response(
            {
                "url": url,
                "expires_in": ATTACHMENT_CONFIG.SIGNED_URL_TTL_SECONDS,
            }
        )


class AttachmentDownloadView(APIView):
    """
    Serve an attachment for a signed download token.

    The token is the credential, so no session or JWT is required.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="download_attachment",
        summary="Download attachment by token",
        responses={200: OpenApiTypes.BINARY},
        tags=["Chat - Attachments"],
    )
    def get(self, request, token):
        path = AttachmentStorageService.resolve_download_token(token)
        if path is None:
            raise Http404("Link expired or invalid")

        attachment = get_object_or_404(MessageAttachment, storage_path=path)
        try:
            return AttachmentStorageService.serve_file_response(attachment)
        except FileNotFoundError:
            raise Http404("File not found")
