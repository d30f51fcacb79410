"""
Chat system service layer.

This module provides the business logic for campus chat, encapsulating
all operations on rooms, participants, messages, receipts and typing state.

Services:
    RoomService: Room lookup-or-create (campus, direct, open) and membership
    MessageService: Send, delete and list messages
    ReadReceiptService: Idempotent read receipts and aggregate read state
    TypingService: Ephemeral per-room typing indicators (Redis only)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() carrying a typed error
    - Unexpected failures raise exceptions
    - Access is decided by chat.authorization before any write
    - Realtime events are published after commit (chat.notifier)

Usage:
    from chat.services import RoomService, MessageService

    result = RoomService.create_direct_room(alice, bob)
    room = result.data

    result = MessageService.send_message(room, alice, "Hello!")
    if not result.success:
        print(result.error_code)  # CONTENT_TOO_LONG, NOT_ALLOWED, ...
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import Count, Prefetch, Q
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.authorization import RoomAccessPolicy, require_room_access
from chat.constants import (
    ATTACHMENT_CONFIG,
    CAMPUS_ROOM_NAME,
    MESSAGE_CONFIG,
    TYPING_CONFIG,
)
from chat.exceptions import (
    AuthorizationError,
    ContentTooLongError,
    EmptyMessageError,
    FileTooLargeError,
    InvalidFileTypeError,
    NotParticipantError,
    RoomNotFoundError,
    SameUserError,
    TransientError,
)
from chat.models import (
    PAIRWISE_ROOM_TYPES,
    ChatParticipant,
    ChatRoom,
    Message,
    MessageAttachment,
    ReadReceipt,
    RoomPair,
    RoomType,
)
from chat.notifier import RoomNotifier
from chat.storage import AttachmentStorageService

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile
    from django.db.models import QuerySet

    from authentication.models import User

logger = logging.getLogger(__name__)


# =============================================================================
# Rooms
# =============================================================================


class RoomService(BaseService):
    """
    Service for room lifecycle and membership.

    Methods:
        get_room_for_user: Fetch a room and check access
        get_or_create_campus_room: The campus singleton, joined by the caller
        find_direct_room: Existing direct room for a user pair
        find_open_room: Existing open room for a user pair
        create_direct_room: Lookup-or-create a direct room for a pair
        create_open_room: Lookup-or-create an open room for a pair
        join_room: Add a participant if policy allows
        leave_room: Remove the caller's own participant row
        list_user_rooms: Rooms a user participates in
        list_participants: Participants of a room (policy-gated)
    """

    @classmethod
    def get_room_for_user(
        cls,
        room_id,
        user: User,
        action: str | None = "read_messages",
    ) -> ServiceResult[ChatRoom]:
        """
        Fetch a room and check that user may perform action in it.

        With action=None only existence is checked; the caller must apply
        the policy itself.

        Error codes:
            ROOM_NOT_FOUND: No room with this id
            NOT_ALLOWED: Policy denies the action
        """
        room = ChatRoom.objects.filter(id=room_id).first()
        if room is None:
            return ServiceResult.from_exception(RoomNotFoundError())

        if action is None:
            return ServiceResult.success(room)

        check = getattr(RoomAccessPolicy, f"can_{action}")
        if not check(user, room):
            return ServiceResult.from_exception(AuthorizationError())

        return ServiceResult.success(room)

    @classmethod
    def get_or_create_campus_room(cls, user: User) -> ServiceResult[ChatRoom]:
        """
        Return the campus room, creating it on first use.

        The requesting user gets a participant row so the room shows up in
        their room list; access itself never depends on it.

        A concurrent first creation loses on the single_campus_room
        constraint and re-reads the winner's row.
        """
        room = ChatRoom.objects.filter(room_type=RoomType.CAMPUS).first()

        if room is None:
            try:
                with transaction.atomic():
                    room = ChatRoom.objects.create(
                        room_type=RoomType.CAMPUS,
                        name=CAMPUS_ROOM_NAME,
                    )
                cls.get_logger().info(f"Created campus room {room.id}")
            except IntegrityError:
                room = ChatRoom.objects.get(room_type=RoomType.CAMPUS)

        ChatParticipant.objects.get_or_create(room=room, user=user)
        return ServiceResult.success(room)

    @classmethod
    def _find_pair_room(cls, room_type: str, user_a_id, user_b_id) -> ChatRoom | None:
        user_lower_id, user_higher_id = RoomPair.normalize(user_a_id, user_b_id)
        pair = (
            RoomPair.objects.select_related("room")
            .filter(
                room_type=room_type,
                user_lower_id=user_lower_id,
                user_higher_id=user_higher_id,
            )
            .first()
        )
        return pair.room if pair else None

    @classmethod
    def find_direct_room(cls, user_a: User, user_b: User) -> ChatRoom | None:
        """
        Return the direct room shared by two users, or None.

        Symmetric in its arguments.
        """
        return cls._find_pair_room(RoomType.DIRECT, user_a.id, user_b.id)

    @classmethod
    def find_open_room(cls, user_a: User, user_b: User) -> ChatRoom | None:
        return cls._find_pair_room(RoomType.OPEN, user_a.id, user_b.id)

    @classmethod
    def create_direct_room(
        cls,
        user_a: User,
        user_b: User,
        created_by: User | None = None,
    ) -> ServiceResult[ChatRoom]:
        """
        Lookup-or-create the direct room for a pair of users.

        The room, its RoomPair and both participant rows are written in one
        transaction, so a direct room is never created with fewer than two
        participants. Looking up an existing room restores the participant
        row of a side that had left.

        Args:
            user_a: First participant
            user_b: Second participant
            created_by: Acting user (None when system-created on accept)

        Returns:
            ServiceResult with ChatRoom (existing or new)

        Error codes:
            SAME_USER: Cannot create a room with yourself
        """
        return cls._get_or_create_pair_room(RoomType.DIRECT, user_a, user_b, created_by)

    @classmethod
    def create_open_room(cls, creator: User, invitee: User) -> ServiceResult[ChatRoom]:
        """
        Lookup-or-create the open room for creator and invitee.

        Same shape as create_direct_room, but any student may read and
        write the resulting room.
        """
        return cls._get_or_create_pair_room(RoomType.OPEN, creator, invitee, creator)

    @classmethod
    def _get_or_create_pair_room(
        cls,
        room_type: str,
        user_a: User,
        user_b: User,
        created_by: User | None,
    ) -> ServiceResult[ChatRoom]:
        if user_a.id == user_b.id:
            return ServiceResult.from_exception(SameUserError())

        existing = cls._find_pair_room(room_type, user_a.id, user_b.id)
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing {room_type} room {existing.id} "
                f"for users {user_a.id} and {user_b.id}"
            )
            # Either side may have left since; re-creating brings them back
            ChatParticipant.objects.bulk_create(
                [
                    ChatParticipant(room=existing, user=user_a),
                    ChatParticipant(room=existing, user=user_b),
                ],
                ignore_conflicts=True,
            )
            return ServiceResult.success(existing)

        user_lower, user_higher = (
            (user_a, user_b) if user_a.id < user_b.id else (user_b, user_a)
        )

        try:
            with transaction.atomic():
                room = ChatRoom.objects.create(
                    room_type=room_type,
                    created_by=created_by,
                )
                RoomPair.objects.create(
                    room=room,
                    room_type=room_type,
                    user_lower=user_lower,
                    user_higher=user_higher,
                )
                ChatParticipant.objects.bulk_create(
                    [
                        ChatParticipant(room=room, user=user_lower),
                        ChatParticipant(room=room, user=user_higher),
                    ]
                )
        except IntegrityError:
            # Another request created the pair first
            existing = cls._find_pair_room(room_type, user_a.id, user_b.id)
            if existing is None:
                raise
            return ServiceResult.success(existing)

        cls.get_logger().info(
            f"Created {room_type} room {room.id} "
            f"between users {user_lower.id} and {user_higher.id}"
        )
        return ServiceResult.success(room)

    @classmethod
    def join_room(
        cls,
        room: ChatRoom,
        user: User,
        new_user: User | None = None,
    ) -> ServiceResult[ChatParticipant]:
        """
        Add new_user (default: user) to room.

        Idempotent: an existing participant row is returned as-is.

        Error codes:
            NOT_ALLOWED: Policy denies adding this participant
        """
        target = new_user or user

        existing = ChatParticipant.objects.filter(room=room, user=target).first()
        if existing is not None and RoomAccessPolicy.can_read_participants(user, room):
            return ServiceResult.success(existing)

        if not RoomAccessPolicy.can_add_participant(user, room, target):
            return ServiceResult.from_exception(AuthorizationError())

        participant, created = ChatParticipant.objects.get_or_create(
            room=room, user=target
        )
        if created:
            cls.get_logger().info(f"User {target.id} joined room {room.id}")
        return ServiceResult.success(participant)

    @classmethod
    def leave_room(cls, room: ChatRoom, user: User) -> ServiceResult[None]:
        """
        Remove the user's own participant row.

        Campus and open rooms stay readable by type, so leaving only drops
        the room from the user's list. A direct room left by either side
        falls below two participants: the leaver loses access, the room is
        hidden from lists and purge_inert_rooms deletes it once it is older
        than the grace period. Any typing entry of the leaver is cleared.

        Error codes:
            NOT_PARTICIPANT: User has no participant row in this room
        """
        deleted, _ = ChatParticipant.objects.filter(room=room, user=user).delete()
        if not deleted:
            return ServiceResult.from_exception(NotParticipantError())

        TypingService.clear(room.id, user)
        cls.get_logger().info(f"User {user.id} left room {room.id}")
        return ServiceResult.success(None)

    @classmethod
    def list_user_rooms(cls, user: User, room_type: str | None = None) -> QuerySet:
        """
        Rooms the user participates in, newest first.

        Inert rooms (pairwise rooms with fewer than two participants) are
        never listed.
        """
        room_ids = ChatParticipant.objects.filter(user=user).values("room_id")
        rooms = (
            ChatRoom.objects.filter(id__in=room_ids)
            .annotate(participant_count=Count("participants", distinct=True))
            .exclude(Q(room_type__in=PAIRWISE_ROOM_TYPES) & Q(participant_count__lt=2))
            .order_by("-created_at", "-id")
        )
        if room_type:
            rooms = rooms.filter(room_type=room_type)
        return rooms

    @classmethod
    @require_room_access("read_participants", user_param="viewer")
    def list_participants(cls, room: ChatRoom, viewer: User) -> ServiceResult[QuerySet]:
        """
        Participants of a room with their profiles.

        Error codes:
            NOT_ALLOWED: Viewer may not read this room
        """
        participants = (
            ChatParticipant.objects.filter(room=room)
            .select_related("user", "user__profile")
            .order_by("joined_at", "id")
        )
        return ServiceResult.success(participants)


# =============================================================================
# Messages
# =============================================================================


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        validate_message: Check content and attachment limits
        send_message: Persist a message (optionally with a file)
        delete_message: Hard delete by the sender
        message_queryset: Ordered messages of a room with receipts
        list_messages: Messages of a room, marking them read for the viewer
    """

    @classmethod
    def validate_message(
        cls,
        content: str,
        upload: UploadedFile | None = None,
    ) -> None:
        """
        Validate content and attachment limits.

        Raises:
            ContentTooLongError, InvalidFileTypeError, FileTooLargeError,
            EmptyMessageError
        """
        max_length = MESSAGE_CONFIG.MAX_CONTENT_LENGTH
        if len(content) > max_length:
            raise ContentTooLongError(max_length, len(content))

        if upload is not None:
            content_type = (getattr(upload, "content_type", None) or "").lower()
            if content_type not in ATTACHMENT_CONFIG.ALLOWED_CONTENT_TYPES:
                raise InvalidFileTypeError(content_type)
            if upload.size > ATTACHMENT_CONFIG.MAX_SIZE_BYTES:
                raise FileTooLargeError(ATTACHMENT_CONFIG.MAX_SIZE_BYTES, upload.size)
        elif not content.strip():
            raise EmptyMessageError()

    @classmethod
    @require_room_access("send_message", user_param="sender")
    def send_message(
        cls,
        room: ChatRoom,
        sender: User,
        content: str = "",
        upload: UploadedFile | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to a room.

        Validation runs before anything is written. With an upload and no
        text, the content becomes "Shared a file: <filename>".

        Args:
            room: Target room
            sender: User sending the message
            content: Message text
            upload: Optional uploaded file

        Returns:
            ServiceResult with the new Message

        Error codes:
            NOT_ALLOWED: Sender may not write to this room
            CONTENT_TOO_LONG: Content exceeds the configured maximum
            INVALID_FILE_TYPE: Upload MIME type is not allowed
            FILE_TOO_LARGE: Upload exceeds the size ceiling
            EMPTY_MESSAGE: Neither text nor file
            TRANSIENT_ERROR: File storage failed
        """
        content = content or ""
        try:
            cls.validate_message(content, upload)
        except (
            ContentTooLongError,
            InvalidFileTypeError,
            FileTooLargeError,
            EmptyMessageError,
        ) as e:
            return ServiceResult.from_exception(e)

        content = content.strip()

        stored_path = None
        if upload is not None:
            path = AttachmentStorageService.build_path(sender.id, upload.name)
            try:
                stored_path = AttachmentStorageService.upload(
                    path, upload, upload.content_type
                )
            except TransientError as e:
                return ServiceResult.from_exception(e)

            if not content:
                content = MESSAGE_CONFIG.ATTACHMENT_PLACEHOLDER.format(
                    filename=upload.name
                )

        try:
            with transaction.atomic():
                attachment = None
                if stored_path is not None:
                    attachment = MessageAttachment.objects.create(
                        storage_path=stored_path,
                        content_type=upload.content_type.lower(),
                        size=upload.size,
                        original_filename=upload.name,
                        uploaded_by=sender,
                    )

                message = Message.objects.create(
                    room=room,
                    sender=sender,
                    content=content,
                    attachment=attachment,
                )
                RoomNotifier.message_created(message)
        except Exception:
            if stored_path is not None:
                AttachmentStorageService.delete(stored_path)
            raise

        TypingService.clear(room.id, sender)

        cls.get_logger().info(
            f"User {sender.id} sent message {message.id} to room {room.id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def delete_message(cls, message: Message, requester: User) -> ServiceResult[None]:
        """
        Hard-delete a message. Only its sender may delete it.

        Subscribers receive a message.deleted event. The attachment file is
        removed from storage after commit.

        Error codes:
            NOT_ALLOWED: Requester is not the sender
        """
        if not RoomAccessPolicy.can_delete_message(requester, message):
            return ServiceResult.from_exception(AuthorizationError())

        room_id = message.room_id
        message_id = message.id
        attachment = message.attachment

        with transaction.atomic():
            message.delete()
            if attachment is not None:
                storage_path = attachment.storage_path
                attachment.delete()
                transaction.on_commit(
                    lambda: AttachmentStorageService.delete(storage_path)
                )
            RoomNotifier.message_deleted(room_id, message_id)

        cls.get_logger().info(
            f"User {requester.id} deleted message {message_id} in room {room_id}"
        )
        return ServiceResult.success(None)

    @classmethod
    def message_queryset(cls, room: ChatRoom) -> QuerySet:
        """Messages of a room in (created_at, id) order with receipts loaded."""
        return (
            Message.objects.filter(room=room)
            .select_related("sender", "sender__profile", "attachment")
            .prefetch_related(
                Prefetch(
                    "read_receipts",
                    queryset=ReadReceipt.objects.order_by("read_at", "id"),
                )
            )
            .order_by("created_at", "id")
        )

    @classmethod
    @require_room_access("read_messages", user_param="viewer")
    def list_messages(
        cls,
        room: ChatRoom,
        viewer: User,
        mark_read: bool = True,
    ) -> ServiceResult[list[Message]]:
        """
        List a room's messages, oldest first.

        The returned messages carry the receipts as they were before this
        call; afterwards every message from someone else is marked read by
        the viewer.

        Error codes:
            NOT_ALLOWED: Viewer may not read this room
        """
        messages = list(cls.message_queryset(room))

        if mark_read:
            ReadReceiptService.mark_room_read(room, viewer)

        return ServiceResult.success(messages)


# =============================================================================
# Read receipts
# =============================================================================


class ReadReceiptService(BaseService):
    """
    Service for read receipts.

    A message is read by a user iff a receipt exists for the pair. Senders
    never hold receipts for their own messages.

    Methods:
        mark_read: Idempotent single receipt
        mark_room_read: Mark every unread message in a room for a viewer
        read_state: "read" or "sent"
    """

    READ = "read"
    SENT = "sent"

    @classmethod
    def mark_read(cls, message: Message, user: User) -> ServiceResult[ReadReceipt | None]:
        """
        Record that user has read message.

        Marking twice is the same as marking once. Marking one's own message
        is a no-op and returns no receipt.

        Error codes:
            NOT_ALLOWED: User may not read the message's room
        """
        if not RoomAccessPolicy.can_read_messages(user, message.room):
            return ServiceResult.from_exception(AuthorizationError())

        if message.sender_id == user.id:
            return ServiceResult.success(None)

        try:
            with transaction.atomic():
                receipt, created = ReadReceipt.objects.get_or_create(
                    message=message,
                    user=user,
                )
                if created:
                    RoomNotifier.receipt_created(receipt, message.room_id)
        except IntegrityError:
            receipt = ReadReceipt.objects.get(message=message, user=user)
            created = False

        if not created:
            cls.get_logger().debug(
                f"Message {message.id} already read by user {user.id}"
            )
        return ServiceResult.success(receipt)

    @classmethod
    def mark_room_read(cls, room: ChatRoom, viewer: User) -> ServiceResult[int]:
        """
        Mark every message in room not sent by viewer as read.

        Conflicting inserts from concurrent loads are ignored, and only the
        receipts this call stored are broadcast, so every event carries the
        read_at of the row in the database.

        Returns:
            ServiceResult with the number of receipts created
        """
        unread_ids = list(
            Message.objects.filter(room=room)
            .exclude(sender=viewer)
            .exclude(read_receipts__user=viewer)
            .values_list("id", flat=True)
        )
        if not unread_ids:
            return ServiceResult.success(0)

        now = timezone.now()
        receipts = [
            ReadReceipt(message_id=message_id, user=viewer, read_at=now)
            for message_id in unread_ids
        ]

        with transaction.atomic():
            ReadReceipt.objects.bulk_create(receipts, ignore_conflicts=True)
            # Rows that lost a conflict keep the other writer's read_at
            created = list(
                ReadReceipt.objects.filter(
                    user=viewer, message_id__in=unread_ids, read_at=now
                )
            )
            for receipt in created:
                RoomNotifier.receipt_created(receipt, room.id)

        cls.get_logger().debug(
            f"Marked {len(created)} messages read for user {viewer.id} in room {room.id}"
        )
        return ServiceResult.success(len(created))

    @classmethod
    def read_state(cls, message: Message) -> str:
        """
        "read" if anyone other than the sender has a receipt, else "sent".

        Uses prefetched receipts when present.
        """
        prefetched = getattr(message, "_prefetched_objects_cache", {})
        if "read_receipts" in prefetched:
            is_read = any(
                receipt.user_id != message.sender_id
                for receipt in prefetched["read_receipts"]
            )
        else:
            is_read = (
                message.read_receipts.exclude(user_id=message.sender_id).exists()
            )
        return cls.READ if is_read else cls.SENT


# =============================================================================
# Typing
# =============================================================================


class TypingService(BaseService):
    """
    Ephemeral typing indicators.

    State lives only in Redis: one hash per room with a field per user
    holding {"display_name", "expires_at"}. Each user's update touches only
    their own field, so concurrent typists never overwrite each other. Each
    entry carries its own expiry so a client that disappears without
    sending is_typing=false stops showing as typing after
    TYPING_CONFIG.TTL_SECONDS. The hash itself expires once a room has been
    quiet for twice that long. Nothing touches the database.

    Methods:
        set_typing: Update a user's state and broadcast it
        clear: Drop a user's state, broadcasting false if it was set
        snapshot: Users currently typing in a room
    """

    @staticmethod
    def _get_redis_client():
        """Raw Redis client from django-redis."""
        from django_redis import get_redis_connection

        return get_redis_connection("default")

    @staticmethod
    def _room_key(room_id) -> str:
        return f"{TYPING_CONFIG.KEY_PREFIX}:{room_id}"

    @classmethod
    def set_typing(cls, room: ChatRoom, user: User, is_typing: bool) -> ServiceResult[dict]:
        """
        Record and broadcast a user's typing state.

        Error codes:
            NOT_ALLOWED: User may not write to this room
        """
        if not RoomAccessPolicy.can_send_message(user, room):
            return ServiceResult.from_exception(AuthorizationError())

        user_id = str(user.id)
        display_name = user.display_name
        redis_client = cls._get_redis_client()
        key = cls._room_key(room.id)

        if is_typing:
            expires_at = timezone.now() + timedelta(seconds=TYPING_CONFIG.TTL_SECONDS)
            entry = json.dumps(
                {"display_name": display_name, "expires_at": expires_at.timestamp()}
            )
            # HSET and EXPIRE in one MULTI/EXEC
            pipeline = redis_client.pipeline(transaction=True)
            pipeline.hset(key, user_id, entry)
            pipeline.expire(key, TYPING_CONFIG.TTL_SECONDS * 2)
            pipeline.execute()
        else:
            redis_client.hdel(key, user_id)

        RoomNotifier.typing(room.id, user.id, display_name, is_typing)

        return ServiceResult.success(
            {"user_id": user_id, "display_name": display_name, "is_typing": is_typing}
        )

    @classmethod
    def clear(cls, room_id, user: User) -> bool:
        """
        Remove a user's typing state.

        Returns:
            True if the user had an entry (and false was broadcast)
        """
        removed = cls._get_redis_client().hdel(cls._room_key(room_id), str(user.id))
        if not removed:
            return False

        RoomNotifier.typing(room_id, user.id, user.display_name, False)
        return True

    @classmethod
    def snapshot(cls, room_id) -> list[dict]:
        """Users currently typing in a room, sorted by display name."""
        raw_entries = cls._get_redis_client().hgetall(cls._room_key(room_id))
        now = timezone.now().timestamp()

        typists = []
        for raw_user_id, raw_entry in raw_entries.items():
            entry = json.loads(raw_entry)
            if entry["expires_at"] <= now:
                continue
            user_id = (
                raw_user_id.decode("utf-8")
                if isinstance(raw_user_id, bytes)
                else raw_user_id
            )
            typists.append({"user_id": user_id, "display_name": entry["display_name"]})

        return sorted(typists, key=lambda typist: typist["display_name"])
