"""
Service-level authorization for chat operations.

This module decides who may read or write a room's participants and
messages. It is distinct from the DRF permission classes on the views,
which only handle HTTP-level concerns (authentication).

Rules, in precedence order:
    1. Campus and open rooms: every authenticated user may read and write
       (list/send messages, list participants, join).
    2. Direct rooms: access requires a ChatParticipant row for (user, room).
    3. Bootstrap: the creator of a direct room may add its first
       participants before their own participant row exists.

The predicates below never consult the policy they gate. Room visibility is
derived from the room type plus one membership lookup, so checking
participant visibility never requires reading participants through the
same policy.

Key Components:
    is_public_room_type: Pure check on a room type
    is_member: Single membership lookup
    RoomAccessPolicy: Per-action decisions built from the two predicates
    require_room_access: Decorator for service methods

Usage:
    if not RoomAccessPolicy.can_read_messages(user, room):
        raise AuthorizationError()

    class MessageService(BaseService):
        @classmethod
        @require_room_access("send_message")
        def send_message(cls, room, sender, content, upload=None):
            ...
"""

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Callable, TypeVar

from chat.exceptions import AuthorizationError
from chat.models import PUBLIC_ROOM_TYPES, ChatParticipant, RoomType
from core.services import ServiceResult

if TYPE_CHECKING:
    from authentication.models import User
    from chat.models import ChatRoom, Message


T = TypeVar("T")

# Direct rooms never hold more than their two users
MAX_PAIRWISE_PARTICIPANTS = 2


def is_public_room_type(room_type: str) -> bool:
    """Whether access to rooms of this type is granted by type alone."""
    return room_type in PUBLIC_ROOM_TYPES


def is_member(user_id, room_id) -> bool:
    """Whether a participant row exists for (user, room)."""
    return ChatParticipant.objects.filter(room_id=room_id, user_id=user_id).exists()


def _is_authenticated(user) -> bool:
    return user is not None and getattr(user, "is_authenticated", False)


class RoomAccessPolicy:
    """
    Stateless access decisions for chat rooms.

    All methods are classmethods returning booleans. Denial is never an
    exception here; callers turn a False into AuthorizationError.
    """

    @classmethod
    def can_read_messages(cls, user: "User", room: "ChatRoom") -> bool:
        if not _is_authenticated(user):
            return False
        if is_public_room_type(room.room_type):
            return True
        return is_member(user.id, room.id)

    @classmethod
    def can_send_message(cls, user: "User", room: "ChatRoom") -> bool:
        # Write access mirrors read access for every room type
        return cls.can_read_messages(user, room)

    @classmethod
    def can_read_participants(cls, user: "User", room: "ChatRoom") -> bool:
        return cls.can_read_messages(user, room)

    @classmethod
    def can_read_typing(cls, user: "User", room: "ChatRoom") -> bool:
        return cls.can_read_messages(user, room)

    @classmethod
    def can_add_participant(
        cls,
        actor: "User",
        room: "ChatRoom",
        new_user: "User",
    ) -> bool:
        """
        Whether actor may add new_user to room.

        Campus and open rooms: users may only add themselves, with no cap.
        Direct rooms: only the creator, while bootstrapping the first two
        participants.
        """
        if not _is_authenticated(actor):
            return False

        if is_public_room_type(room.room_type):
            return actor.id == new_user.id

        participant_count = ChatParticipant.objects.filter(room_id=room.id).count()
        if participant_count >= MAX_PAIRWISE_PARTICIPANTS:
            return False

        return room.created_by_id is not None and room.created_by_id == actor.id

    @classmethod
    def can_delete_message(cls, user: "User", message: "Message") -> bool:
        """Only the original sender may delete a message."""
        if not _is_authenticated(user):
            return False
        return message.sender_id == user.id


def require_room_access(
    action: str,
    room_param: str = "room",
    user_param: str = "user",
) -> Callable:
    """
    Decorator that requires a RoomAccessPolicy check to pass.

    Looks up room and user in the call's kwargs (falling back to the first
    two positional arguments after cls) and returns a failed ServiceResult
    carrying AuthorizationError when the policy denies.

    Args:
        action: RoomAccessPolicy method suffix, e.g. "read_messages"
        room_param: Name of the kwarg containing the room
        user_param: Name of the kwarg containing the acting user

    Example:
        class RoomService(BaseService):
            @classmethod
            @require_room_access("read_participants", user_param="viewer")
            def list_participants(cls, room, viewer):
                ...
    """
    check = getattr(RoomAccessPolicy, f"can_{action}")

    def decorator(
        func: Callable[..., ServiceResult[T]],
    ) -> Callable[..., ServiceResult[T]]:
        @wraps(func)
        def wrapper(cls, *args, **kwargs) -> ServiceResult[T]:
            room = kwargs.get(room_param, args[0] if len(args) > 0 else None)
            user = kwargs.get(user_param, args[1] if len(args) > 1 else None)

            if room is None or not check(user, room):
                return ServiceResult.from_exception(AuthorizationError())

            return func(cls, *args, **kwargs)

        return wrapper

    return decorator
