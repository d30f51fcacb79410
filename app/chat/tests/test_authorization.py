"""
Tests for chat.authorization.

RoomAccessPolicy decides every read and write in the chat service layer,
so these tests pin the matrix of room type x membership x action.
"""

from django.contrib.auth.models import AnonymousUser

from chat.authorization import RoomAccessPolicy, is_member, require_room_access
from chat.models import RoomType
from chat.tests.factories import ChatRoomFactory, MessageFactory, ParticipantFactory
from core.services import ServiceResult


class TestReadAccess:
    def test_campus_room_readable_by_everyone(self, campus_room, third_user):
        assert RoomAccessPolicy.can_read_messages(third_user, campus_room)
        assert RoomAccessPolicy.can_send_message(third_user, campus_room)

    def test_open_room_readable_by_non_members(self, open_room, third_user):
        """
        Open rooms are pairwise but public.

        Why it matters: any student can follow and join an open conversation.
        """
        assert RoomAccessPolicy.can_read_messages(third_user, open_room)
        assert RoomAccessPolicy.can_read_participants(third_user, open_room)
        assert RoomAccessPolicy.can_send_message(third_user, open_room)

    def test_direct_room_members_only(self, direct_room, user, third_user):
        assert RoomAccessPolicy.can_read_messages(user, direct_room)
        assert not RoomAccessPolicy.can_read_messages(third_user, direct_room)
        assert not RoomAccessPolicy.can_send_message(third_user, direct_room)
        assert not RoomAccessPolicy.can_read_participants(third_user, direct_room)
        assert not RoomAccessPolicy.can_read_typing(third_user, direct_room)

    def test_anonymous_denied_everywhere(self, campus_room):
        assert not RoomAccessPolicy.can_read_messages(AnonymousUser(), campus_room)
        assert not RoomAccessPolicy.can_read_messages(None, campus_room)

    def test_is_member(self, direct_room, user, third_user):
        assert is_member(user.id, direct_room.id)
        assert not is_member(third_user.id, direct_room.id)


class TestAddParticipant:
    def test_campus_self_join_only(self, campus_room, other_user, third_user):
        assert RoomAccessPolicy.can_add_participant(other_user, campus_room, other_user)
        assert not RoomAccessPolicy.can_add_participant(
            other_user, campus_room, third_user
        )

    def test_open_room_accepts_any_self_join(self, open_room, third_user):
        assert RoomAccessPolicy.can_add_participant(third_user, open_room, third_user)

    def test_full_direct_room_rejects_third_member(self, direct_room, user, third_user):
        assert not RoomAccessPolicy.can_add_participant(user, direct_room, third_user)
        assert not RoomAccessPolicy.can_add_participant(
            third_user, direct_room, third_user
        )

    def test_direct_room_bootstrap_by_creator(self, user, other_user, third_user):
        room = ChatRoomFactory(room_type=RoomType.DIRECT, created_by=user)

        assert RoomAccessPolicy.can_add_participant(user, room, user)
        assert RoomAccessPolicy.can_add_participant(user, room, other_user)
        assert not RoomAccessPolicy.can_add_participant(third_user, room, third_user)

    def test_open_room_with_one_member_accepts_self_join(self, user, other_user):
        room = ChatRoomFactory(room_type=RoomType.OPEN, created_by=user)
        ParticipantFactory(room=room, user=user)

        assert RoomAccessPolicy.can_add_participant(other_user, room, other_user)
        assert not RoomAccessPolicy.can_add_participant(user, room, other_user)


class TestDeleteMessage:
    def test_only_sender_may_delete(self, user, other_user):
        message = MessageFactory(sender=user)

        assert RoomAccessPolicy.can_delete_message(user, message)
        assert not RoomAccessPolicy.can_delete_message(other_user, message)


class TestRequireRoomAccess:
    class Service:
        @classmethod
        @require_room_access("read_messages", user_param="viewer")
        def read(cls, room, viewer):
            return ServiceResult.success("ok")

    def test_allows_positional_arguments(self, direct_room, user):
        assert self.Service.read(direct_room, user).data == "ok"

    def test_allows_keyword_arguments(self, direct_room, user):
        assert self.Service.read(room=direct_room, viewer=user).data == "ok"

    def test_denial_returns_not_allowed(self, direct_room, third_user):
        result = self.Service.read(direct_room, third_user)

        assert result.success is False
        assert result.error_code == "NOT_ALLOWED"
