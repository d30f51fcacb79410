"""
Tests for connections signals.

- open_direct_room_on_accept: pending -> accepted opens the direct room
"""

from chat.models import ChatRoom, RoomPair, RoomType
from chat.services import RoomService
from connections.models import ConnectionStatus
from connections.tests.factories import ConnectionRequestFactory


class TestOpenDirectRoomOnAccept:
    def test_status_change_to_accepted_creates_room(self, user, other_user):
        request = ConnectionRequestFactory(requester=user, receiver=other_user)

        request.status = ConnectionStatus.ACCEPTED
        request.save()

        pair = RoomPair.objects.get(room_type=RoomType.DIRECT)
        assert {pair.user_lower_id, pair.user_higher_id} == {user.id, other_user.id}

    def test_created_as_accepted_does_not_create_room(self, user, other_user):
        ConnectionRequestFactory(
            requester=user, receiver=other_user, status=ConnectionStatus.ACCEPTED
        )

        assert not ChatRoom.objects.exists()

    def test_rejection_does_not_create_room(self, user, other_user):
        request = ConnectionRequestFactory(requester=user, receiver=other_user)

        request.status = ConnectionStatus.REJECTED
        request.save()

        assert not ChatRoom.objects.exists()

    def test_existing_direct_room_is_reused(self, user, other_user):
        """
        Accepting after a direct room already exists does not duplicate it.

        Why it matters: a pair has exactly one direct room.
        """
        existing = RoomService.create_direct_room(user, other_user).data
        request = ConnectionRequestFactory(requester=other_user, receiver=user)

        request.status = ConnectionStatus.ACCEPTED
        request.save()

        assert ChatRoom.objects.filter(room_type=RoomType.DIRECT).get() == existing
