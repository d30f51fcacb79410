"""
Tests for chat models and their database constraints.

Models tested:
- ChatRoom: single campus room, immutable room_type
- RoomPair: one room per (type, pair), normalized ordering
- ChatParticipant: one row per (room, user)
- ReadReceipt: one per (message, user), never by the sender
"""

import uuid

import pytest
from django.db import IntegrityError

from chat.models import ChatParticipant, ChatRoom, RoomPair, RoomType
from chat.tests.factories import (
    ChatRoomFactory,
    MessageFactory,
    ParticipantFactory,
    ReadReceiptFactory,
)
from core.exceptions import ValidationError


class TestChatRoom:
    def test_only_one_campus_room(self, db):
        """
        The database holds at most one campus room.

        Why it matters: every student must land in the same campus chat.
        """
        ChatRoomFactory(room_type=RoomType.CAMPUS, created_by=None)

        with pytest.raises(IntegrityError):
            ChatRoomFactory(room_type=RoomType.CAMPUS, created_by=None)

    def test_many_direct_rooms_allowed(self, db):
        ChatRoomFactory()
        ChatRoomFactory()

        assert ChatRoom.objects.filter(room_type=RoomType.DIRECT).count() == 2

    def test_room_type_cannot_change(self, db):
        room = ChatRoomFactory(room_type=RoomType.DIRECT)
        room.room_type = RoomType.OPEN

        with pytest.raises(ValidationError) as exc_info:
            room.save()

        assert exc_info.value.error_code == "ROOM_TYPE_IMMUTABLE"
        room.refresh_from_db()
        assert room.room_type == RoomType.DIRECT

    def test_name_can_change(self, db):
        room = ChatRoomFactory(room_type=RoomType.OPEN)
        room.name = "Study group"
        room.save()

        room.refresh_from_db()
        assert room.name == "Study group"

    def test_is_public(self, db):
        assert ChatRoomFactory(room_type=RoomType.OPEN).is_public is True
        assert ChatRoomFactory(room_type=RoomType.DIRECT).is_public is False


class TestRoomPair:
    def test_normalize_orders_ids(self):
        low, high = sorted([uuid.uuid4(), uuid.uuid4()])

        assert RoomPair.normalize(high, low) == (low, high)
        assert RoomPair.normalize(low, high) == (low, high)

    def test_duplicate_pair_rejected(self, user, other_user):
        low, high = sorted([user, other_user], key=lambda u: u.id)
        RoomPair.objects.create(
            room=ChatRoomFactory(), room_type=RoomType.DIRECT,
            user_lower=low, user_higher=high,
        )

        with pytest.raises(IntegrityError):
            RoomPair.objects.create(
                room=ChatRoomFactory(), room_type=RoomType.DIRECT,
                user_lower=low, user_higher=high,
            )

    def test_same_pair_may_have_open_and_direct_rooms(self, user, other_user):
        low, high = sorted([user, other_user], key=lambda u: u.id)
        for room_type in (RoomType.DIRECT, RoomType.OPEN):
            RoomPair.objects.create(
                room=ChatRoomFactory(room_type=room_type), room_type=room_type,
                user_lower=low, user_higher=high,
            )

        assert RoomPair.objects.count() == 2

    def test_unordered_pair_rejected(self, user, other_user):
        low, high = sorted([user, other_user], key=lambda u: u.id)

        with pytest.raises(IntegrityError):
            RoomPair.objects.create(
                room=ChatRoomFactory(), room_type=RoomType.DIRECT,
                user_lower=high, user_higher=low,
            )


class TestChatParticipant:
    def test_duplicate_participant_rejected(self, user):
        participant = ParticipantFactory(user=user)

        with pytest.raises(IntegrityError):
            ChatParticipant.objects.create(room=participant.room, user=user)


class TestReadReceipt:
    def test_sender_cannot_hold_receipt(self, user):
        message = MessageFactory(sender=user)

        with pytest.raises(ValidationError) as exc_info:
            ReadReceiptFactory(message=message, user=user)

        assert exc_info.value.error_code == "OWN_MESSAGE"

    def test_duplicate_receipt_rejected(self, user, other_user):
        message = MessageFactory(sender=user)
        ReadReceiptFactory(message=message, user=other_user)

        with pytest.raises(IntegrityError):
            ReadReceiptFactory(message=message, user=other_user)
