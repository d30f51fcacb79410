"""
Tests for the chat service layer.

Services tested:
- RoomService: lookup-or-create rooms, joining, leaving, listing
- MessageService: validation, sending, deleting, listing
- ReadReceiptService: idempotent receipts and read state

Realtime fan-out is replaced with mock_notifier where the test asserts on
it; elsewhere events are published to the in-memory channel layer.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from chat.constants import ATTACHMENT_CONFIG, CAMPUS_ROOM_NAME, MESSAGE_CONFIG
from chat.models import (
    ChatParticipant,
    ChatRoom,
    Message,
    MessageAttachment,
    ReadReceipt,
    RoomPair,
    RoomType,
)
from chat.authorization import RoomAccessPolicy
from chat.services import (
    MessageService,
    ReadReceiptService,
    RoomService,
    TypingService,
)
from chat.tests.factories import ChatRoomFactory, MessageFactory, ParticipantFactory


# =============================================================================
# RoomService
# =============================================================================


class TestCampusRoom:
    def test_created_on_first_use(self, user):
        result = RoomService.get_or_create_campus_room(user)

        assert result.success is True
        assert result.data.room_type == RoomType.CAMPUS
        assert result.data.name == CAMPUS_ROOM_NAME
        assert ChatParticipant.objects.filter(room=result.data, user=user).exists()

    def test_every_user_gets_the_same_room(self, user, other_user):
        first = RoomService.get_or_create_campus_room(user).data
        second = RoomService.get_or_create_campus_room(other_user).data

        assert first == second
        assert ChatRoom.objects.filter(room_type=RoomType.CAMPUS).count() == 1
        assert first.participants.count() == 2

    def test_concurrent_first_use_returns_winner(self, user):
        """
        Losing the race to create the campus room yields the winner's room.

        Why it matters: two first requests arriving together must still
        leave exactly one campus room.
        """
        winner = ChatRoomFactory(
            room_type=RoomType.CAMPUS, name=CAMPUS_ROOM_NAME, created_by=None
        )
        real_filter = ChatRoom.objects.filter
        lookups = []

        def filter_missing_once(*args, **kwargs):
            queryset = real_filter(*args, **kwargs)
            if not lookups:
                lookups.append(kwargs)
                return queryset.none()
            return queryset

        with patch.object(ChatRoom.objects, "filter", side_effect=filter_missing_once):
            result = RoomService.get_or_create_campus_room(user)

        assert result.success is True
        assert result.data == winner
        assert ChatRoom.objects.filter(room_type=RoomType.CAMPUS).count() == 1
        assert ChatParticipant.objects.filter(room=winner, user=user).exists()


class TestPairRooms:
    def test_direct_room_has_both_participants(self, user, other_user):
        room = RoomService.create_direct_room(user, other_user).data

        assert room.room_type == RoomType.DIRECT
        member_ids = set(room.participants.values_list("user_id", flat=True))
        assert member_ids == {user.id, other_user.id}

    def test_direct_room_is_symmetric(self, user, other_user):
        """
        The pair (a, b) and (b, a) map to one room.

        Why it matters: two students must never split their history
        across duplicate direct rooms.
        """
        first = RoomService.create_direct_room(user, other_user).data
        second = RoomService.create_direct_room(other_user, user).data

        assert first == second
        assert RoomPair.objects.count() == 1

    def test_concurrent_create_returns_existing_room(
        self, direct_room, user, other_user
    ):
        """
        A create that loses the pair constraint returns the winner's room.

        Why it matters: the pair lookup and insert are not one statement,
        so a concurrent create must fall back to the existing room instead
        of failing or duplicating it.
        """
        real_find = RoomService._find_pair_room
        lookups = []

        def missing_on_first_lookup(room_type, user_a_id, user_b_id):
            lookups.append(room_type)
            if len(lookups) == 1:
                return None
            return real_find(room_type, user_a_id, user_b_id)

        with patch.object(
            RoomService, "_find_pair_room", side_effect=missing_on_first_lookup
        ):
            result = RoomService.create_direct_room(other_user, user)

        assert result.success is True
        assert result.data == direct_room
        assert len(lookups) == 2
        assert ChatRoom.objects.count() == 1
        assert RoomPair.objects.count() == 1
        assert direct_room.participants.count() == 2

    def test_find_direct_room(self, direct_room, user, other_user, third_user):
        assert RoomService.find_direct_room(other_user, user) == direct_room
        assert RoomService.find_direct_room(user, third_user) is None

    def test_same_user_rejected(self, user):
        result = RoomService.create_direct_room(user, user)

        assert result.success is False
        assert result.error_code == "SAME_USER"
        assert not ChatRoom.objects.exists()

    def test_open_and_direct_rooms_are_separate(self, user, other_user):
        direct = RoomService.create_direct_room(user, other_user).data
        open_room = RoomService.create_open_room(user, other_user).data

        assert direct != open_room
        assert open_room.room_type == RoomType.OPEN
        assert open_room.created_by == user
        assert RoomService.find_open_room(other_user, user) == open_room


class TestJoinRoom:
    def test_join_campus_room(self, campus_room, other_user):
        result = RoomService.join_room(campus_room, other_user)

        assert result.success is True
        assert result.data.user == other_user

    def test_join_is_idempotent(self, campus_room, user):
        first = RoomService.join_room(campus_room, user).data
        second = RoomService.join_room(campus_room, user).data

        assert first == second
        assert campus_room.participants.filter(user=user).count() == 1

    def test_open_room_admits_third_member(self, open_room, user, third_user):
        """
        Anyone may join an open room; it is not capped at its two founders.

        Why it matters: open rooms are public conversations, so a third
        student joining must succeed rather than hit NOT_ALLOWED.
        """
        result = RoomService.join_room(open_room, third_user)

        assert result.success is True
        assert result.data.user == third_user
        assert open_room.participants.count() == 3
        assert open_room in RoomService.list_user_rooms(third_user)

    def test_cannot_join_full_direct_room(self, direct_room, third_user):
        result = RoomService.join_room(direct_room, third_user)

        assert result.error_code == "NOT_ALLOWED"
        assert direct_room.participants.count() == 2

    def test_cannot_add_someone_else_to_campus_room(
        self, campus_room, other_user, third_user
    ):
        result = RoomService.join_room(campus_room, other_user, new_user=third_user)

        assert result.error_code == "NOT_ALLOWED"


class TestLeaveRoom:
    def test_leave_open_room(self, open_room, user, third_user):
        RoomService.join_room(open_room, third_user)

        result = RoomService.leave_room(open_room, third_user)

        assert result.success is True
        assert not open_room.participants.filter(user=third_user).exists()
        assert open_room not in RoomService.list_user_rooms(third_user)
        assert open_room in RoomService.list_user_rooms(user)

    def test_leaving_direct_room_ends_access(self, direct_room, user, other_user):
        """
        A direct room depends on membership, so leaving revokes access.

        Why it matters: the leaver must stop receiving the other student's
        messages, and the half-empty room must not linger in lists.
        """
        RoomService.leave_room(direct_room, other_user)

        assert not RoomAccessPolicy.can_read_messages(other_user, direct_room)
        assert direct_room not in RoomService.list_user_rooms(user)

    def test_not_a_participant(self, direct_room, third_user):
        result = RoomService.leave_room(direct_room, third_user)

        assert result.success is False
        assert result.error_code == "NOT_PARTICIPANT"

    def test_leaving_clears_typing(self, open_room, user, mock_notifier):
        TypingService.set_typing(open_room, user, True)

        RoomService.leave_room(open_room, user)

        assert TypingService.snapshot(open_room.id) == []
        mock_notifier.typing.assert_called_with(
            open_room.id, user.id, "Test Student", False
        )

    def test_recreating_direct_room_restores_leaver(
        self, direct_room, user, other_user
    ):
        RoomService.leave_room(direct_room, other_user)

        room = RoomService.create_direct_room(user, other_user).data

        assert room == direct_room
        assert direct_room.participants.count() == 2


class TestListUserRooms:
    def test_lists_rooms_newest_first(self, user, other_user, third_user):
        older = RoomService.create_direct_room(user, other_user).data
        newer = RoomService.create_open_room(user, third_user).data

        rooms = list(RoomService.list_user_rooms(user))

        assert rooms == [newer, older]
        assert rooms[0].participant_count == 2

    def test_excludes_rooms_user_is_not_in(self, user, other_user, third_user):
        RoomService.create_direct_room(other_user, third_user)

        assert list(RoomService.list_user_rooms(user)) == []

    def test_excludes_inert_pairwise_rooms(self, user):
        """
        A pairwise room with fewer than two participants is never listed.

        Why it matters: a half-created room is a dead end for the user.
        """
        inert = ChatRoomFactory(room_type=RoomType.DIRECT, created_by=user)
        ParticipantFactory(room=inert, user=user)

        assert list(RoomService.list_user_rooms(user)) == []

    def test_campus_room_listed_with_one_participant(self, campus_room, user):
        assert list(RoomService.list_user_rooms(user)) == [campus_room]

    def test_filter_by_type(self, direct_room, campus_room, user):
        rooms = RoomService.list_user_rooms(user, room_type=RoomType.DIRECT)

        assert list(rooms) == [direct_room]


class TestListParticipants:
    def test_members_can_list(self, direct_room, user):
        result = RoomService.list_participants(direct_room, user)

        assert result.success is True
        assert len(result.data) == 2

    def test_outsider_cannot_list_direct_room(self, direct_room, third_user):
        result = RoomService.list_participants(direct_room, third_user)

        assert result.error_code == "NOT_ALLOWED"


class TestGetRoomForUser:
    def test_missing_room(self, user):
        result = RoomService.get_room_for_user(
            "00000000-0000-0000-0000-000000000000", user
        )

        assert result.error_code == "ROOM_NOT_FOUND"

    def test_denied_room(self, direct_room, third_user):
        result = RoomService.get_room_for_user(direct_room.id, third_user)

        assert result.error_code == "NOT_ALLOWED"

    def test_existence_only(self, direct_room, third_user):
        result = RoomService.get_room_for_user(direct_room.id, third_user, action=None)

        assert result.data == direct_room


# =============================================================================
# MessageService
# =============================================================================


class TestValidateMessage:
    def test_rejects_too_long_content(self):
        from chat.exceptions import ContentTooLongError

        with pytest.raises(ContentTooLongError):
            MessageService.validate_message("x" * (MESSAGE_CONFIG.MAX_CONTENT_LENGTH + 1))

    def test_accepts_max_length_content(self):
        MessageService.validate_message("x" * MESSAGE_CONFIG.MAX_CONTENT_LENGTH)

    def test_rejects_blank_without_file(self):
        from chat.exceptions import EmptyMessageError

        with pytest.raises(EmptyMessageError):
            MessageService.validate_message("   ")


class TestSendMessage:
    def test_member_sends_message(self, direct_room, user, mock_notifier):
        result = MessageService.send_message(direct_room, user, "Hello!")

        assert result.success is True
        assert result.data.content == "Hello!"
        assert result.data.sender == user
        mock_notifier.message_created.assert_called_once_with(result.data)

    def test_outsider_cannot_send_to_direct_room(self, direct_room, third_user):
        result = MessageService.send_message(direct_room, third_user, "Hi")

        assert result.success is False
        assert result.error_code == "NOT_ALLOWED"
        assert not Message.objects.exists()

    def test_anyone_can_send_to_open_room(self, open_room, third_user):
        result = MessageService.send_message(open_room, third_user, "Hi both")

        assert result.success is True

    def test_content_too_long(self, direct_room, user):
        content = "x" * (MESSAGE_CONFIG.MAX_CONTENT_LENGTH + 1)

        result = MessageService.send_message(direct_room, user, content)

        assert result.error_code == "CONTENT_TOO_LONG"
        assert not Message.objects.exists()

    def test_empty_message(self, direct_room, user):
        result = MessageService.send_message(direct_room, user, "  ")

        assert result.error_code == "EMPTY_MESSAGE"

    def test_file_only_message_gets_placeholder(self, direct_room, user, png_upload):
        result = MessageService.send_message(direct_room, user, upload=png_upload)

        assert result.success is True
        assert result.data.content == "Shared a file: diagram.png"
        attachment = result.data.attachment
        assert attachment.content_type == "image/png"
        assert attachment.original_filename == "diagram.png"
        assert attachment.uploaded_by == user

    def test_file_with_text_keeps_text(self, direct_room, user, png_upload):
        result = MessageService.send_message(
            direct_room, user, "See attached", upload=png_upload
        )

        assert result.data.content == "See attached"

    def test_disallowed_file_type(self, direct_room, user):
        upload = SimpleUploadedFile(
            "archive.zip", b"PK\x03\x04", content_type="application/zip"
        )

        result = MessageService.send_message(direct_room, user, upload=upload)

        assert result.error_code == "INVALID_FILE_TYPE"
        assert not MessageAttachment.objects.exists()

    def test_file_too_large(self, direct_room, user):
        upload = SimpleUploadedFile("big.pdf", b"x" * 2048, content_type="application/pdf")

        with patch.object(ATTACHMENT_CONFIG, "MAX_SIZE_BYTES", 1024):
            result = MessageService.send_message(direct_room, user, upload=upload)

        assert result.error_code == "FILE_TOO_LARGE"

    def test_storage_failure_is_transient(self, direct_room, user, png_upload):
        with patch(
            "django.core.files.storage.FileSystemStorage.save",
            side_effect=OSError("disk full"),
        ):
            result = MessageService.send_message(direct_room, user, upload=png_upload)

        assert result.error_code == "TRANSIENT_ERROR"
        assert not Message.objects.exists()


class TestDeleteMessage:
    def test_sender_deletes(self, direct_room, user, mock_notifier):
        message = MessageFactory(room=direct_room, sender=user)

        result = MessageService.delete_message(message, user)

        assert result.success is True
        assert not Message.objects.exists()
        mock_notifier.message_deleted.assert_called_once_with(
            direct_room.id, message.id
        )

    def test_other_member_cannot_delete(self, direct_room, user, other_user):
        message = MessageFactory(room=direct_room, sender=user)

        result = MessageService.delete_message(message, other_user)

        assert result.error_code == "NOT_ALLOWED"
        assert Message.objects.filter(id=message.id).exists()

    def test_attachment_removed_with_message(
        self, direct_room, user, png_upload, django_capture_on_commit_callbacks
    ):
        from django.core.files.storage import default_storage

        message = MessageService.send_message(direct_room, user, upload=png_upload).data
        path = message.attachment.storage_path
        assert default_storage.exists(path)

        with django_capture_on_commit_callbacks(execute=True):
            MessageService.delete_message(message, user)

        assert not MessageAttachment.objects.exists()
        assert not default_storage.exists(path)


class TestListMessages:
    def test_returns_messages_in_order(self, direct_room, user, other_user):
        now = timezone.now()
        second = MessageFactory(room=direct_room, sender=user, created_at=now)
        first = MessageFactory(
            room=direct_room, sender=other_user, created_at=now - timedelta(minutes=1)
        )

        result = MessageService.list_messages(direct_room, user)

        assert [m.id for m in result.data] == [first.id, second.id]

    def test_marks_others_messages_read(self, direct_room, user, other_user):
        mine = MessageFactory(room=direct_room, sender=user)
        theirs = MessageFactory(room=direct_room, sender=other_user)

        MessageService.list_messages(direct_room, user)

        assert ReadReceipt.objects.filter(message=theirs, user=user).exists()
        assert not ReadReceipt.objects.filter(message=mine).exists()

    def test_response_shows_receipts_before_marking(
        self, direct_room, user, other_user
    ):
        theirs = MessageFactory(room=direct_room, sender=other_user)

        result = MessageService.list_messages(direct_room, user)

        listed = next(m for m in result.data if m.id == theirs.id)
        assert ReadReceiptService.read_state(listed) == ReadReceiptService.SENT

    def test_outsider_cannot_list(self, direct_room, third_user):
        result = MessageService.list_messages(direct_room, third_user)

        assert result.error_code == "NOT_ALLOWED"

    def test_mark_read_can_be_disabled(self, direct_room, user, other_user):
        MessageFactory(room=direct_room, sender=other_user)

        MessageService.list_messages(direct_room, user, mark_read=False)

        assert not ReadReceipt.objects.exists()


# =============================================================================
# ReadReceiptService
# =============================================================================


class TestMarkRead:
    def test_creates_receipt(self, direct_room, user, other_user, mock_notifier):
        message = MessageFactory(room=direct_room, sender=other_user)

        result = ReadReceiptService.mark_read(message, user)

        assert result.success is True
        assert result.data.user == user
        mock_notifier.receipt_created.assert_called_once()

    def test_is_idempotent(self, direct_room, user, other_user, mock_notifier):
        """
        Marking twice leaves one receipt and publishes one event.

        Why it matters: clients re-send read frames on reconnect.
        """
        message = MessageFactory(room=direct_room, sender=other_user)

        first = ReadReceiptService.mark_read(message, user).data
        second = ReadReceiptService.mark_read(message, user).data

        assert first == second
        assert ReadReceipt.objects.count() == 1
        assert mock_notifier.receipt_created.call_count == 1

    def test_own_message_is_noop(self, direct_room, user):
        message = MessageFactory(room=direct_room, sender=user)

        result = ReadReceiptService.mark_read(message, user)

        assert result.success is True
        assert result.data is None
        assert not ReadReceipt.objects.exists()

    def test_outsider_cannot_mark(self, direct_room, other_user, third_user):
        message = MessageFactory(room=direct_room, sender=other_user)

        result = ReadReceiptService.mark_read(message, third_user)

        assert result.error_code == "NOT_ALLOWED"


class TestReadState:
    def test_sent_until_someone_else_reads(self, direct_room, user, other_user):
        message = MessageFactory(room=direct_room, sender=user)
        assert ReadReceiptService.read_state(message) == ReadReceiptService.SENT

        ReadReceiptService.mark_read(message, other_user)

        assert ReadReceiptService.read_state(message) == ReadReceiptService.READ

    def test_mark_room_read_counts(self, direct_room, user, other_user):
        MessageFactory(room=direct_room, sender=other_user)
        MessageFactory(room=direct_room, sender=other_user)

        assert ReadReceiptService.mark_room_read(direct_room, user).data == 2
        assert ReadReceiptService.mark_room_read(direct_room, user).data == 0

    def test_mark_room_read_broadcasts_only_stored_receipts(
        self, direct_room, user, other_user, mock_notifier
    ):
        """
        A receipt written by a concurrent load is neither counted nor re-sent.

        Why it matters: clients must never receive a read_at that differs
        from the one stored for the receipt.
        """
        first = MessageFactory(room=direct_room, sender=other_user)
        second = MessageFactory(room=direct_room, sender=other_user)
        earlier = timezone.now() - timedelta(minutes=5)
        real_bulk_create = ReadReceipt.objects.bulk_create

        def bulk_create_after_competitor(objs, **kwargs):
            ReadReceipt.objects.create(message=first, user=user, read_at=earlier)
            return real_bulk_create(objs, **kwargs)

        with patch.object(
            ReadReceipt.objects, "bulk_create", side_effect=bulk_create_after_competitor
        ):
            result = ReadReceiptService.mark_room_read(direct_room, user)

        assert result.data == 1
        mock_notifier.receipt_created.assert_called_once()
        broadcast = mock_notifier.receipt_created.call_args.args[0]
        assert broadcast.message_id == second.id
        assert ReadReceipt.objects.get(message=first, user=user).read_at == earlier
