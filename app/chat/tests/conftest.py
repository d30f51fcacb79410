"""
Test configuration and fixtures for chat tests.

Users and API clients come from the project conftest (user, other_user,
third_user, authenticated_client, client_for, token_for).

Usage:
    def test_example(direct_room, user, authenticated_client):
        response = authenticated_client.get(f"/api/v1/chat/rooms/{direct_room.id}/")
        assert response.status_code == 200
"""

from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from chat.services import RoomService


@pytest.fixture
def direct_room(user, other_user):
    """Direct room between user and other_user."""
    return RoomService.create_direct_room(user, other_user).data


@pytest.fixture
def open_room(user, other_user):
    """Open room created by user with other_user."""
    return RoomService.create_open_room(user, other_user).data


@pytest.fixture
def campus_room(user):
    """The campus room, with user as a participant."""
    return RoomService.get_or_create_campus_room(user).data


@pytest.fixture
def mock_notifier():
    """
    Replace RoomNotifier in the service layer.

    Usage:
        def test_x(mock_notifier):
            ...
            mock_notifier.message_created.assert_called_once()
    """
    with patch("chat.services.RoomNotifier") as notifier:
        yield notifier


@pytest.fixture
def png_upload():
    """Small uploaded PNG file."""
    return SimpleUploadedFile(
        "diagram.png", b"\x89PNG\r\n\x1a\nfakeimagedata", content_type="image/png"
    )
