"""
Tests for connection request API views.

- GET/POST /api/v1/connections/
- DELETE /api/v1/connections/{id}/
- POST /api/v1/connections/{id}/accept/ and /reject/
"""

import uuid

from rest_framework import status

from chat.models import ChatRoom, RoomType
from connections.models import ConnectionRequest, ConnectionStatus
from connections.tests.factories import ConnectionRequestFactory

CONNECTIONS_URL = "/api/v1/connections/"


def connection_url(request_id, suffix=""):
    return f"{CONNECTIONS_URL}{request_id}/{suffix}"


class TestConnectionList:
    def test_requires_authentication(self, api_client, db):
        response = api_client.get(CONNECTIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lists_own_requests_only(
        self, authenticated_client, user, other_user, third_user
    ):
        mine = ConnectionRequestFactory(requester=user, receiver=other_user)
        ConnectionRequestFactory(requester=other_user, receiver=third_user)

        response = authenticated_client.get(CONNECTIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        ids = [item["id"] for item in response.data["results"]]
        assert ids == [str(mine.id)]

    def test_direction_filter(self, authenticated_client, user, other_user, third_user):
        ConnectionRequestFactory(requester=user, receiver=other_user)
        incoming = ConnectionRequestFactory(requester=third_user, receiver=user)

        response = authenticated_client.get(CONNECTIONS_URL, {"direction": "incoming"})

        ids = [item["id"] for item in response.data["results"]]
        assert ids == [str(incoming.id)]


class TestConnectionCreate:
    def test_send_request(self, authenticated_client, user, other_user):
        response = authenticated_client.post(
            CONNECTIONS_URL, {"receiver_id": str(other_user.id)}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == ConnectionStatus.PENDING
        assert response.data["requester"]["id"] == str(user.id)
        assert response.data["receiver"]["id"] == str(other_user.id)

    def test_unknown_receiver(self, authenticated_client):
        response = authenticated_client.post(
            CONNECTIONS_URL, {"receiver_id": str(uuid.uuid4())}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_self_request(self, authenticated_client, user):
        response = authenticated_client.post(
            CONNECTIONS_URL, {"receiver_id": str(user.id)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "SAME_USER"

    def test_duplicate_is_conflict(self, authenticated_client, user, other_user):
        ConnectionRequestFactory(requester=other_user, receiver=user)

        response = authenticated_client.post(
            CONNECTIONS_URL, {"receiver_id": str(other_user.id)}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ALREADY_EXISTS"


class TestConnectionRespond:
    def test_accept_opens_direct_room(self, authenticated_client, user, other_user):
        request = ConnectionRequestFactory(requester=other_user, receiver=user)

        response = authenticated_client.post(connection_url(request.id, "accept/"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == ConnectionStatus.ACCEPTED
        assert ChatRoom.objects.filter(room_type=RoomType.DIRECT).count() == 1

    def test_requester_cannot_accept(self, authenticated_client, user, other_user):
        request = ConnectionRequestFactory(requester=user, receiver=other_user)

        response = authenticated_client.post(connection_url(request.id, "accept/"))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_RECEIVER"

    def test_reject(self, authenticated_client, user, other_user):
        request = ConnectionRequestFactory(requester=other_user, receiver=user)

        response = authenticated_client.post(connection_url(request.id, "reject/"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == ConnectionStatus.REJECTED

    def test_other_students_request_is_not_found(
        self, authenticated_client, other_user, third_user
    ):
        request = ConnectionRequestFactory(requester=other_user, receiver=third_user)

        response = authenticated_client.post(connection_url(request.id, "accept/"))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestConnectionDelete:
    def test_remove(self, authenticated_client, user, other_user):
        request = ConnectionRequestFactory(
            requester=other_user, receiver=user, status=ConnectionStatus.ACCEPTED
        )

        response = authenticated_client.delete(connection_url(request.id))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not ConnectionRequest.objects.exists()
