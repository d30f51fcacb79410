"""
ViewSets for connection requests.

URL Structure:
    /api/v1/connections/                 GET, POST
    /api/v1/connections/{id}/            DELETE
    /api/v1/connections/{id}/accept/     POST
    /api/v1/connections/{id}/reject/     POST

Requests between other students are reported as 404.
"""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from connections.models import ConnectionStatus
from connections.serializers import (
    ConnectionRequestCreateSerializer,
    ConnectionRequestSerializer,
)
from connections.services import INCOMING, OUTGOING, ConnectionService
from core.exceptions import http_status_for


def error_response(result) -> Response:
    return Response(result.to_response(), status=http_status_for(result.exception))


@extend_schema_view(
    list=extend_schema(
        operation_id="list_connections",
        summary="List my connection requests",
        tags=["Connections"],
        parameters=[
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                enum=[choice for choice, _ in ConnectionStatus.choices],
            ),
            OpenApiParameter(
                name="direction",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                enum=[INCOMING, OUTGOING],
            ),
        ],
    ),
    create=extend_schema(
        operation_id="send_connection_request",
        summary="Send a connection request",
        request=ConnectionRequestCreateSerializer,
        responses={
            201: ConnectionRequestSerializer,
            400: OpenApiResponse(description="Unknown user or same user"),
            409: OpenApiResponse(description="Request already exists"),
        },
        tags=["Connections"],
    ),
    destroy=extend_schema(
        operation_id="remove_connection",
        summary="Remove a connection or request",
        responses={204: None},
        tags=["Connections"],
    ),
    accept=extend_schema(
        operation_id="accept_connection",
        summary="Accept a pending request",
        description="Accepting opens a direct chat room for the pair.",
        request=None,
        responses={200: ConnectionRequestSerializer},
        tags=["Connections"],
    ),
    reject=extend_schema(
        operation_id="reject_connection",
        summary="Reject a pending request",
        request=None,
        responses={200: ConnectionRequestSerializer},
        tags=["Connections"],
    ),
)
class ConnectionViewSet(viewsets.GenericViewSet):
    """
    ViewSet for connection requests.

    list:
        Requests the current user sent or received, newest first.
        Filter with ?status= and ?direction=incoming|outgoing.

    create:
        Send a request. Re-sending after a rejection re-opens it.

    accept / reject:
        Receiver only, pending requests only.

    destroy:
        Either student; removes the request or ends the connection.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ConnectionRequestSerializer

    def get_queryset(self):
        return ConnectionService.list_for_user(
            self.request.user,
            status=self.request.query_params.get("status"),
            direction=self.request.query_params.get("direction"),
        )

    def _get_request(self, pk):
        return ConnectionService.get_for_user(pk, self.request.user)

    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = ConnectionRequestSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(ConnectionRequestSerializer(queryset, many=True).data)

    def create(self, request):
        serializer = ConnectionRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConnectionService.send_request(
            request.user, serializer.validated_data["receiver_id"]
        )
        if not result.success:
            return error_response(result)
        return Response(
            ConnectionRequestSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, pk=None):
        lookup = self._get_request(pk)
        if not lookup.success:
            return error_response(lookup)

        result = ConnectionService.remove(lookup.data, request.user)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def accept(self, request, pk=None):
        return self._respond(pk, ConnectionService.accept)

    def reject(self, request, pk=None):
        return self._respond(pk, ConnectionService.reject)

    def _respond(self, pk, operation):
        lookup = self._get_request(pk)
        if not lookup.success:
            return error_response(lookup)

        result = operation(lookup.data, self.request.user)
        if not result.success:
            return error_response(result)
        return Response(ConnectionRequestSerializer(result.data).data)
