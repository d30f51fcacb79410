"""
Connection request service layer.

Services:
    ConnectionService: Send, accept, reject and remove connection requests

Business Rules:
    - A student cannot connect with themselves
    - Only one request may be open or accepted per pair, in either direction
    - A rejected request may be re-sent by either student (the row is reused)
    - Only the receiver may accept or reject, and only while pending
    - Either student may remove a request (this also ends a connection)

Accepting a request triggers the post_save handler in connections.signals,
which opens the pair's direct chat room in the same transaction.

Usage:
    from connections.services import ConnectionService

    result = ConnectionService.send_request(alice, bob)
    ConnectionService.accept(result.data, bob)

    ConnectionService.are_connected(alice, bob)  # True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService, ServiceResult

from connections.models import ConnectionRequest, ConnectionStatus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

INCOMING = "incoming"
OUTGOING = "outgoing"


class ConnectionService(BaseService):
    """
    Manages connection requests between students.

    Methods:
        send_request: Create (or re-open) a pending request
        accept: Receiver accepts a pending request
        reject: Receiver rejects a pending request
        remove: Either party deletes the request
        get_for_user: Fetch a request the user is part of
        list_for_user: Requests involving a user
        are_connected: Whether two students hold an accepted request
    """

    @classmethod
    def _between(cls, user_a, user_b) -> QuerySet[ConnectionRequest]:
        return ConnectionRequest.objects.filter(
            Q(requester=user_a, receiver=user_b) | Q(requester=user_b, receiver=user_a)
        )

    @classmethod
    def send_request(cls, requester: User, receiver: User) -> ServiceResult[ConnectionRequest]:
        """
        Send a connection request from requester to receiver.

        Two students requesting each other at the same moment collide on
        unique_connection_pair; the later insert gets ALREADY_EXISTS.

        Error codes:
            SAME_USER: requester and receiver are the same student
            ALREADY_EXISTS: A pending or accepted request exists for the pair
        """
        logger = cls.get_logger()

        if requester.pk == receiver.pk:
            return ServiceResult.from_exception(
                ValidationError("Cannot connect with yourself", error_code="SAME_USER")
            )

        with cls.atomic():
            existing = cls._between(requester, receiver).select_for_update().first()

            if existing is not None and existing.status != ConnectionStatus.REJECTED:
                return ServiceResult.from_exception(
                    ConflictError(
                        "A connection request already exists",
                        error_code="ALREADY_EXISTS",
                        details={"status": existing.status},
                    )
                )

            if existing is not None:
                existing.requester = requester
                existing.receiver = receiver
                existing.status = ConnectionStatus.PENDING
                existing.responded_at = None
                existing.save()
                logger.info(
                    f"Connection request {existing.id} re-opened by {requester.id}"
                )
                return ServiceResult.success(existing)

            try:
                with transaction.atomic():
                    request = ConnectionRequest.objects.create(
                        requester=requester,
                        receiver=receiver,
                    )
            except IntegrityError:
                # The other student's request landed first
                winner = cls._between(requester, receiver).first()
                return ServiceResult.from_exception(
                    ConflictError(
                        "A connection request already exists",
                        error_code="ALREADY_EXISTS",
                        details={
                            "status": winner.status
                            if winner is not None
                            else ConnectionStatus.PENDING
                        },
                    )
                )

        logger.info(f"Connection request {request.id}: {requester.id} -> {receiver.id}")
        return ServiceResult.success(request)

    @classmethod
    def _respond(
        cls, request: ConnectionRequest, user: User, status: str
    ) -> ServiceResult[ConnectionRequest]:
        if user.pk != request.receiver_id:
            return ServiceResult.from_exception(
                PermissionDeniedError(
                    "Only the receiver can respond to this request",
                    error_code="NOT_RECEIVER",
                )
            )

        if request.status != ConnectionStatus.PENDING:
            return ServiceResult.from_exception(
                ConflictError(
                    f"Request is already {request.status}",
                    error_code="INVALID_STATUS",
                    details={"status": request.status},
                )
            )

        with cls.atomic():
            request.status = status
            request.responded_at = timezone.now()
            request.save(update_fields=["status", "responded_at", "updated_at"])

        cls.get_logger().info(f"Connection request {request.id} {status} by {user.id}")
        return ServiceResult.success(request)

    @classmethod
    def accept(cls, request: ConnectionRequest, user: User) -> ServiceResult[ConnectionRequest]:
        """
        Accept a pending request.

        The direct room for the pair is created in the same transaction;
        if that fails the acceptance is rolled back.

        Error codes:
            NOT_RECEIVER: user is not the receiver
            INVALID_STATUS: request is not pending
        """
        return cls._respond(request, user, ConnectionStatus.ACCEPTED)

    @classmethod
    def reject(cls, request: ConnectionRequest, user: User) -> ServiceResult[ConnectionRequest]:
        """
        Reject a pending request.

        Error codes:
            NOT_RECEIVER: user is not the receiver
            INVALID_STATUS: request is not pending
        """
        return cls._respond(request, user, ConnectionStatus.REJECTED)

    @classmethod
    def remove(cls, request: ConnectionRequest, user: User) -> ServiceResult[None]:
        """
        Delete a request or end a connection.

        An existing direct room is left in place; it stays readable by
        both participants.

        Error codes:
            NOT_PARTICIPANT: user is neither requester nor receiver
        """
        if not request.involves(user):
            return ServiceResult.from_exception(
                PermissionDeniedError(
                    "Not part of this connection", error_code="NOT_PARTICIPANT"
                )
            )

        request_id = request.id
        request.delete()
        cls.get_logger().info(f"Connection request {request_id} removed by {user.id}")
        return ServiceResult.success(None)

    @classmethod
    def get_for_user(cls, request_id, user: User) -> ServiceResult[ConnectionRequest]:
        """
        Fetch a request that involves user.

        Requests between other students are reported as missing.

        Error codes:
            CONNECTION_NOT_FOUND: No such request for this user
        """
        request = (
            ConnectionRequest.objects.select_related("requester", "receiver")
            .filter(Q(requester=user) | Q(receiver=user), id=request_id)
            .first()
        )
        if request is None:
            return ServiceResult.from_exception(
                NotFoundError("Connection not found", error_code="CONNECTION_NOT_FOUND")
            )
        return ServiceResult.success(request)

    @classmethod
    def list_for_user(
        cls,
        user: User,
        status: str | None = None,
        direction: str | None = None,
    ) -> QuerySet[ConnectionRequest]:
        """
        Requests involving user, newest first.

        Args:
            user: The student
            status: Optional ConnectionStatus filter
            direction: "incoming" (user is receiver), "outgoing" (user is
                requester) or None for both
        """
        if direction == INCOMING:
            queryset = ConnectionRequest.objects.filter(receiver=user)
        elif direction == OUTGOING:
            queryset = ConnectionRequest.objects.filter(requester=user)
        else:
            queryset = ConnectionRequest.objects.filter(
                Q(requester=user) | Q(receiver=user)
            )

        if status:
            queryset = queryset.filter(status=status)

        return queryset.select_related(
            "requester", "requester__profile", "receiver", "receiver__profile"
        ).order_by("-created_at", "-id")

    @classmethod
    def are_connected(cls, user_a, user_b) -> bool:
        """True if the two students hold an accepted request in either direction."""
        return cls._between(user_a, user_b).filter(status=ConnectionStatus.ACCEPTED).exists()
