"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, policy denial)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class RoomService(BaseService):
        @classmethod
        def join_room(cls, room, user) -> ServiceResult[ChatParticipant]:
            if not RoomAccessPolicy.can_add_participant(user, room, user):
                return ServiceResult.from_exception(AuthorizationError())

            with cls.atomic():
                participant, _ = ChatParticipant.objects.get_or_create(
                    room=room, user=user
                )

            cls.get_logger().info(f"User {user.id} joined room {room.id}")
            return ServiceResult.success(participant)

    # In view
    result = RoomService.join_room(room, request.user)
    if result.success:
        return Response(ParticipantSerializer(result.data).data, status=201)
    return error_response(result)

Related:
    - core.exceptions: Error hierarchy carried by failed results
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, policy denials).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        exception: The application error that caused the failure, if any.
            Views use its class to choose the HTTP status code.

    Usage:
        # Success case
        return ServiceResult.success(message)

        # Failure case
        return ServiceResult.failure("Room not found", "ROOM_NOT_FOUND")

        # Failure carrying a typed error
        return ServiceResult.from_exception(ContentTooLongError(5000))

        # Check result
        result = MessageService.send_message(room, user, "hi")
        if result.success:
            message = result.data
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)
    exception: Exception | None = field(default=None, repr=False)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure(
                "Validation failed",
                error_code="VALIDATION_ERROR",
                errors={"content": ["Too long"]}
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message and error code; other
        exceptions use the class name as the code. The exception itself is
        kept on the result so the caller can re-raise or classify it.

        Args:
            exc: The caught exception
            error_code: Optional error code override

        Returns:
            ServiceResult with error details from exception

        Example:
            try:
                storage.save(path, upload)
            except OSError as e:
                return ServiceResult.from_exception(TransientError(str(e)))
        """
        from core.exceptions import BaseApplicationError

        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
                errors=exc.details or None,
                exception=exc,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
            exception=exc,
        )

    def unwrap(self) -> T:
        """
        Return the data, or raise the failure.

        Raises the carried exception when there is one, otherwise a
        BaseApplicationError built from the error fields. Useful in callers
        that prefer exceptions (signals, tasks, the WebSocket consumer).
        """
        if self.success:
            return self.data  # type: ignore[return-value]
        if self.exception is not None:
            raise self.exception
        from core.exceptions import BaseApplicationError

        raise BaseApplicationError(self.error or "Operation failed", self.error_code)

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API error/success body.

        Returns:
            Dict with data on success, or error and error_code on failure
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["details"] = self.errors
        return response

    def map(self, func) -> ServiceResult:
        """
        Transform the data if successful.

        Example:
            result = RoomService.create_direct_room(a, b)
            room_id = result.map(lambda room: room.id)
        """
        if self.success and self.data is not None:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore

    def __bool__(self) -> bool:
        """Allow using result in boolean context (same as result.success)."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Example:
            with cls.atomic():
                room = ChatRoom.objects.create(room_type=RoomType.DIRECT)
                ChatParticipant.objects.create(room=room, user=user)
                # If participant creation fails, the room is rolled back too
        """
        with transaction.atomic():
            yield
