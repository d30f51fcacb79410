"""
Chat-specific error types.

Built on core.exceptions so ServiceResult and the views map them to HTTP
statuses without special cases.

    AuthorizationError      403  NOT_ALLOWED
    ContentTooLongError     400  CONTENT_TOO_LONG
    InvalidFileTypeError    400  INVALID_FILE_TYPE
    FileTooLargeError       400  FILE_TOO_LARGE
    EmptyMessageError       400  EMPTY_MESSAGE
    SameUserError           400  SAME_USER
    RoomNotFoundError       404  ROOM_NOT_FOUND
    MessageNotFoundError    404  MESSAGE_NOT_FOUND
    NotParticipantError     404  NOT_PARTICIPANT
    TransientError          503  TRANSIENT_ERROR
"""

from __future__ import annotations

from core.exceptions import (
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class AuthorizationError(PermissionDeniedError):
    """
    Policy denial.

    The message is deliberately generic: callers never learn whether the
    room exists or which rule denied them.
    """

    default_error_code = "NOT_ALLOWED"

    def __init__(self, message: str = "Not allowed", **kwargs):
        super().__init__(message, **kwargs)


class ContentTooLongError(ValidationError):
    default_error_code = "CONTENT_TOO_LONG"

    def __init__(self, max_length: int, length: int):
        super().__init__(
            f"Message cannot exceed {max_length} characters",
            details={"max_length": max_length, "length": length},
        )


class InvalidFileTypeError(ValidationError):
    default_error_code = "INVALID_FILE_TYPE"

    def __init__(self, content_type: str):
        super().__init__(
            f"File type '{content_type}' is not allowed",
            details={"content_type": content_type},
        )


class FileTooLargeError(ValidationError):
    default_error_code = "FILE_TOO_LARGE"

    def __init__(self, max_size: int, size: int):
        super().__init__(
            f"File cannot exceed {max_size // (1024 * 1024)}MB",
            details={"max_size": max_size, "size": size},
        )


class EmptyMessageError(ValidationError):
    default_error_code = "EMPTY_MESSAGE"

    def __init__(self):
        super().__init__("Message must have content or an attachment")


class SameUserError(ValidationError):
    default_error_code = "SAME_USER"

    def __init__(self, message: str = "Cannot create a room with yourself"):
        super().__init__(message)


class RoomNotFoundError(NotFoundError):
    default_error_code = "ROOM_NOT_FOUND"

    def __init__(self, message: str = "Room not found", **kwargs):
        super().__init__(message, **kwargs)


class MessageNotFoundError(NotFoundError):
    default_error_code = "MESSAGE_NOT_FOUND"

    def __init__(self, message: str = "Message not found", **kwargs):
        super().__init__(message, **kwargs)


class NotParticipantError(NotFoundError):
    default_error_code = "NOT_PARTICIPANT"

    def __init__(self, message: str = "Not a participant in this room", **kwargs):
        super().__init__(message, **kwargs)


class TransientError(ExternalServiceError):
    """Storage or channel layer failure; safe to retry idempotent calls."""

    default_error_code = "TRANSIENT_ERROR"

    def __init__(self, message: str = "Service temporarily unavailable", **kwargs):
        super().__init__(message, **kwargs)
