"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, attachment placeholders)
- Attachment handling (allowed types, size limit, URL lifetime)
- Typing indicators (idle timeout, cache TTL)

Numeric limits read from settings.CHAT so deployments can tune them.
Import example:
    from chat.constants import MESSAGE_CONFIG, TYPING_CONFIG
"""

from typing import Final

from django.conf import settings


def _chat_setting(name: str, default):
    return getattr(settings, "CHAT", {}).get(name, default)


# =============================================================================
# Room Configuration
# =============================================================================


CAMPUS_ROOM_NAME: Final[str] = "Campus General Chat"


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = _chat_setting("MAX_MESSAGE_LENGTH", 5000)

    # Content stored when a file is sent without text
    ATTACHMENT_PLACEHOLDER: Final[str] = "Shared a file: {filename}"

    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100


# =============================================================================
# Attachment Configuration
# =============================================================================


class ATTACHMENT_CONFIG:
    """
    Configuration for message attachments.

    Files are written to the default storage under
    STORAGE_PREFIX/<user_id>/<random>.<ext> and read back through
    short-lived URLs.
    """

    ALLOWED_CONTENT_TYPES: Final[frozenset] = frozenset(
        {
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            "application/pdf",
        }
    )

    MAX_SIZE_BYTES: Final[int] = _chat_setting(
        "MAX_ATTACHMENT_SIZE", 10 * 1024 * 1024
    )

    SIGNED_URL_TTL_SECONDS: Final[int] = _chat_setting("SIGNED_URL_TTL", 3600)

    STORAGE_PREFIX: Final[str] = "chat-attachments"

    # Salt for download tokens when storage cannot presign
    SIGNING_SALT: Final[str] = "chat.attachment.download"


# =============================================================================
# Typing Configuration
# =============================================================================


class TYPING_CONFIG:
    """Configuration for typing indicators."""

    # Clients stop reporting after this much keyboard inactivity
    IDLE_TIMEOUT_SECONDS: Final[int] = 2

    # Server drops an entry that has not been refreshed within this window
    TTL_SECONDS: Final[int] = _chat_setting("TYPING_TTL", 5)

    KEY_PREFIX: Final[str] = "chat:typing"


# =============================================================================
# Maintenance Configuration
# =============================================================================


INERT_ROOM_GRACE_MINUTES: Final[int] = _chat_setting("INERT_ROOM_GRACE_MINUTES", 60)
