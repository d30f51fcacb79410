"""
Pagination classes for chat API.

- MessageCursorPagination: message lists, oldest first
- RoomCursorPagination: room lists, newest first

Cursor-based pagination keeps pages stable while new messages arrive; the
cursor encodes the position in (created_at, id) order.
"""

from rest_framework.pagination import CursorPagination

from chat.constants import MESSAGE_CONFIG


class MessageCursorPagination(CursorPagination):
    """
    Cursor pagination for message lists.

    Orders messages oldest-first for natural chat reading.

    Query parameters:
        cursor: Encoded cursor for position
        page_size: Number of messages (optional override)
    """

    page_size = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE
    max_page_size = MESSAGE_CONFIG.MAX_PAGE_SIZE
    page_size_query_param = "page_size"
    ordering = ("created_at", "id")
    cursor_query_param = "cursor"


class RoomCursorPagination(CursorPagination):
    """Cursor pagination for room lists, most recently created first."""

    page_size = 20
    max_page_size = 50
    page_size_query_param = "page_size"
    ordering = ("-created_at", "-id")
    cursor_query_param = "cursor"
