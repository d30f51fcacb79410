"""
Celery tasks for chat app.

This module defines periodic maintenance for chat rooms:
- Purging inert pairwise rooms

Related files:
    - services.py: RoomService.list_user_rooms hides inert rooms
    - config/settings.py: CELERY_BEAT_SCHEDULE

Usage:
    from chat.tasks import purge_inert_rooms

    purge_inert_rooms.delay(grace_minutes=60)
"""

import logging
from datetime import timedelta

from celery import shared_task
from django.db.models import Count
from django.utils import timezone

from chat.constants import INERT_ROOM_GRACE_MINUTES

logger = logging.getLogger(__name__)


@shared_task
def purge_inert_rooms(grace_minutes: int | None = None) -> int:
    """
    Delete direct and open rooms left with fewer than two participants.

    RoomService creates pairwise rooms atomically, so such rooms come from
    a participant leaving (RoomService.leave_room) or from outside the
    service (admin, data fixes). They are already hidden from room lists;
    this removes them once they are older than the grace period.

    Args:
        grace_minutes: Minimum room age before deletion

    Returns:
        Number of rooms deleted
    """
    from chat.models import PAIRWISE_ROOM_TYPES, ChatRoom

    if grace_minutes is None:
        grace_minutes = INERT_ROOM_GRACE_MINUTES
    cutoff = timezone.now() - timedelta(minutes=grace_minutes)

    inert_ids = list(
        ChatRoom.objects.filter(
            room_type__in=PAIRWISE_ROOM_TYPES,
            created_at__lt=cutoff,
        )
        .annotate(participant_count=Count("participants"))
        .filter(participant_count__lt=2)
        .values_list("id", flat=True)
    )
    if not inert_ids:
        return 0

    deleted, _ = ChatRoom.objects.filter(id__in=inert_ids).delete()
    logger.info(f"Purged {len(inert_ids)} inert chat rooms ({deleted} rows)")
    return len(inert_ids)
