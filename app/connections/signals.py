"""
Django signals for connections.

Signal handlers:
- Remember a request's stored status before it is saved
- Open the direct chat room when a request becomes accepted

Usage:
    Signals are automatically connected when the app is ready.
    See apps.py for the import that triggers connection.
"""

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from connections.models import ConnectionRequest, ConnectionStatus

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=ConnectionRequest)
def remember_previous_status(sender, instance, **kwargs):
    """Record the status currently stored for this request, if any."""
    if instance._state.adding:
        instance._previous_status = None
        return

    instance._previous_status = (
        sender.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
    )


@receiver(post_save, sender=ConnectionRequest)
def open_direct_room_on_accept(sender, instance, created, **kwargs):
    """
    Create the pair's direct room when a pending request is accepted.

    Runs inside the accepting transaction; a failure raises and rolls the
    acceptance back. An existing direct room for the pair is reused.
    """
    previous = getattr(instance, "_previous_status", None)
    if previous != ConnectionStatus.PENDING or instance.status != ConnectionStatus.ACCEPTED:
        return

    from chat.services import RoomService

    room = RoomService.create_direct_room(instance.requester, instance.receiver).unwrap()
    logger.info(f"Direct room {room.id} ready for connection {instance.id}")
