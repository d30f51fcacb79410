"""
Django signals for authentication.

Signal handlers:
- Auto-creating Profile when User is created

Usage:
    Signals are automatically connected when the app is ready.
    See apps.py for the import that triggers connection.
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Create a Profile for newly created users.

    The display name starts as the email local part so the user has a
    readable name in chat before editing their profile.
    """
    if created:
        from authentication.models import Profile

        Profile.objects.get_or_create(
            user=instance,
            defaults={"display_name": instance.email.split("@")[0]},
        )
        logger.debug(f"Profile created for user {instance.id}")
