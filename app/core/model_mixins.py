"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class ChatRoom(UUIDPrimaryKeyMixin, BaseModel):
        name = models.CharField(max_length=255, blank=True)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Room, message and user ids appear in URLs and WebSocket paths, so they
    must not reveal record counts or be guessable.

    Fields:
        id: UUIDField as primary key (auto-generated)

    Note:
        Python UUID ordering matches the database ordering of the stored
        value on both PostgreSQL (native uuid) and SQLite (32-char hex),
        which the normalized user-pair constraints rely on.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
