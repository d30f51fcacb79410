"""
Connection request model.

Models:
    ConnectionRequest: A request from one student to connect with another

Lifecycle:
    pending -> accepted   (receiver accepts; a direct room is opened)
    pending -> rejected   (receiver rejects)
    rejected -> pending   (either student sends a new request)

An accepted or pending request blocks new requests between the same two
students in either direction (unique_connection_pair, checked first by
ConnectionService).
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Greatest, Least

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ConnectionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"


class ConnectionRequest(UUIDPrimaryKeyMixin, BaseModel):
    """
    A connection request between two students.

    Fields:
        requester: Student who sent the request
        receiver: Student who may accept or reject it
        status: pending, accepted or rejected
        responded_at: When the receiver accepted or rejected

    Constraints:
        - unique_connection_pair: one row per pair of students, in either
          direction
        - connection_request_not_self: requester != receiver
    """

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_connection_requests",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_connection_requests",
    )
    status = models.CharField(
        max_length=10,
        choices=ConnectionStatus.choices,
        default=ConnectionStatus.PENDING,
        db_index=True,
    )
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "connections_request"
        ordering = ["-created_at"]
        constraints = [
            # One row per pair regardless of direction
            models.UniqueConstraint(
                Least("requester", "receiver"),
                Greatest("requester", "receiver"),
                name="unique_connection_pair",
            ),
            models.CheckConstraint(
                condition=~Q(requester=F("receiver")),
                name="connection_request_not_self",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.requester_id} -> {self.receiver_id} ({self.status})"

    def involves(self, user) -> bool:
        return user.id in (self.requester_id, self.receiver_id)

    def other_party(self, user):
        """The student on the other side of the request from user."""
        return self.receiver if user.id == self.requester_id else self.requester
