"""
Serializers for connection requests.

Serializers:
    ConnectionRequestSerializer: Request with both students
    ConnectionRequestCreateSerializer: Target student for a new request
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from connections.models import ConnectionRequest

User = get_user_model()


class ConnectionRequestSerializer(serializers.ModelSerializer):
    """Connection request with compact info for both students."""

    requester = UserSummarySerializer(read_only=True)
    receiver = UserSummarySerializer(read_only=True)

    class Meta:
        model = ConnectionRequest
        fields = [
            "id",
            "requester",
            "receiver",
            "status",
            "responded_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ConnectionRequestCreateSerializer(serializers.Serializer):
    """Receiver of a new connection request."""

    receiver_id = serializers.UUIDField()

    def validate_receiver_id(self, value):
        user = User.objects.filter(id=value, is_active=True).first()
        if user is None:
            raise serializers.ValidationError("User not found")
        return user
