"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (compact read representation used across apps)
- Profile model (read and owner update)

Related files:
    - models.py: User and Profile models
    - views.py: Views that use these serializers
"""

from rest_framework import serializers

from authentication.models import Profile, User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Compact user representation.

    Embedded in chat and connection payloads (senders, participants,
    requesters) where only identity and display name are needed.
    """

    display_name = serializers.CharField(read_only=True)
    avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "display_name", "avatar_url"]
        read_only_fields = fields

    def get_avatar_url(self, obj) -> str:
        try:
            return obj.profile.avatar_url
        except Profile.DoesNotExist:
            return ""


class ProfileSerializer(serializers.ModelSerializer):
    """Serializer for Profile model (read operations)."""

    user_id = serializers.UUIDField(source="user.id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "user_id",
            "email",
            "display_name",
            "department",
            "bio",
            "soft_skills",
            "technical_skills",
            "avatar_url",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for updating the current user's profile.

    Skill lists are normalized: surrounding whitespace stripped and
    duplicates removed while keeping the submitted order.
    """

    soft_skills = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )
    technical_skills = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )

    class Meta:
        model = Profile
        fields = [
            "display_name",
            "department",
            "bio",
            "soft_skills",
            "technical_skills",
            "avatar_url",
        ]

    def _normalize_skills(self, value):
        seen = []
        for skill in value:
            skill = skill.strip()
            if skill and skill not in seen:
                seen.append(skill)
        return seen

    def validate_soft_skills(self, value):
        return self._normalize_skills(value)

    def validate_technical_skills(self, value):
        return self._normalize_skills(value)

    def validate_display_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Display name cannot be blank.")
        return value
