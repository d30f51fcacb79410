"""
Profile service layer.

Services:
    ProfileService: Profile lookup and owner-only updates

Usage:
    from authentication.services import ProfileService

    result = ProfileService.update_profile(
        profile=user.profile,
        editor=request.user,
        data={"department": "Computer Science"},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import NotFoundError, PermissionDeniedError
from core.services import BaseService, ServiceResult

from authentication.models import Profile, User

if TYPE_CHECKING:
    from uuid import UUID


class ProfileService(BaseService):
    """
    Service for campus profile operations.

    Methods:
        get_or_create_profile: Profile for a user, creating it if missing
        get_profile: Profile for a user id (NotFound if unknown)
        update_profile: Owner-only update of profile fields
    """

    UPDATABLE_FIELDS = (
        "display_name",
        "department",
        "bio",
        "soft_skills",
        "technical_skills",
        "avatar_url",
    )

    @classmethod
    def get_or_create_profile(cls, user: User) -> Profile:
        """Return the user's profile, creating it for legacy users without one."""
        profile, created = Profile.objects.get_or_create(
            user=user,
            defaults={"display_name": user.email.split("@")[0]},
        )
        if created:
            cls.get_logger().info(f"Backfilled profile for user {user.id}")
        return profile

    @classmethod
    def get_profile(cls, user_id: UUID) -> ServiceResult[Profile]:
        """
        Look up an active user's profile.

        Error codes:
            PROFILE_NOT_FOUND: No active user with this id
        """
        profile = (
            Profile.objects.select_related("user")
            .filter(user_id=user_id, user__is_active=True)
            .first()
        )
        if profile is None:
            return ServiceResult.from_exception(
                NotFoundError("Profile not found", error_code="PROFILE_NOT_FOUND")
            )
        return ServiceResult.success(profile)

    @classmethod
    def update_profile(
        cls,
        profile: Profile,
        editor: User,
        data: dict,
    ) -> ServiceResult[Profile]:
        """
        Update profile fields. Only the owner may edit.

        Unknown keys in data are ignored.

        Error codes:
            NOT_PROFILE_OWNER: editor is not the profile's user
        """
        if profile.user_id != editor.id:
            return ServiceResult.from_exception(
                PermissionDeniedError(
                    "You can only edit your own profile",
                    error_code="NOT_PROFILE_OWNER",
                )
            )

        changed = [name for name in cls.UPDATABLE_FIELDS if name in data]
        for name in changed:
            setattr(profile, name, data[name])

        if changed:
            profile.save(update_fields=[*changed, "updated_at"])
            cls.get_logger().info(
                f"Profile {profile.user_id} updated fields: {', '.join(changed)}"
            )

        return ServiceResult.success(profile)
