"""
Authentication models.

This module defines the identity models:
- User: Custom user model with email-based identity (slim, auth-focused)
- Profile: Campus profile data (OneToOne with User)

Related files:
    - managers.py: Custom user manager for email-based creation
    - signals.py: Auto-create profile on user creation
    - services.py: ProfileService business logic

Note:
    Sign-up and sign-in are handled by the external identity service that
    issues JWT access tokens. Users exist here so that rooms, messages and
    connections can reference them.
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models

from authentication.managers import UserManager
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


def validate_skill_list(value):
    """Validate that a skills field is a list of non-empty strings."""
    if not isinstance(value, list):
        raise ValidationError("Skills must be a list of strings.")
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError("Each skill must be a non-empty string.")
        if len(item) > 50:
            raise ValidationError("Each skill must be at most 50 characters.")


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    This is a slim user model focused on identity only.
    Profile data (display name, department, skills) is stored in Profile.

    Fields:
        id: UUID primary key (the stable identity used in JWT user_id claims)
        email: Primary identifier, unique
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='student@campus.edu',
            password='securepassword'
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    @property
    def display_name(self) -> str:
        """
        Name shown in chat (typing indicators, participant lists).

        Falls back to the email local part when the profile has no name.
        """
        try:
            return self.profile.display_name or self.email.split("@")[0]
        except Profile.DoesNotExist:
            return self.email.split("@")[0]

    def get_full_name(self):
        return self.display_name

    def get_short_name(self):
        return self.display_name


class Profile(BaseModel):
    """
    Campus profile for a user.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        display_name: Name shown to other students
        department: Academic department (free text)
        bio: Short self-description
        soft_skills: List of soft skills (e.g. ["Leadership", "Teamwork"])
        technical_skills: List of technical skills (e.g. ["Python", "SQL"])
        avatar_url: Reference to the avatar image in object storage

    Note:
        Profile is automatically created via signals when a User is created.
        Only the owner may modify it (enforced in ProfileService).
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown to other students",
    )
    department = models.CharField(
        max_length=150,
        blank=True,
        help_text="Academic department",
    )
    bio = models.TextField(
        max_length=1000,
        blank=True,
        help_text="Short self-description",
    )
    soft_skills = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_skill_list],
        help_text="List of soft skills",
    )
    technical_skills = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_skill_list],
        help_text="List of technical skills",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image reference",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        ordering = ["display_name"]

    def __str__(self):
        """Return display name or user email."""
        return self.display_name or str(self.user)
