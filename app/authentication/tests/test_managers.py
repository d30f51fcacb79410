"""
Tests for UserManager.

The UserManager provides:
- create_user(): Creates regular users with optional password
- create_superuser(): Creates admin users with elevated privileges
"""

import uuid

import pytest

from authentication.models import User


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created with those credentials
        """
        user = User.objects.create_user(
            email="mgr_create_user@campus.edu", password="SecurePass123!"
        )

        assert isinstance(user.pk, uuid.UUID)
        assert user.email == "mgr_create_user@campus.edu"
        assert user.check_password("SecurePass123!") is True

    def test_normalizes_email_domain_to_lowercase(self, db):
        """
        Given an email with uppercase characters in domain
        When create_user is called
        Then the domain portion is normalized to lowercase
        """
        user = User.objects.create_user(email="Test.User@CAMPUS.EDU")

        assert user.email == "Test.User@campus.edu"

    def test_user_without_password_has_unusable_password(self, db):
        """
        Users mirrored from the identity service have no local password.

        Why it matters: they must not be able to log into the admin.
        """
        user = User.objects.create_user(email="mirror@campus.edu")

        assert user.has_usable_password() is False

    def test_missing_email_raises(self, db):
        with pytest.raises(ValueError):
            User.objects.create_user(email="")

    def test_regular_user_flags(self, db):
        user = User.objects.create_user(email="flags@campus.edu")

        assert user.is_active is True
        assert user.is_staff is False
        assert user.is_superuser is False


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_creates_superuser_with_staff_flags(self, db):
        admin = User.objects.create_superuser(
            email="root@campus.edu", password="AdminPass123!"
        )

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_rejects_superuser_without_staff(self, db):
        with pytest.raises(ValueError):
            User.objects.create_superuser(
                email="bad@campus.edu", password="x", is_staff=False
            )
