"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures
(users and API clients). App-specific fixtures and factories live in each
app's tests/ package.
"""

import os

import django
import pytest
from fakeredis import FakeConnection

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Redis semantics without a server: django-redis over fakeredis, plus the
    # in-process channel layer
    settings.CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": "redis://campus-connect-tests:6379/0",
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                "CONNECTION_POOL_KWARGS": {"connection_class": FakeConnection},
            },
        }
    }
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full user journey workflows)
    - test_views.py, test_services.py, test_consumers.py, etc. → integration
    - test_models.py, test_serializers.py, test_authorization.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_consumers.py",
        "test_middleware.py",
        "test_notifier.py",
        "test_storage.py",
        "test_typing.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_managers.py",
        "test_signals.py",
        "test_authorization.py",
        "test_exceptions.py",
        "test_result.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_state(settings, tmp_path):
    """
    Give every test an empty cache and its own upload directory.

    Typing indicators live in the Redis database behind the cache, so
    clearing it flushes them too. Attachments are written under MEDIA_ROOT.
    """
    from django.core.cache import cache

    settings.MEDIA_ROOT = str(tmp_path / "uploads")
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    """Create a basic active user with auto-created profile."""
    from authentication.tests.factories import UserFactory

    return UserFactory(display_name="Test Student", department="Physics")


@pytest.fixture
def other_user(db):
    """Create a second user."""
    from authentication.tests.factories import UserFactory

    return UserFactory(display_name="Other Student")


@pytest.fixture
def third_user(db):
    """Create a third user (outsider for pairwise rooms)."""
    from authentication.tests.factories import UserFactory

    return UserFactory(display_name="Third Student")


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    from authentication.models import User

    return User.objects.create_superuser(
        email="admin@campus.edu", password="AdminPass123!"
    )


def jwt_for(user) -> str:
    """Access token string for user."""
    from rest_framework_simplejwt.tokens import AccessToken

    return str(AccessToken.for_user(user))


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with a JWT access token for `user`."""
    from rest_framework.test import APIClient

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {jwt_for(user)}")
    return client


@pytest.fixture
def client_for():
    """
    Factory for API clients authenticated as an arbitrary user.

    Usage:
        def test_x(client_for, other_user):
            client = client_for(other_user)
    """
    from rest_framework.test import APIClient

    def make(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {jwt_for(user)}")
        return client

    return make


@pytest.fixture
def token_for():
    """Factory for JWT access token strings, for WebSocket query strings."""
    return jwt_for
