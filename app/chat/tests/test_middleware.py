"""
Tests for JWTAuthMiddleware.

The middleware wraps a stub ASGI app that records the scope user.
"""

import pytest
from django.contrib.auth.models import AnonymousUser

from chat.middleware import JWTAuthMiddleware

pytestmark = pytest.mark.django_db(transaction=True)


class ScopeRecorder:
    def __init__(self):
        self.user = None

    async def __call__(self, scope, receive, send):
        self.user = scope["user"]


async def run(scope):
    recorder = ScopeRecorder()
    await JWTAuthMiddleware(recorder)(scope, None, None)
    return recorder.user


class TestJWTAuthMiddleware:
    async def test_query_string_token(self, user, token_for):
        scope = {"type": "websocket", "query_string": f"token={token_for(user)}".encode()}

        resolved = await run(scope)

        assert resolved.id == user.id

    async def test_subprotocol_token(self, user, token_for):
        scope = {"type": "websocket", "subprotocols": ["jwt", token_for(user)]}

        resolved = await run(scope)

        assert resolved.id == user.id

    async def test_no_token(self, db):
        assert isinstance(await run({"type": "websocket"}), AnonymousUser)

    async def test_garbage_token(self, db):
        scope = {"type": "websocket", "query_string": b"token=garbage"}

        assert isinstance(await run(scope), AnonymousUser)

    async def test_inactive_user(self, user, token_for):
        token = token_for(user)
        user.is_active = False
        await user.asave(update_fields=["is_active"])

        scope = {"type": "websocket", "query_string": f"token={token}".encode()}

        assert isinstance(await run(scope), AnonymousUser)
