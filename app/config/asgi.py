"""
ASGI config for the campus connect backend.

Uvicorn serves this entry point. It routes two protocols:
- http: regular Django views (REST API, admin, health check)
- websocket: the realtime chat channel (Django Channels)

WebSocket connections to ws/chat/<room_id>/ are authenticated with a JWT
access token (see chat.middleware) before reaching ChatRoomConsumer.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Settings must be loaded before any consumer imports models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import JWTAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # Origin check, then token auth, then per-room consumer routing
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
