"""
WSGI config for the campus connect backend.

The project is served over ASGI (see asgi.py) because chat needs WebSockets.
This WSGI callable only serves the HTTP API and admin, for deployments or
management tooling that expect a WSGI entry point.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
