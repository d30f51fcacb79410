"""
Django app configuration for connections.
"""

from django.apps import AppConfig


class ConnectionsConfig(AppConfig):
    """Configuration for the connections application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "connections"
    verbose_name = "Connections"

    def ready(self):
        """
        Import signals when the app is ready.

        Connects the handler that opens a direct room on acceptance.
        """
        from connections import signals  # noqa: F401
