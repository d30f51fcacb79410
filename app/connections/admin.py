"""
Django admin configuration for connection requests.
"""

from django.contrib import admin

from connections.models import ConnectionRequest


@admin.register(ConnectionRequest)
class ConnectionRequestAdmin(admin.ModelAdmin):
    """Admin interface for ConnectionRequest model."""

    list_display = ["id", "requester", "receiver", "status", "created_at", "responded_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["requester__email", "receiver__email", "id"]
    readonly_fields = ["created_at", "updated_at", "responded_at"]
    raw_id_fields = ["requester", "receiver"]
