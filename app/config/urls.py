"""
URL configuration for the campus connect backend.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /api/schema/                   - OpenAPI schema (YAML)
    /api/docs/                     - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /api/v1/auth/                  - Profile endpoints
        profile/                   - Current user's profile (GET/PATCH)
        profiles/{user_id}/        - Another user's profile (GET)
    /api/v1/connections/           - Connection requests
        {id}/                      - Remove connection/request
        {id}/accept/               - Accept pending request
        {id}/reject/               - Reject pending request
    /api/v1/chat/                  - Chat endpoints
        rooms/                     - Rooms the user participates in
        rooms/campus/              - Join the campus room
        rooms/direct/              - Get or create direct room with a connection
        rooms/open/                - Get or create open room with any user
        rooms/{id}/                - Room detail
        rooms/{id}/participants/   - Participant list/join
        rooms/{id}/messages/       - Message list/send
        rooms/{id}/messages/{pk}/  - Message delete
        rooms/{id}/messages/{pk}/read/ - Mark message read
        rooms/{id}/typing/         - Typing snapshot
        attachments/{id}/url/      - Temporary attachment URL
        attachments/download/{token}/ - Signed attachment download

WebSocket routes live in chat.routing (ws/chat/{room_id}/).
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("connections/", include("connections.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Campus Connect Admin"
admin.site.site_title = "Campus Connect"
admin.site.index_title = "Campus Connect Administration"
