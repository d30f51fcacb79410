"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/profile/               - Current user's profile (GET/PATCH)
    /api/v1/auth/profiles/<user_id>/    - Another user's profile (GET)

Note:
    Token issuance lives in the external identity service; requests here
    carry its JWT access token as "Authorization: Bearer <token>".
"""

from django.urls import path

from authentication.views import ProfileView, PublicProfileView

app_name = "authentication"

urlpatterns = [
    path("profile/", ProfileView.as_view(), name="profile"),
    path("profiles/<uuid:user_id>/", PublicProfileView.as_view(), name="profile-detail"),
]
