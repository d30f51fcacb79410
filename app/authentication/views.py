"""
Views for profile endpoints.

URL: /api/v1/auth/
    profile/              GET, PATCH  current user's profile
    profiles/<user_id>/   GET         another student's profile
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import ProfileSerializer, ProfileUpdateSerializer
from authentication.services import ProfileService
from core.exceptions import http_status_for


class ProfileView(APIView):
    """
    API view for the current user's profile.

    GET: Retrieve current user's profile
    PATCH: Update current user's profile
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_my_profile",
        summary="Get current user's profile",
        tags=["Auth - Profile"],
        responses={200: ProfileSerializer},
    )
    def get(self, request):
        profile = ProfileService.get_or_create_profile(request.user)
        return Response(ProfileSerializer(profile).data)

    @extend_schema(
        operation_id="update_my_profile",
        summary="Partially update profile",
        tags=["Auth - Profile"],
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer},
    )
    def patch(self, request):
        """
        Partially update the current user's profile.

        Request body:
            Any subset of display_name, department, bio, soft_skills,
            technical_skills, avatar_url.
        """
        profile = ProfileService.get_or_create_profile(request.user)
        serializer = ProfileUpdateSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_profile(
            profile=profile,
            editor=request.user,
            data=serializer.validated_data,
        )
        if not result.success:
            return Response(
                result.to_response(), status=http_status_for(result.exception)
            )
        return Response(ProfileSerializer(result.data).data)


class PublicProfileView(APIView):
    """Read-only view of any active user's profile."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_profile",
        summary="Get a user's profile",
        tags=["Auth - Profile"],
        responses={200: ProfileSerializer},
    )
    def get(self, request, user_id):
        result = ProfileService.get_profile(user_id)
        if not result.success:
            return Response(
                result.to_response(), status=http_status_for(result.exception)
            )
        return Response(ProfileSerializer(result.data).data)
