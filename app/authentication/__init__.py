"""
Authentication application.

Identity records for the campus network. Sign-in itself happens at the
external identity service; this app stores the users it vouches for and
their campus profiles.

Key components:
    - User model: Email-based user with UUID identity
    - Profile model: Display name, department, bio, skills, avatar
    - ProfileService: Owner-only profile reads and updates

Usage:
    from authentication.models import User, Profile
    from authentication.services import ProfileService
"""
