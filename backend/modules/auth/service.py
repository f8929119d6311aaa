"""
Authentication service implementation.

Validates Supabase JWT tokens and resolves callers to quota principals.
"""

from datetime import datetime, timezone
from typing import Optional
import jwt
from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.models import AuthenticatedUser

from .interfaces import IAuthService
from .models import Identity, JWTPayload
from .exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
)


async def resolve_puid_for_uid(uid: str) -> str:
    """
    Resolve the principal ID for an auth subject.

    Currently the identity function. Alias mapping (several auth subjects
    billed to one principal) would be looked up here.
    """
    return uid


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    Uses Supabase JWT tokens for authentication. Anonymous sign-ins are
    regular sessions with the is_anonymous claim set.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    async def validate_token(self, token: str) -> AuthenticatedUser:
        """Validate a Supabase JWT and return the authenticated user."""
        if not token:
            raise MissingTokenError()

        if not self._settings.supabase_jwt_secret:
            raise InvalidTokenError("Server authentication not configured")

        try:
            payload = jwt.decode(
                token,
                self._settings.supabase_jwt_secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        try:
            jwt_payload = JWTPayload(**payload)
        except ValidationError as e:
            raise InvalidTokenError(f"Invalid token claims: {e.error_count()} invalid field(s)")

        if not jwt_payload.sub:
            raise MissingTokenError()

        return AuthenticatedUser(
            id=jwt_payload.sub,
            email=jwt_payload.email or None,
            email_verified=jwt_payload.email_confirmed_at is not None,
            is_anonymous=jwt_payload.is_anonymous,
            sign_in_provider=jwt_payload.sign_in_provider,
            last_sign_in=datetime.fromtimestamp(jwt_payload.iat, tz=timezone.utc),
            role=jwt_payload.role if jwt_payload.role != "authenticated" else "user",
        )

    async def resolve_identity(self, user: Optional[AuthenticatedUser]) -> Identity:
        """Extract (uid, is_anonymous) and resolve the principal."""
        if user is None or not user.id:
            raise MissingTokenError()

        puid = await resolve_puid_for_uid(user.id)
        return Identity(uid=user.id, puid=puid, is_anonymous=user.is_anonymous)


# Module-level instance getter
_service_instance: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = AuthService()
    return _service_instance


def reset_auth_service() -> None:
    """Reset the auth service singleton (for testing)."""
    global _service_instance
    _service_instance = None
