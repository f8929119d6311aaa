"""
Authentication module interface.

Other modules should depend on IAuthService, not the concrete implementation.
This enables testing with mocks and future extraction to a microservice.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser

from .models import Identity


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to other modules. Implementations must provide all these methods.
    """

    async def validate_token(self, token: str) -> AuthenticatedUser:
        """
        Validate a JWT token and return the authenticated user.

        Args:
            token: JWT access token from Supabase Auth

        Returns:
            AuthenticatedUser with user ID and session flags

        Raises:
            UnauthenticatedError: If token is missing, invalid or expired
        """
        ...

    async def resolve_identity(self, user: Optional[AuthenticatedUser]) -> Identity:
        """
        Map an authenticated caller to its quota principal.

        Args:
            user: Authenticated caller, or None if the request carried no credentials

        Returns:
            Identity with uid, puid and the anonymous-session flag

        Raises:
            UnauthenticatedError: If there is no valid auth subject
        """
        ...
