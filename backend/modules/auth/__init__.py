"""
Authentication module.

Validates bearer tokens and resolves callers to quota principals.

Public API:
- IAuthService: Interface for auth operations
- Identity: (uid, puid, is_anonymous) of a caller
"""

from .interfaces import IAuthService
from .models import Identity, JWTPayload
from .exceptions import InvalidTokenError, ExpiredTokenError, MissingTokenError
from .service import AuthService, get_auth_service, reset_auth_service, resolve_puid_for_uid

__all__ = [
    "IAuthService",
    "Identity",
    "JWTPayload",
    "InvalidTokenError",
    "ExpiredTokenError",
    "MissingTokenError",
    "AuthService",
    "get_auth_service",
    "reset_auth_service",
    "resolve_puid_for_uid",
]
