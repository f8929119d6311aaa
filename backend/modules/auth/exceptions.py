"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from shared.exceptions import UnauthenticatedError


class InvalidTokenError(UnauthenticatedError):
    """Raised when a JWT token is invalid or malformed."""

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(UnauthenticatedError):
    """Raised when a JWT token has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(UnauthenticatedError):
    """Raised when no authentication token or subject is provided."""

    def __init__(self, message: str = "Authentication is required for this operation."):
        super().__init__(message, code="MISSING_TOKEN")
