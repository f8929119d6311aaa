"""
Base exception classes for the DecoDocs backend.

Each module should define its own exceptions that inherit from these bases.
Every base carries a callable-style status (UNAUTHENTICATED, INVALID_ARGUMENT,
...) that the API layer renders as {"error": {"message", "status"}}.
"""

from typing import Optional, Any


class DecodocsError(Exception):
    """
    Base exception for all DecoDocs errors.

    All custom exceptions should inherit from this class.
    """

    status: str = "INTERNAL"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the error envelope used by API responses."""
        return {
            "error": {
                "message": self.message,
                "status": self.status,
            }
        }


class UnauthenticatedError(DecodocsError):
    """No valid principal (missing, expired or invalid credentials)."""

    status = "UNAUTHENTICATED"
    http_status = 401


class InvalidArgumentError(DecodocsError):
    """Input validation failed."""

    status = "INVALID_ARGUMENT"
    http_status = 400


class PermissionDeniedError(DecodocsError):
    """Caller is authenticated but not allowed to perform the operation."""

    status = "PERMISSION_DENIED"
    http_status = 403


class ResourceExhaustedError(DecodocsError):
    """A hard resource limit was hit."""

    status = "RESOURCE_EXHAUSTED"
    http_status = 429


class InternalError(DecodocsError):
    """Generic internal failure. The message is safe to show to clients."""

    status = "INTERNAL"
    http_status = 500


class ExternalServiceError(DecodocsError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
