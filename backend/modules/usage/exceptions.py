"""
Usage module exceptions.
"""

from shared.exceptions import DecodocsError, InvalidArgumentError


class UsageError(DecodocsError):
    """Base exception for ledger failures (store unavailable, bad RPC reply)."""

    pass


class InvalidTokenCountError(InvalidArgumentError):
    """Raised when a token estimate is invalid."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_TOKEN_COUNT")
