"""
Reports module exceptions.
"""

from shared.exceptions import InvalidArgumentError


class InvalidReportError(InvalidArgumentError):
    """Raised when a user report fails validation."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_REPORT")
