"""
Analysis module exceptions.
"""

from shared.exceptions import InvalidArgumentError


class MissingInputError(InvalidArgumentError):
    """Raised when a required text input is missing or empty."""

    def __init__(self, message: str):
        super().__init__(message, code="MISSING_INPUT")
