"""
Documents module exceptions.
"""

from shared.exceptions import ExternalServiceError, InvalidArgumentError


class InvalidDocHashError(InvalidArgumentError):
    """Raised when a document hash is not a lowercase SHA-256 hex digest."""

    def __init__(self):
        super().__init__(
            "Valid SHA-256 document hash (64 hex characters) is required.",
            code="INVALID_DOC_HASH",
        )


class InvalidDocumentStatsError(InvalidArgumentError):
    """Raised when document stats are missing or malformed."""

    def __init__(self, message: str = "Valid stats with charsPerPage array and pageCount are required."):
        super().__init__(message, code="INVALID_DOCUMENT_STATS")


class InvalidTypeIdError(InvalidArgumentError):
    """Raised when a type override is empty or too long."""

    def __init__(self):
        super().__init__("typeId is required", code="INVALID_TYPE_ID")


class CatalogFetchError(ExternalServiceError):
    """Raised when the document type catalog cannot be fetched."""

    def __init__(self, message: str):
        super().__init__(message, service="document_catalog", code="CATALOG_FETCH_ERROR")
