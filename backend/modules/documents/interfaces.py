"""
Documents module interfaces.

Other modules should depend on these interfaces, not the concrete
implementations.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser
from modules.entitlements.models import Tier

from .models import (
    DetectTypeResponse,
    DocumentStats,
    DocumentTypeDetection,
    DocumentTypeOverride,
    DocumentTypeState,
    EffectiveType,
    PreflightResponse,
)


@runtime_checkable
class IDocumentRepository(Protocol):
    """Storage for detected types, overrides and the doc hash ledger."""

    def save_classification(self, doc_hash: str, detection: DocumentTypeDetection, tier: Tier) -> None:
        ...

    def get_classification(self, doc_hash: str) -> Optional[DocumentTypeDetection]:
        ...

    def save_override(self, override: DocumentTypeOverride) -> None:
        ...

    def get_override(self, puid: str, doc_hash: str) -> Optional[str]:
        ...

    def get_effective_type(self, puid: str, doc_hash: str) -> EffectiveType:
        ...

    def record_doc_hash(self, doc_hash: str, puid: str) -> None:
        ...


@runtime_checkable
class IDocumentService(Protocol):
    """
    Interface for document gating and type routing.
    """

    async def preflight_check(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
        stats: Optional[DocumentStats],
    ) -> PreflightResponse:
        """
        Classify a document before any AI call.

        Raises:
            InvalidDocHashError: If doc_hash is malformed
            InvalidDocumentStatsError: If stats are missing
        """
        ...

    async def detect_document_type(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
        stats: Optional[DocumentStats],
        text: str,
    ) -> DetectTypeResponse:
        """Detect and store the type of a document."""
        ...

    async def save_doc_type_override(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
        type_id: Optional[str],
    ) -> None:
        """Store the caller's manual type choice for a document."""
        ...

    async def get_document_type_state(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
    ) -> DocumentTypeState:
        """Override, detected and effective type for the caller."""
        ...
