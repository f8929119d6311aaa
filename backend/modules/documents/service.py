"""
Document service implementation.

Preflight classification and document type routing. None of these
operations call the LLM or touch the quota ledger.
"""

import logging
from typing import Optional

from shared.config import Settings, get_settings
from shared.models import AuthenticatedUser
from modules.entitlements.interfaces import IEntitlementService
from modules.entitlements.models import EntitlementBrief
from modules.reports.interfaces import IReportService

from .classifier import classify, detect_document_type, validate_doc_hash
from .exceptions import InvalidDocumentStatsError, InvalidTypeIdError
from .interfaces import IDocumentRepository
from .models import (
    DetectTypeResponse,
    DocumentStats,
    DocumentTypeOverride,
    DocumentTypeState,
    PreflightResponse,
    PreflightStats,
)

logger = logging.getLogger(__name__)

MAX_TYPE_ID_LENGTH = 80


class DocumentService:
    """
    Implementation of the document service.
    """

    def __init__(
        self,
        entitlements: IEntitlementService,
        repository: IDocumentRepository,
        reports: IReportService,
        settings: Optional[Settings] = None,
    ):
        self._entitlements = entitlements
        self._repository = repository
        self._reports = reports
        self._settings = settings or get_settings()

    async def preflight_check(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
        stats: Optional[DocumentStats],
    ) -> PreflightResponse:
        validate_doc_hash(doc_hash)
        if stats is None:
            raise InvalidDocumentStatsError("Stats object is required.")

        async with self._reports.capture_failures(
            "preflightCheck",
            "An error occurred during preflight check.",
            user,
            {"docHash": doc_hash, "stats": stats.model_dump(by_alias=True)},
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)
            result = classify(stats, entitlement.tier, self._settings)

            return PreflightResponse(
                classification=result.classification,
                required_tier=result.required_tier,
                reasons=result.reasons,
                entitlement=EntitlementBrief.from_entitlement(entitlement),
                stats=PreflightStats(
                    scan_ratio=result.scan_ratio,
                    estimated_tokens=result.estimated_tokens,
                ),
            )

    async def detect_document_type(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
        stats: Optional[DocumentStats],
        text: str,
    ) -> DetectTypeResponse:
        validate_doc_hash(doc_hash)

        async with self._reports.capture_failures(
            "detectDocumentType",
            "An error occurred during document type detection.",
            user,
            {"docHash": doc_hash, "stats": stats.model_dump(by_alias=True) if stats else None},
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)
            detection = detect_document_type(text, stats, self._settings)
            self._repository.save_classification(doc_hash, detection, entitlement.tier)
            logger.debug(f"Detected {detection.type_id} for {doc_hash}")

            return DetectTypeResponse(
                uid=entitlement.uid,
                puid=entitlement.puid,
                doc_hash=doc_hash,
                intake_category=detection.intake_category,
                type_id=detection.type_id,
                confidence=detection.confidence,
                reasons=detection.reasons,
            )

    async def save_doc_type_override(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
        type_id: Optional[str],
    ) -> None:
        validate_doc_hash(doc_hash)
        type_id = (type_id or "").strip()
        if not type_id or len(type_id) > MAX_TYPE_ID_LENGTH:
            raise InvalidTypeIdError()

        async with self._reports.capture_failures(
            "saveDocTypeOverride",
            "An error occurred while saving the document type.",
            user,
            {"docHash": doc_hash, "typeId": type_id},
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)
            self._repository.save_override(DocumentTypeOverride(
                puid=entitlement.puid,
                uid=entitlement.uid,
                doc_hash=doc_hash,
                type_id=type_id,
            ))

    async def get_document_type_state(
        self,
        user: Optional[AuthenticatedUser],
        doc_hash: Optional[str],
    ) -> DocumentTypeState:
        validate_doc_hash(doc_hash)

        async with self._reports.capture_failures(
            "getDocumentTypeState",
            "An error occurred while loading the document type.",
            user,
            {"docHash": doc_hash},
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)
            state = self._repository.get_effective_type(entitlement.puid, doc_hash)

            return DocumentTypeState(
                uid=entitlement.uid,
                puid=entitlement.puid,
                doc_hash=doc_hash,
                override_type_id=state.override_type_id,
                detected=state.detected,
                effective_type_id=state.effective_type_id,
            )
