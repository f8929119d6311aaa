"""
Documents module data models.

Request and response bodies use camelCase on the wire (docHash,
charsPerPage, ...). Internally everything is snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models import CamelModel
from modules.entitlements.models import EntitlementBrief, Tier


class ContentClassification(str, Enum):
    """Outcome of the scan/size gate."""

    OK = "OK"
    PRO_REQUIRED = "PRO_REQUIRED"


class ReasonCode(str, Enum):
    """Why a document was escalated."""

    SCAN_DETECTED = "SCAN_DETECTED"
    SIZE_LIMIT_EXCEEDED = "SIZE_LIMIT_EXCEEDED"


class IntakeCategory(str, Enum):
    """Coarse routing bucket assigned by type detection."""

    GENERAL = "GENERAL"
    BUSINESS_LEGAL = "BUSINESS_LEGAL"
    UNREADABLE = "UNREADABLE"


class DocumentStats(CamelModel):
    """
    Caller-supplied extraction stats. Never persisted.

    len(chars_per_page) is expected to equal page_count but this is
    not enforced; the scan ratio always divides by page_count.
    """

    page_count: int = Field(..., description="Number of pages")
    chars_per_page: list[int] = Field(..., description="Extracted characters per page")
    total_chars: int = Field(default=0, description="Total extracted characters")
    pdf_size_bytes: Optional[int] = Field(None, description="Size of the PDF file")


class ClassificationReason(CamelModel):
    code: ReasonCode
    message: str


class Classification(CamelModel):
    """Result of classify(). Deterministic for identical inputs."""

    classification: ContentClassification
    required_tier: Tier
    reasons: list[ClassificationReason] = Field(default_factory=list)
    scan_ratio: float = 0.0
    estimated_tokens: int = 0

    @property
    def pro_required(self) -> bool:
        return self.classification == ContentClassification.PRO_REQUIRED


class DetectionReason(CamelModel):
    code: str
    detail: str


class DocumentTypeDetection(CamelModel):
    """Detected type of a document, stored per doc hash."""

    intake_category: IntakeCategory
    type_id: str
    confidence: float
    reasons: list[DetectionReason] = Field(default_factory=list)
    model: str = "heuristic-v1"
    tier: Optional[Tier] = None
    updated_at: Optional[datetime] = None


class DocumentTypeOverride(BaseModel):
    """A principal's manual type choice for a document."""

    puid: str
    uid: str
    doc_hash: str
    type_id: str
    updated_at: Optional[datetime] = None


class EffectiveType(BaseModel):
    """Override and detected type for (principal, document)."""

    override_type_id: Optional[str] = None
    detected: Optional[DocumentTypeDetection] = None

    @property
    def detected_type_id(self) -> Optional[str]:
        return self.detected.type_id if self.detected else None

    @property
    def effective_type_id(self) -> Optional[str]:
        return self.override_type_id or self.detected_type_id


# -----------------------------------------------------------------------------
# API request/response bodies
# -----------------------------------------------------------------------------


class PreflightRequest(CamelModel):
    doc_hash: Optional[str] = None
    stats: Optional[DocumentStats] = None


class PreflightStats(CamelModel):
    scan_ratio: float
    estimated_tokens: int


class PreflightResponse(CamelModel):
    ok: bool = True
    classification: ContentClassification
    required_tier: Tier
    reasons: list[ClassificationReason]
    entitlement: EntitlementBrief
    stats: PreflightStats


class DetectTypeRequest(CamelModel):
    doc_hash: Optional[str] = None
    stats: Optional[DocumentStats] = None
    text: str = ""


class DetectTypeResponse(CamelModel):
    ok: bool = True
    uid: str
    puid: str
    doc_hash: str
    intake_category: IntakeCategory
    type_id: str
    confidence: float
    reasons: list[DetectionReason]


class TypeOverrideRequest(CamelModel):
    type_id: Optional[str] = None


class DocumentTypeState(CamelModel):
    ok: bool = True
    uid: str
    puid: str
    doc_hash: str
    override_type_id: Optional[str] = None
    detected: Optional[DocumentTypeDetection] = None
    effective_type_id: Optional[str] = None


class DocumentTypeInfo(CamelModel):
    """One entry of the document-types index."""

    model_config = ConfigDict(extra="allow")

    id: str
    validation_slug: Optional[str] = None


class DocumentTypesIndex(CamelModel):
    model_config = ConfigDict(extra="allow")

    types: list[DocumentTypeInfo]

    def find(self, type_id: Optional[str]) -> Optional[DocumentTypeInfo]:
        if not type_id:
            return None
        for entry in self.types:
            if entry.id == type_id:
                return entry
        return None


ValidationSpec = dict[str, Any]
