"""
Documents module.

Scan/size classification, document hash validation and document type
routing (detection, overrides, catalog lookup).

Public API:
- IDocumentService: Interface for preflight and type routing
- classify, compute_scan_ratio, validate_doc_hash: Pure gating helpers
- DocumentTypeCatalog: Document types index and validation specs
"""

from .interfaces import IDocumentService, IDocumentRepository
from .models import (
    DocumentStats,
    Classification,
    ClassificationReason,
    ContentClassification,
    ReasonCode,
    IntakeCategory,
    DocumentTypeDetection,
    DocumentTypeOverride,
    EffectiveType,
    PreflightResponse,
    DetectTypeResponse,
    DocumentTypeState,
)
from .exceptions import (
    InvalidDocHashError,
    InvalidDocumentStatsError,
    InvalidTypeIdError,
    CatalogFetchError,
)
from .classifier import classify, compute_scan_ratio, detect_document_type, validate_doc_hash
from .catalog import DocumentTypeCatalog
from .repository import DocumentRepository, InMemoryDocumentRepository
from .service import DocumentService

__all__ = [
    # Interfaces
    "IDocumentService",
    "IDocumentRepository",
    # Models
    "DocumentStats",
    "Classification",
    "ClassificationReason",
    "ContentClassification",
    "ReasonCode",
    "IntakeCategory",
    "DocumentTypeDetection",
    "DocumentTypeOverride",
    "EffectiveType",
    "PreflightResponse",
    "DetectTypeResponse",
    "DocumentTypeState",
    # Exceptions
    "InvalidDocHashError",
    "InvalidDocumentStatsError",
    "InvalidTypeIdError",
    "CatalogFetchError",
    # Classifier
    "classify",
    "compute_scan_ratio",
    "detect_document_type",
    "validate_doc_hash",
    # Catalog
    "DocumentTypeCatalog",
    # Implementations
    "DocumentRepository",
    "InMemoryDocumentRepository",
    "DocumentService",
]
