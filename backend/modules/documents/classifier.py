"""
Scan/size classifier and document type heuristics.

Everything here is pure: no I/O, no clock, same input gives the same output.
"""

import re
from typing import Optional, Sequence

from shared.config import Settings, get_settings
from modules.entitlements.models import Tier
from modules.usage.token_counter import estimate_tokens

from .exceptions import InvalidDocHashError
from .models import (
    Classification,
    ClassificationReason,
    ContentClassification,
    DetectionReason,
    DocumentStats,
    DocumentTypeDetection,
    IntakeCategory,
    ReasonCode,
)

DOC_HASH_PATTERN = re.compile(r"^[a-f0-9]{64}$")

DETECTION_TEXT_LIMIT = 250_000
DETECTION_MIN_CHARS = 20
DETECTION_MODEL = "heuristic-v1"


def validate_doc_hash(doc_hash: Optional[str]) -> str:
    """
    Check that doc_hash is a SHA-256 hex digest (64 lowercase hex chars).

    Raises:
        InvalidDocHashError: If it is not
    """
    if not isinstance(doc_hash, str) or not DOC_HASH_PATTERN.match(doc_hash):
        raise InvalidDocHashError()
    return doc_hash


def compute_scan_ratio(
    chars_per_page: Optional[Sequence[int]],
    page_count: int,
    min_chars_per_page: int = 30,
) -> float:
    """
    Fraction of pages with fewer than min_chars_per_page characters.

    Returns 0.0 for empty input or a non-positive page count. Clamped to
    [0, 1] so a chars_per_page list longer than page_count cannot push the
    ratio past 1.
    """
    if not chars_per_page or page_count <= 0:
        return 0.0

    low_text_pages = sum(1 for chars in chars_per_page if chars < min_chars_per_page)
    return min(1.0, max(0.0, low_text_pages / page_count))


def classify(
    stats: DocumentStats,
    tier: Tier,
    settings: Optional[Settings] = None,
) -> Classification:
    """
    Decide whether a document needs the Pro tier.

    Scanned documents (scan ratio above the threshold) need OCR and
    oversized documents exceed the non-Pro size cap. Both reasons may
    apply. Pro is never escalated.
    """
    settings = settings or get_settings()

    scan_ratio = compute_scan_ratio(
        stats.chars_per_page,
        stats.page_count,
        settings.min_chars_per_page,
    )
    reasons: list[ClassificationReason] = []

    if tier != Tier.PRO:
        if scan_ratio > settings.scan_ratio_threshold:
            reasons.append(ClassificationReason(
                code=ReasonCode.SCAN_DETECTED,
                message="Scanned PDFs require OCR (Pro).",
            ))
        if stats.total_chars > settings.free_max_total_chars:
            reasons.append(ClassificationReason(
                code=ReasonCode.SIZE_LIMIT_EXCEEDED,
                message=(
                    f"Document too large ({stats.total_chars} chars, "
                    f"limit {settings.free_max_total_chars})."
                ),
            ))

    escalated = bool(reasons)
    return Classification(
        classification=ContentClassification.PRO_REQUIRED if escalated else ContentClassification.OK,
        required_tier=Tier.PRO if escalated else tier,
        reasons=reasons,
        scan_ratio=scan_ratio,
        estimated_tokens=estimate_tokens(stats.total_chars),
    )


# Checked in order; the first match wins.
_KEYWORD_RULES: list[tuple[re.Pattern, IntakeCategory, str, float, str]] = [
    (
        re.compile(r"\binvoice\b|\btax invoice\b|\babn\b|\bgst\b"),
        IntakeCategory.BUSINESS_LEGAL, "business_invoice", 0.75,
        "invoice/tax invoice/gst",
    ),
    (
        re.compile(
            r"\boffer letter\b|\bjob offer\b|\bwe are pleased to offer\b"
            r"|\bcommencement date\b|\bremuneration\b"
        ),
        IntakeCategory.BUSINESS_LEGAL, "legal_job_offer", 0.7,
        "job offer/offer letter/remuneration",
    ),
    (
        re.compile(r"\bsop\b|\bprocedure\b|\bwork instruction\b|\bstep\s+\d+\b"),
        IntakeCategory.GENERAL, "general_sop_procedure", 0.65,
        "sop/procedure/work instruction",
    ),
    (
        re.compile(r"\bprivacy policy\b|\bpersonal information\b|\bdata collection\b"),
        IntakeCategory.BUSINESS_LEGAL, "policy_privacy", 0.65,
        "privacy policy/data collection",
    ),
]


def detect_document_type(
    text: str,
    stats: Optional[DocumentStats] = None,
    settings: Optional[Settings] = None,
) -> DocumentTypeDetection:
    """
    Cheap keyword detection of the document type.

    Seeds type routing before any AI call. Unreadable and scanned
    documents are recognised first, then keyword families, then a
    generic contract fallback.
    """
    settings = settings or get_settings()

    text = (text or "")[:DETECTION_TEXT_LIMIT]
    lower = text.lower()
    page_count = stats.page_count if stats else 0
    chars_per_page = stats.chars_per_page if stats else []
    total_chars = stats.total_chars if stats else 0

    scan_ratio = compute_scan_ratio(chars_per_page, page_count, settings.min_chars_per_page)

    if not text.strip() or total_chars < DETECTION_MIN_CHARS:
        return DocumentTypeDetection(
            intake_category=IntakeCategory.UNREADABLE,
            type_id="unreadable_empty",
            confidence=0.9,
            reasons=[DetectionReason(code="NO_TEXT", detail="No extractable text")],
            model=DETECTION_MODEL,
        )

    if scan_ratio > settings.scan_ratio_threshold:
        return DocumentTypeDetection(
            intake_category=IntakeCategory.GENERAL,
            type_id="unreadable_broken",
            confidence=0.45,
            reasons=[DetectionReason(code="SCAN_LIKELY", detail=f"scanRatio={scan_ratio:.2f}")],
            model=DETECTION_MODEL,
        )

    for pattern, category, type_id, confidence, detail in _KEYWORD_RULES:
        if pattern.search(lower):
            return DocumentTypeDetection(
                intake_category=category,
                type_id=type_id,
                confidence=confidence,
                reasons=[DetectionReason(code="KEYWORDS", detail=detail)],
                model=DETECTION_MODEL,
            )

    return DocumentTypeDetection(
        intake_category=IntakeCategory.GENERAL,
        type_id="legal_contract_generic",
        confidence=0.4,
        reasons=[DetectionReason(code="FALLBACK", detail="default fallback")],
        model=DETECTION_MODEL,
    )
