"""
Document endpoints.

Preflight classification and document type routing. None of these call
the LLM or charge tokens.
"""

from fastapi import APIRouter, Depends

from modules.documents.interfaces import IDocumentService
from modules.documents.models import (
    DetectTypeRequest,
    DetectTypeResponse,
    DocumentTypeState,
    PreflightRequest,
    PreflightResponse,
    TypeOverrideRequest,
)
from shared.models import AuthenticatedUser, OkResponse

from ..dependencies import get_document_service
from ..middleware.auth import get_current_user

router = APIRouter()


@router.post("/preflight", response_model=PreflightResponse)
async def preflight_check(
    request: PreflightRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IDocumentService = Depends(get_document_service),
) -> PreflightResponse:
    """
    Classify a document before analysis.

    Returns PRO_REQUIRED with reasons when a non-Pro caller submits a
    scanned or oversized document.
    """
    return await service.preflight_check(user, request.doc_hash, request.stats)


@router.post("/detect-type", response_model=DetectTypeResponse)
async def detect_document_type(
    request: DetectTypeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IDocumentService = Depends(get_document_service),
) -> DetectTypeResponse:
    """Detect and store the document type from its extracted text."""
    return await service.detect_document_type(
        user, request.doc_hash, request.stats, request.text
    )


@router.get("/{doc_hash}/type", response_model=DocumentTypeState)
async def get_document_type_state(
    doc_hash: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IDocumentService = Depends(get_document_service),
) -> DocumentTypeState:
    """Get the override, detected and effective type of a document."""
    return await service.get_document_type_state(user, doc_hash)


@router.put("/{doc_hash}/type-override", response_model=OkResponse)
async def save_doc_type_override(
    doc_hash: str,
    request: TypeOverrideRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IDocumentService = Depends(get_document_service),
) -> OkResponse:
    """Store the caller's manual type choice for a document."""
    await service.save_doc_type_override(user, doc_hash, request.type_id)
    return OkResponse()
