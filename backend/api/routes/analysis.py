"""
Analysis endpoints.

Each operation returns either {ok: true, result, usage, entitlement} or a
policy denial {ok: false, code, message, requiredTier, usage}. Denials
are 200 responses; only hard failures use the error envelope.
"""

from typing import Union

from fastapi import APIRouter, Depends

from modules.analysis.interfaces import IAnalysisService
from modules.analysis.models import (
    AnalysisResult,
    AnalyzeByTypeRequest,
    AnalyzeTextRequest,
    ByTypeResponse,
    DeniedResponse,
    ExplainSelectionRequest,
    ExplanationResult,
    HighlightRisksRequest,
    OperationResponse,
    RiskAssessmentResult,
    TranslateRequest,
    TranslationResult,
)
from shared.models import AuthenticatedUser

from ..dependencies import get_analysis_service
from ..middleware.auth import get_current_user

router = APIRouter()


@router.post(
    "/text",
    response_model=Union[OperationResponse[AnalysisResult], DeniedResponse],
)
async def analyze_text(
    request: AnalyzeTextRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAnalysisService = Depends(get_analysis_service),
) -> Union[OperationResponse[AnalysisResult], DeniedResponse]:
    """
    Full analysis of a document's text.

    Stats, when present, run the scan/size gate before any tokens are
    charged.
    """
    return await service.analyze_text(user, request)


@router.post(
    "/explain",
    response_model=Union[OperationResponse[ExplanationResult], DeniedResponse],
)
async def explain_selection(
    request: ExplainSelectionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAnalysisService = Depends(get_analysis_service),
) -> Union[OperationResponse[ExplanationResult], DeniedResponse]:
    """Explain a selected passage in plain English."""
    return await service.explain_selection(user, request)


@router.post(
    "/risks",
    response_model=Union[OperationResponse[RiskAssessmentResult], DeniedResponse],
)
async def highlight_risks(
    request: HighlightRisksRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAnalysisService = Depends(get_analysis_service),
) -> Union[OperationResponse[RiskAssessmentResult], DeniedResponse]:
    """List the risks in a document with a severity summary."""
    return await service.highlight_risks(user, request)


@router.post(
    "/translate",
    response_model=Union[OperationResponse[TranslationResult], DeniedResponse],
)
async def translate_to_plain_english(
    request: TranslateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAnalysisService = Depends(get_analysis_service),
) -> Union[OperationResponse[TranslationResult], DeniedResponse]:
    """Rewrite legal text in plain English."""
    return await service.translate_to_plain_english(user, request)


@router.post("/by-type", response_model=Union[ByTypeResponse, DeniedResponse])
async def analyze_by_type(
    request: AnalyzeByTypeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAnalysisService = Depends(get_analysis_service),
) -> Union[ByTypeResponse, DeniedResponse]:
    """Analysis driven by the document's effective type."""
    return await service.analyze_by_type(user, request)
