"""
Analysis module interface.

The gated operations: each resolves the caller's entitlement, passes the
content gate and the quota ledger, and only then calls the LLM.
"""

from typing import Optional, Protocol, Union, runtime_checkable

from shared.models import AuthenticatedUser

from .models import (
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


@runtime_checkable
class IAnalysisService(Protocol):
    """
    Interface for LLM-backed document analysis.

    Every method returns either an allowed envelope (ok=True) or a
    DeniedResponse (ok=False). Hard failures raise DecodocsError
    subclasses; LLM failures surface as InternalError after the quota
    charge has been committed.
    """

    async def analyze_text(
        self,
        user: Optional[AuthenticatedUser],
        request: AnalyzeTextRequest,
    ) -> Union[OperationResponse[AnalysisResult], DeniedResponse]:
        ...

    async def explain_selection(
        self,
        user: Optional[AuthenticatedUser],
        request: ExplainSelectionRequest,
    ) -> Union[OperationResponse[ExplanationResult], DeniedResponse]:
        ...

    async def highlight_risks(
        self,
        user: Optional[AuthenticatedUser],
        request: HighlightRisksRequest,
    ) -> Union[OperationResponse[RiskAssessmentResult], DeniedResponse]:
        ...

    async def translate_to_plain_english(
        self,
        user: Optional[AuthenticatedUser],
        request: TranslateRequest,
    ) -> Union[OperationResponse[TranslationResult], DeniedResponse]:
        ...

    async def analyze_by_type(
        self,
        user: Optional[AuthenticatedUser],
        request: AnalyzeByTypeRequest,
    ) -> Union[ByTypeResponse, DeniedResponse]:
        ...
