"""
Analysis module.

The LLM-backed operations: analyze text, explain a selection, highlight
risks, translate to plain English and type-specific analysis. Each one is
gated by the content classifier and the quota ledger.

Public API:
- IAnalysisService: Interface for the gated operations
- AnalysisService: Implementation
- Result models (AnalysisResult, ExplanationResult, ...) which repair LLM output
"""

from .interfaces import IAnalysisService
from .models import (
    AnalysisResult,
    ExplanationResult,
    RiskAssessmentResult,
    TranslationResult,
    TypeSpecificResult,
    AnalyzeTextRequest,
    ExplainSelectionRequest,
    HighlightRisksRequest,
    TranslateRequest,
    AnalyzeByTypeRequest,
    OperationResponse,
    DeniedResponse,
    ByTypeResponse,
    UsageInfo,
)
from .exceptions import MissingInputError
from .service import AnalysisService

__all__ = [
    # Interface
    "IAnalysisService",
    # Implementation
    "AnalysisService",
    # Results
    "AnalysisResult",
    "ExplanationResult",
    "RiskAssessmentResult",
    "TranslationResult",
    "TypeSpecificResult",
    # Requests
    "AnalyzeTextRequest",
    "ExplainSelectionRequest",
    "HighlightRisksRequest",
    "TranslateRequest",
    "AnalyzeByTypeRequest",
    # Responses
    "OperationResponse",
    "DeniedResponse",
    "ByTypeResponse",
    "UsageInfo",
    # Exceptions
    "MissingInputError",
]
