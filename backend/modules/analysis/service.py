"""
Analysis service implementation.

Every operation follows the same path:

    resolve entitlement -> content gate -> charge quota -> LLM -> repair

Policy denials (Pro-only content, exhausted budget) come back as a
DeniedResponse. Tokens are charged before the LLM call and a failed call
keeps the charge.
"""

import logging
import math
from typing import Any, Optional, Union

from shared.config import Settings, get_settings
from shared.exceptions import InternalError
from shared.models import AuthenticatedUser
from modules.documents.catalog import DocumentTypeCatalog
from modules.documents.classifier import classify, validate_doc_hash
from modules.documents.interfaces import IDocumentRepository
from modules.documents.models import DocumentStats
from modules.entitlements.interfaces import IEntitlementService
from modules.entitlements.models import Entitlement, EntitlementBrief, Tier
from modules.reports.interfaces import IReportService
from modules.usage.interfaces import IQuotaLedger
from modules.usage.models import QuotaDecision, UsageEvent
from modules.usage.token_counter import CHARS_PER_TOKEN, estimate_text_tokens, estimate_tokens
from providers.base import DocumentLLM, LLMError

from .exceptions import MissingInputError
from .models import (
    AnalysisResult,
    AnalyzeByTypeRequest,
    AnalyzeTextRequest,
    ByTypeResponse,
    ByTypeStats,
    DeniedResponse,
    ExplainSelectionRequest,
    ExplanationResult,
    HighlightRisksRequest,
    OperationResponse,
    RiskAssessmentResult,
    TranslateRequest,
    TranslationResult,
    TypeSpecificResult,
    UsageInfo,
)
from .prompts import (
    build_analysis_prompt,
    build_explanation_prompt,
    build_risk_prompt,
    build_translation_prompt,
    build_type_specific_prompt,
)
from .schemas import (
    ANALYSIS_SCHEMA,
    EXPLANATION_SCHEMA,
    RISK_ASSESSMENT_SCHEMA,
    TRANSLATION_SCHEMA,
    TYPE_SPECIFIC_SCHEMA,
)

logger = logging.getLogger(__name__)

PRO_REQUIRED_CODE = "SCAN_DETECTED_PRO_REQUIRED"
PRO_REQUIRED_MESSAGE = "This document requires Pro (OCR or larger size limit)."
ANON_LIMIT_MESSAGE = "Anonymous token limit reached. Create a free account to continue."
FREE_LIMIT_MESSAGE = "Daily token limit reached. Upgrade to Pro to continue."

EXPLANATION_OVERHEAD_TOKENS = 500
BY_TYPE_TEXT_LIMIT = 250_000


class AnalysisService:
    """
    Implementation of the analysis service.

    The LLM is an injected DocumentLLM so tests can run without network
    access.
    """

    def __init__(
        self,
        entitlements: IEntitlementService,
        ledger: IQuotaLedger,
        documents: IDocumentRepository,
        llm: DocumentLLM,
        reports: IReportService,
        catalog: Optional[DocumentTypeCatalog] = None,
        settings: Optional[Settings] = None,
    ):
        self._entitlements = entitlements
        self._ledger = ledger
        self._documents = documents
        self._llm = llm
        self._reports = reports
        self._settings = settings or get_settings()
        self._catalog = catalog or DocumentTypeCatalog(self._settings)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def analyze_text(
        self,
        user: Optional[AuthenticatedUser],
        request: AnalyzeTextRequest,
    ) -> Union[OperationResponse[AnalysisResult], DeniedResponse]:
        doc_hash = validate_doc_hash(request.doc_hash)
        text = request.text.value if request.text else None
        if not text:
            raise MissingInputError("Text object with value is required.")

        async with self._reports.capture_failures(
            "analyzeText",
            "An error occurred during text analysis.",
            user,
            {
                "docHash": doc_hash,
                "stats": request.stats.model_dump(by_alias=True) if request.stats else None,
                "options": request.options.model_dump(by_alias=True),
            },
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)

            denial = self._content_gate(request.stats, entitlement)
            if denial:
                return denial

            # Client-reported totalChars never undercuts the text actually sent
            total_chars = max(request.stats.total_chars if request.stats else 0, len(text))
            estimated_tokens = estimate_tokens(total_chars)
            decision = await self._ledger.charge_and_check(
                entitlement.puid, entitlement.tier, estimated_tokens
            )
            if not decision.allowed:
                return self._denial(entitlement, decision, estimated_tokens)

            prompt = build_analysis_prompt(text, request.options.document_type)
            data = await self._generate(
                "analyzeText",
                "An error occurred during text analysis.",
                prompt,
                ANALYSIS_SCHEMA,
                user,
                entitlement,
                doc_hash,
            )
            result = AnalysisResult.model_validate(data)

            self._record_doc_hash(doc_hash, entitlement)
            await self._record_usage(entitlement, "analyze", doc_hash, estimated_tokens)

            return OperationResponse[AnalysisResult](
                doc_hash=doc_hash,
                result=result,
                usage=UsageInfo(
                    estimated_tokens=estimated_tokens,
                    remaining_tokens=decision.remaining_tokens,
                ),
                entitlement=EntitlementBrief.from_entitlement(entitlement),
            )

    async def explain_selection(
        self,
        user: Optional[AuthenticatedUser],
        request: ExplainSelectionRequest,
    ) -> Union[OperationResponse[ExplanationResult], DeniedResponse]:
        doc_hash = self._optional_doc_hash(request.doc_hash)
        if not request.selection:
            raise MissingInputError("Selection text is required")

        async with self._reports.capture_failures(
            "explainSelection", "Failed to explain selection", user, {"docHash": doc_hash}
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)

            estimated_tokens = (
                math.ceil(len(request.selection) / CHARS_PER_TOKEN) + EXPLANATION_OVERHEAD_TOKENS
            )
            decision = await self._ledger.charge_and_check(
                entitlement.puid, entitlement.tier, estimated_tokens
            )
            if not decision.allowed:
                return self._denial(entitlement, decision, estimated_tokens)

            prompt = build_explanation_prompt(request.selection, request.document_context)
            data = await self._generate(
                "explainSelection",
                "Failed to explain selection",
                prompt,
                EXPLANATION_SCHEMA,
                user,
                entitlement,
                doc_hash,
            )

            await self._record_usage(entitlement, "explain", doc_hash, estimated_tokens)
            return self._allowed(
                ExplanationResult.model_validate(data),
                entitlement, decision, estimated_tokens, doc_hash,
            )

    async def highlight_risks(
        self,
        user: Optional[AuthenticatedUser],
        request: HighlightRisksRequest,
    ) -> Union[OperationResponse[RiskAssessmentResult], DeniedResponse]:
        doc_hash = self._optional_doc_hash(request.doc_hash)
        if not request.document_text:
            raise MissingInputError("Document text is required")

        async with self._reports.capture_failures(
            "highlightRisks",
            "Failed to analyze risks",
            user,
            {"docHash": doc_hash, "documentType": request.document_type},
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)

            estimated_tokens = estimate_text_tokens(request.document_text)
            decision = await self._ledger.charge_and_check(
                entitlement.puid, entitlement.tier, estimated_tokens
            )
            if not decision.allowed:
                return self._denial(entitlement, decision, estimated_tokens)

            prompt = build_risk_prompt(request.document_text, request.document_type)
            data = await self._generate(
                "highlightRisks",
                "Failed to analyze risks",
                prompt,
                RISK_ASSESSMENT_SCHEMA,
                user,
                entitlement,
                doc_hash,
            )

            await self._record_usage(entitlement, "risks", doc_hash, estimated_tokens)
            return self._allowed(
                RiskAssessmentResult.model_validate(data),
                entitlement, decision, estimated_tokens, doc_hash,
            )

    async def translate_to_plain_english(
        self,
        user: Optional[AuthenticatedUser],
        request: TranslateRequest,
    ) -> Union[OperationResponse[TranslationResult], DeniedResponse]:
        doc_hash = self._optional_doc_hash(request.doc_hash)
        if not request.legal_text:
            raise MissingInputError("Legal text is required")

        async with self._reports.capture_failures(
            "translateToPlainEnglish", "Failed to translate text", user, {"docHash": doc_hash}
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)

            estimated_tokens = estimate_text_tokens(request.legal_text)
            decision = await self._ledger.charge_and_check(
                entitlement.puid, entitlement.tier, estimated_tokens
            )
            if not decision.allowed:
                return self._denial(entitlement, decision, estimated_tokens)

            prompt = build_translation_prompt(request.legal_text)
            data = await self._generate(
                "translateToPlainEnglish",
                "Failed to translate text",
                prompt,
                TRANSLATION_SCHEMA,
                user,
                entitlement,
                doc_hash,
            )

            await self._record_usage(entitlement, "translate", doc_hash, estimated_tokens)
            return self._allowed(
                TranslationResult.model_validate(data),
                entitlement, decision, estimated_tokens, doc_hash,
            )

    async def analyze_by_type(
        self,
        user: Optional[AuthenticatedUser],
        request: AnalyzeByTypeRequest,
    ) -> Union[ByTypeResponse, DeniedResponse]:
        """
        Analysis driven by the document's effective type.

        The effective type is the principal's override, else the detected
        type. When the catalog publishes a validation spec for that type it
        is embedded in the prompt; a missing catalog only drops that block.
        """
        doc_hash = validate_doc_hash(request.doc_hash)
        text = (request.text or "")[:BY_TYPE_TEXT_LIMIT]

        async with self._reports.capture_failures(
            "analyzeByType",
            "An error occurred during type-specific analysis.",
            user,
            {"docHash": doc_hash},
        ):
            entitlement = await self._entitlements.resolve_entitlement(user)

            denial = self._content_gate(request.stats, entitlement)
            if denial:
                return denial

            estimated_tokens = estimate_text_tokens(text)
            decision = await self._ledger.charge_and_check(
                entitlement.puid, entitlement.tier, estimated_tokens
            )
            if not decision.allowed:
                return self._denial(entitlement, decision, estimated_tokens)

            state = self._documents.get_effective_type(entitlement.puid, doc_hash)
            effective_type_id = state.effective_type_id
            validation_slug = await self._catalog.find_validation_slug(effective_type_id)
            validation_spec = await self._catalog.find_validation_spec(validation_slug)

            prompt = build_type_specific_prompt(
                text, effective_type_id or "document", validation_spec
            )
            data = await self._generate(
                "analyzeByType",
                "An error occurred during type-specific analysis.",
                prompt,
                TYPE_SPECIFIC_SCHEMA,
                user,
                entitlement,
                doc_hash,
                temperature=0.1,
                context={
                    "effectiveTypeId": effective_type_id,
                    "validationSlug": validation_slug,
                },
            )

            await self._record_usage(
                entitlement,
                "analyzeByType",
                doc_hash,
                estimated_tokens,
                {"effectiveTypeId": effective_type_id, "validationSlug": validation_slug},
            )

            return ByTypeResponse(
                uid=entitlement.uid,
                puid=entitlement.puid,
                doc_hash=doc_hash,
                result=TypeSpecificResult.model_validate(data),
                usage=UsageInfo(
                    estimated_tokens=estimated_tokens,
                    remaining_tokens=decision.remaining_tokens,
                ),
                entitlement=EntitlementBrief.from_entitlement(entitlement),
                override_type_id=state.override_type_id,
                detected_type_id=state.detected_type_id,
                effective_type_id=effective_type_id,
                validation_slug=validation_slug,
                validation_spec=validation_spec,
                stats=ByTypeStats(text_chars=len(text)),
            )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _optional_doc_hash(doc_hash: Optional[str]) -> Optional[str]:
        return validate_doc_hash(doc_hash) if doc_hash is not None else None

    def _content_gate(
        self,
        stats: Optional[DocumentStats],
        entitlement: Entitlement,
    ) -> Optional[DeniedResponse]:
        """Pro-only content is denied before any quota is charged."""
        if stats is None:
            return None

        classification = classify(stats, entitlement.tier, self._settings)
        if not classification.pro_required:
            return None

        logger.info(
            f"Content gate denied {entitlement.puid}: "
            f"{[r.code.value for r in classification.reasons]}"
        )
        return DeniedResponse(
            code=PRO_REQUIRED_CODE,
            message=PRO_REQUIRED_MESSAGE,
            required_tier=Tier.PRO,
            reasons=classification.reasons,
            usage=UsageInfo(estimated_tokens=classification.estimated_tokens),
        )

    @staticmethod
    def _denial(
        entitlement: Entitlement,
        decision: QuotaDecision,
        estimated_tokens: int,
    ) -> DeniedResponse:
        is_anonymous = entitlement.tier == Tier.ANONYMOUS
        return DeniedResponse(
            code=decision.code.value if decision.code else "TOKEN_LIMIT",
            message=ANON_LIMIT_MESSAGE if is_anonymous else FREE_LIMIT_MESSAGE,
            required_tier=Tier.FREE if is_anonymous else Tier.PRO,
            usage=UsageInfo(
                estimated_tokens=estimated_tokens,
                remaining_tokens=decision.remaining_tokens,
            ),
        )

    @staticmethod
    def _allowed(
        result: Any,
        entitlement: Entitlement,
        decision: QuotaDecision,
        estimated_tokens: int,
        doc_hash: Optional[str],
    ) -> OperationResponse:
        return OperationResponse[type(result)](
            doc_hash=doc_hash,
            result=result,
            usage=UsageInfo(
                estimated_tokens=estimated_tokens,
                remaining_tokens=decision.remaining_tokens,
            ),
            entitlement=EntitlementBrief.from_entitlement(entitlement),
        )

    async def _generate(
        self,
        function_name: str,
        public_message: str,
        prompt: str,
        schema: dict[str, Any],
        user: Optional[AuthenticatedUser],
        entitlement: Entitlement,
        doc_hash: Optional[str],
        temperature: float = 0.2,
        context: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Call the LLM once.

        An LLMError is recorded as a backend exception plus an AI event
        and replaced by InternalError(public_message). The quota charge
        already made stands.
        """
        try:
            return await self._llm.generate_json(prompt, schema, temperature=temperature)
        except LLMError as e:
            logger.error(f"{function_name}: LLM call failed: {e}")
            await self._reports.log_backend_exception(
                function_name, e, user, {"docHash": doc_hash, **(context or {})}
            )
            await self._reports.log_ai_event(
                f"{function_name}_error",
                {
                    "provider": e.service,
                    "model": self._llm.model_name,
                    "severity": "error",
                    "uid": entitlement.uid,
                    "puid": entitlement.puid,
                    "tier": entitlement.tier.value,
                    "docHash": doc_hash,
                    "message": str(e),
                    "code": e.code,
                    "status": e.status_code,
                    **(context or {}),
                },
            )
            raise InternalError(public_message) from e

    def _record_doc_hash(self, doc_hash: str, entitlement: Entitlement) -> None:
        try:
            self._documents.record_doc_hash(doc_hash, entitlement.puid)
        except Exception:
            logger.warning(f"Failed to record doc hash {doc_hash}", exc_info=True)

    async def _record_usage(
        self,
        entitlement: Entitlement,
        event: str,
        doc_hash: Optional[str],
        estimated_tokens: int,
        meta: Optional[dict[str, Any]] = None,
    ) -> None:
        await self._ledger.record_usage_event(UsageEvent(
            puid=entitlement.puid,
            uid=entitlement.uid,
            tier=entitlement.tier.value,
            event=event,
            doc_hash=doc_hash,
            estimated_tokens=estimated_tokens,
            meta={"provider": "gemini", "model": self._llm.model_name, **(meta or {})},
        ))
