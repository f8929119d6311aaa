"""Tests for the analysis service."""

import httpx
import pytest
from unittest.mock import patch

from modules.analysis.exceptions import MissingInputError
from modules.analysis.models import (
    AnalyzeByTypeRequest,
    AnalyzeTextRequest,
    DeniedResponse,
    ExplainSelectionRequest,
    HighlightRisksRequest,
    TextPayload,
    TranslateRequest,
)
from modules.analysis.service import (
    ANON_LIMIT_MESSAGE,
    FREE_LIMIT_MESSAGE,
    PRO_REQUIRED_CODE,
)
from modules.documents.catalog import DocumentTypeCatalog
from modules.documents.exceptions import InvalidDocHashError
from modules.documents.models import (
    DocumentStats,
    DocumentTypeDetection,
    DocumentTypeOverride,
    IntakeCategory,
)
from modules.entitlements.models import Principal, Tier
from modules.reports.models import ReportType
from modules.usage.token_counter import day_key
from providers.base import LLMError
from shared.exceptions import InternalError

from tests.conftest import DOC_HASH, FakeCatalog

_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def analysis(container):
    return container.analysis


def text_request(text="The tenant shall pay rent monthly.", stats=None):
    return AnalyzeTextRequest(doc_hash=DOC_HASH, text=TextPayload(value=text), stats=stats)


def stats_for(total_chars, chars_per_page=None):
    chars_per_page = chars_per_page or [1000]
    return DocumentStats(
        page_count=len(chars_per_page), chars_per_page=chars_per_page, total_chars=total_chars
    )


class TestAnalyzeText:
    @pytest.mark.asyncio
    async def test_allowed(self, container, analysis, fake_llm, free_user):
        fake_llm.response = {"plainExplanation": "A lease.", "risks": [{"title": "Deposit"}]}

        response = await analysis.analyze_text(free_user, text_request(stats=stats_for(4000)))

        assert response.ok is True
        assert response.doc_hash == DOC_HASH
        assert response.result.plain_explanation == "A lease."
        assert response.result.risks[0].id == "R1"
        assert response.usage.estimated_tokens == 1000
        assert response.usage.remaining_tokens == 39_000
        assert response.entitlement.tier == Tier.FREE
        assert await container.ledger.get_daily_usage(free_user.id, day_key()) == 1000

    @pytest.mark.asyncio
    async def test_records_usage_and_doc_hash(self, container, analysis, free_user):
        await analysis.analyze_text(free_user, text_request(stats=stats_for(400)))

        events = await container.ledger.get_usage_events(free_user.id)
        assert [e.event for e in events] == ["analyze"]
        assert events[0].estimated_tokens == 100
        assert events[0].meta == {"provider": "gemini", "model": "fake-gemini"}
        assert container.document_repository.get_doc_hash_record(DOC_HASH)["last_seen_by_puid"] == free_user.id

    @pytest.mark.asyncio
    async def test_estimate_falls_back_to_text_length(self, analysis, free_user):
        response = await analysis.analyze_text(free_user, text_request(text="x" * 400))
        assert response.usage.estimated_tokens == 100

    @pytest.mark.asyncio
    async def test_reported_total_never_undercuts_text(self, analysis, free_user):
        stats = stats_for(0, chars_per_page=[4000])

        response = await analysis.analyze_text(free_user, text_request(text="x" * 4000, stats=stats))

        assert response.usage.estimated_tokens == 1000

    @pytest.mark.asyncio
    async def test_same_document_is_charged_each_time(self, container, analysis, fake_llm, free_user):
        first = await analysis.analyze_text(free_user, text_request(stats=stats_for(4000)))
        second = await analysis.analyze_text(free_user, text_request(stats=stats_for(4000)))

        assert first.usage.remaining_tokens == 39_000
        assert second.usage.remaining_tokens == 38_000
        assert len(fake_llm.calls) == 2
        assert await container.ledger.get_daily_usage(free_user.id, day_key()) == 2000

    @pytest.mark.asyncio
    async def test_wire_format(self, analysis, free_user):
        response = await analysis.analyze_text(free_user, text_request(stats=stats_for(400)))
        body = response.model_dump(by_alias=True)

        assert body["ok"] is True
        assert body["docHash"] == DOC_HASH
        assert body["usage"] == {"estimatedTokens": 100, "remainingTokens": 39_900}
        assert body["result"]["plainExplanation"] == "Looks fine."

    @pytest.mark.asyncio
    async def test_scanned_document_denied_before_charge(self, container, analysis, fake_llm, free_user):
        stats = stats_for(4000, chars_per_page=[0, 0, 4000])

        response = await analysis.analyze_text(free_user, text_request(stats=stats))

        assert isinstance(response, DeniedResponse)
        assert response.code == PRO_REQUIRED_CODE
        assert response.required_tier == Tier.PRO
        assert response.reasons[0].code.value == "SCAN_DETECTED"
        assert response.usage.estimated_tokens == 1000
        assert fake_llm.calls == []
        assert await container.ledger.get_daily_usage(free_user.id, day_key()) == 0

    @pytest.mark.asyncio
    async def test_oversized_document_allowed_for_pro(self, container, analysis, fake_llm, free_user):
        container.principal_repository.put(Principal(puid=free_user.id, is_pro=True))

        response = await analysis.analyze_text(free_user, text_request(stats=stats_for(500_000)))

        assert response.ok is True
        assert response.usage.remaining_tokens is None
        assert response.entitlement.tier == Tier.PRO
        assert len(fake_llm.calls) == 1

    @pytest.mark.asyncio
    async def test_free_budget_exhausted(self, container, analysis, fake_llm, free_user):
        await container.ledger.charge_and_check(free_user.id, Tier.FREE, 39_900)

        response = await analysis.analyze_text(free_user, text_request(stats=stats_for(4000)))

        assert response.ok is False
        assert response.code == "FREE_TOKEN_LIMIT"
        assert response.message == FREE_LIMIT_MESSAGE
        assert response.required_tier == Tier.PRO
        assert response.usage.remaining_tokens == 100
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_anonymous_budget_exhausted(self, container, analysis, anonymous_user):
        await container.ledger.charge_and_check(anonymous_user.id, Tier.ANONYMOUS, 19_950)

        response = await analysis.analyze_text(anonymous_user, text_request(stats=stats_for(800)))

        assert response.code == "ANON_TOKEN_LIMIT"
        assert response.message == ANON_LIMIT_MESSAGE
        assert response.required_tier == Tier.FREE
        assert response.usage.remaining_tokens == 50

    @pytest.mark.asyncio
    async def test_llm_failure_keeps_charge(self, container, analysis, fake_llm, free_user):
        fake_llm.error = LLMError("quota exceeded for key AIza...", "gemini", status_code=429)

        with pytest.raises(InternalError) as exc_info:
            await analysis.analyze_text(free_user, text_request(stats=stats_for(4000)))

        assert exc_info.value.message == "An error occurred during text analysis."
        assert await container.ledger.get_daily_usage(free_user.id, day_key()) == 1000
        assert await container.ledger.get_usage_events(free_user.id) == []

        repository = container.report_repository
        assert repository.reports[0].report_type == ReportType.BACKEND_EXCEPTION
        assert repository.reports[0].function_name == "analyzeText"
        event = repository.ai_events[0]
        assert event.event_type == "analyzeText_error"
        assert event.payload["provider"] == "gemini"
        assert event.payload["model"] == "fake-gemini"
        assert event.payload["status"] == 429
        assert event.payload["tier"] == "free"

    @pytest.mark.asyncio
    async def test_missing_text(self, analysis, free_user):
        with pytest.raises(MissingInputError):
            await analysis.analyze_text(free_user, AnalyzeTextRequest(doc_hash=DOC_HASH))

    @pytest.mark.asyncio
    async def test_invalid_doc_hash(self, analysis, free_user):
        with pytest.raises(InvalidDocHashError):
            await analysis.analyze_text(
                free_user, AnalyzeTextRequest(doc_hash="abc", text=TextPayload(value="x"))
            )


class TestExplainSelection:
    @pytest.mark.asyncio
    async def test_charges_overhead(self, container, analysis, fake_llm, free_user):
        fake_llm.response = {"plainExplanation": "You pay rent.", "examples": ["Monthly"]}

        response = await analysis.explain_selection(
            free_user, ExplainSelectionRequest(selection="x" * 400, document_context="Lease")
        )

        assert response.ok is True
        assert response.doc_hash is None
        assert response.result.examples == ["Monthly"]
        assert response.usage.estimated_tokens == 600
        events = await container.ledger.get_usage_events(free_user.id)
        assert events[0].event == "explain"

    @pytest.mark.asyncio
    async def test_partial_token_rounds_up(self, analysis, free_user):
        response = await analysis.explain_selection(
            free_user, ExplainSelectionRequest(selection="x" * 401)
        )

        assert response.usage.estimated_tokens == 601

    @pytest.mark.asyncio
    async def test_budget_denial_is_not_an_error(self, container, analysis, anonymous_user):
        await container.ledger.charge_and_check(anonymous_user.id, Tier.ANONYMOUS, 20_000)

        response = await analysis.explain_selection(
            anonymous_user, ExplainSelectionRequest(selection="Force majeure")
        )

        assert response.ok is False
        assert response.code == "ANON_TOKEN_LIMIT"

    @pytest.mark.asyncio
    async def test_missing_selection(self, analysis, free_user):
        with pytest.raises(MissingInputError):
            await analysis.explain_selection(free_user, ExplainSelectionRequest(selection=""))

    @pytest.mark.asyncio
    async def test_doc_hash_validated_when_present(self, analysis, free_user):
        with pytest.raises(InvalidDocHashError):
            await analysis.explain_selection(
                free_user, ExplainSelectionRequest(doc_hash="ABC", selection="x")
            )


class TestHighlightRisks:
    @pytest.mark.asyncio
    async def test_allowed(self, container, analysis, fake_llm, free_user):
        fake_llm.response = {"items": [{"title": "Indemnity", "severity": "high"}]}

        response = await analysis.highlight_risks(
            free_user,
            HighlightRisksRequest(doc_hash=DOC_HASH, document_text="x" * 800, document_type="lease"),
        )

        assert response.result.summary.high_risk_count == 1
        assert response.usage.estimated_tokens == 200
        assert "lease" in fake_llm.calls[0]["prompt"]
        assert (await container.ledger.get_usage_events(free_user.id))[0].event == "risks"

    @pytest.mark.asyncio
    async def test_missing_text(self, analysis, free_user):
        with pytest.raises(MissingInputError):
            await analysis.highlight_risks(free_user, HighlightRisksRequest())

    @pytest.mark.asyncio
    async def test_llm_failure_message(self, analysis, fake_llm, free_user):
        fake_llm.error = LLMError("boom", "gemini")

        with pytest.raises(InternalError) as exc_info:
            await analysis.highlight_risks(free_user, HighlightRisksRequest(document_text="text"))

        assert exc_info.value.message == "Failed to analyze risks"


class TestTranslateToPlainEnglish:
    @pytest.mark.asyncio
    async def test_allowed(self, container, analysis, fake_llm, free_user):
        fake_llm.response = {"plainEnglishTranslation": "Pay on time."}

        response = await analysis.translate_to_plain_english(
            free_user, TranslateRequest(legal_text="Heretofore the lessee shall remit.")
        )

        assert response.result.plain_english_translation == "Pay on time."
        assert (await container.ledger.get_usage_events(free_user.id))[0].event == "translate"

    @pytest.mark.asyncio
    async def test_missing_text(self, analysis, free_user):
        with pytest.raises(MissingInputError):
            await analysis.translate_to_plain_english(free_user, TranslateRequest())


class TestAnalyzeByType:
    @pytest.fixture
    def catalog(self, container):
        catalog = FakeCatalog(
            slugs={"legal_nda": "nda"},
            specs={"nda": {"checks": [{"id": "term"}]}},
        )
        container._document_catalog = catalog
        return catalog

    @pytest.mark.asyncio
    async def test_uses_override_and_validation_spec(self, container, catalog, fake_llm, free_user):
        repository = container.document_repository
        repository.save_classification(
            DOC_HASH,
            DocumentTypeDetection(
                intake_category=IntakeCategory.BUSINESS_LEGAL, type_id="business_invoice", confidence=0.75
            ),
            Tier.FREE,
        )
        repository.save_override(DocumentTypeOverride(
            puid=free_user.id, uid=free_user.id, doc_hash=DOC_HASH, type_id="legal_nda"
        ))
        fake_llm.response = {"extracted": [{"key": "term", "value": "2 years"}]}

        response = await container.analysis.analyze_by_type(
            free_user, AnalyzeByTypeRequest(doc_hash=DOC_HASH, text="x" * 400)
        )

        assert response.ok is True
        assert response.uid == free_user.id
        assert response.override_type_id == "legal_nda"
        assert response.detected_type_id == "business_invoice"
        assert response.effective_type_id == "legal_nda"
        assert response.validation_slug == "nda"
        assert response.validation_spec == {"checks": [{"id": "term"}]}
        assert response.result.extracted == {"term": "2 years"}
        assert response.stats.text_chars == 400
        assert fake_llm.calls[0]["temperature"] == 0.1
        assert "VALIDATION REQUIREMENTS" in fake_llm.calls[0]["prompt"]

        event = (await container.ledger.get_usage_events(free_user.id))[0]
        assert event.event == "analyzeByType"
        assert event.meta["effectiveTypeId"] == "legal_nda"
        assert event.meta["validationSlug"] == "nda"

    @pytest.mark.asyncio
    async def test_unknown_type(self, container, catalog, fake_llm, free_user):
        response = await container.analysis.analyze_by_type(
            free_user, AnalyzeByTypeRequest(doc_hash=DOC_HASH, text="Some agreement")
        )

        assert response.effective_type_id is None
        assert response.validation_slug is None
        assert response.validation_spec is None
        assert "VALIDATION REQUIREMENTS" not in fake_llm.calls[0]["prompt"]
        body = response.model_dump(by_alias=True)
        assert body["message"] == "Type-specific analysis performed by Gemini."
        assert body["stats"] == {"textChars": 14}

    @pytest.mark.asyncio
    async def test_text_is_truncated(self, container, catalog, free_user):
        container.principal_repository.put(Principal(puid=free_user.id, is_pro=True))

        response = await container.analysis.analyze_by_type(
            free_user, AnalyzeByTypeRequest(doc_hash=DOC_HASH, text="x" * 300_000)
        )

        assert response.stats.text_chars == 250_000
        assert response.usage.estimated_tokens == 62_500
        assert response.usage.remaining_tokens is None

    @pytest.mark.asyncio
    async def test_content_gate(self, container, catalog, fake_llm, anonymous_user):
        response = await container.analysis.analyze_by_type(
            anonymous_user,
            AnalyzeByTypeRequest(doc_hash=DOC_HASH, text="x" * 100, stats=stats_for(200_000)),
        )

        assert response.code == PRO_REQUIRED_CODE
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_malformed_catalog_degrades(self, container, fake_llm, free_user):
        container._document_catalog = DocumentTypeCatalog(container.settings)
        container.document_repository.save_override(DocumentTypeOverride(
            puid=free_user.id, uid=free_user.id, doc_hash=DOC_HASH, type_id="legal_nda"
        ))
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"types": [{"name": "NDA"}]})
        )

        with patch(
            "modules.documents.catalog.httpx.AsyncClient",
            lambda *args, **kwargs: _RealAsyncClient(transport=transport),
        ):
            response = await container.analysis.analyze_by_type(
                free_user, AnalyzeByTypeRequest(doc_hash=DOC_HASH, text="x" * 400)
            )

        assert response.ok is True
        assert response.effective_type_id == "legal_nda"
        assert response.validation_slug is None
        assert response.validation_spec is None
        assert len(fake_llm.calls) == 1
        assert container.report_repository.reports == []
