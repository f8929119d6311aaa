"""
Analysis module data models.

Result models double as the repair layer for LLM output: each one accepts
whatever JSON the model returned and fills every missing or malformed
field with a safe default, so no field is ever absent from a response.
"""

from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import ConfigDict, Field, model_validator

from shared.models import CamelModel
from modules.entitlements.models import EntitlementBrief, Tier
from modules.documents.models import ClassificationReason, DocumentStats

SEVERITIES = ("low", "medium", "high")


def _text(value: Any, fallback: str) -> str:
    if isinstance(value, str):
        return value if value.strip() else fallback
    if value is None:
        return fallback
    return str(value)


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value if item is not None]


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_dict(data: Any) -> dict[str, Any]:
    return dict(data) if isinstance(data, dict) else {}


# -----------------------------------------------------------------------------
# analyzeText
# -----------------------------------------------------------------------------


class AnalysisRisk(CamelModel):
    """A risk in the general analysis. Accepts legacy key names."""

    id: str
    title: str
    severity: str
    why_it_matters: str
    what_to_check: list[str]
    anchors: list[str] = Field(default_factory=list)

    @classmethod
    def repair(cls, data: Any, index: int) -> "AnalysisRisk":
        raw = _as_dict(data)

        what_to_check = raw.get("whatToCheck")
        if isinstance(what_to_check, list):
            checks = _strings(what_to_check)
        else:
            recommendations = raw.get("recommendations")
            if isinstance(recommendations, list):
                checks = _strings(recommendations) or ["Review carefully"]
            else:
                checks = [_text(recommendations, "Review carefully")]

        return cls(
            id=_text(raw.get("id"), f"R{index + 1}"),
            title=_text(raw.get("title") or raw.get("clause"), "Unknown risk"),
            severity=_text(raw.get("severity") or raw.get("riskLevel"), "medium"),
            why_it_matters=_text(
                raw.get("whyItMatters") or raw.get("description"),
                "No description provided",
            ),
            what_to_check=checks,
            anchors=_strings(raw.get("anchors")),
        )


class AnalysisResult(CamelModel):
    """Result of analyzeText."""

    model_config = ConfigDict(extra="allow")

    plain_explanation: str = "Unable to generate explanation"
    risks: list[AnalysisRisk] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)
    missing_clauses: list[str] = Field(default_factory=list)
    unfair_conditions: list[Any] = Field(default_factory=list)
    inconsistencies: list[Any] = Field(default_factory=list)
    obligations: list[Any] = Field(default_factory=list)
    missing_info: list[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _repair(cls, data: Any) -> dict[str, Any]:
        raw = _as_dict(data)
        raw["plainExplanation"] = _text(raw.get("plainExplanation"), "Unable to generate explanation")
        raw["risks"] = [
            risk if isinstance(risk, AnalysisRisk) else AnalysisRisk.repair(risk, i)
            for i, risk in enumerate(_items(raw.get("risks")))
        ]
        raw["keyPoints"] = _strings(raw.get("keyPoints"))
        raw["missingClauses"] = _strings(raw.get("missingClauses"))
        for key in ("unfairConditions", "inconsistencies", "obligations", "missingInfo"):
            raw[key] = _items(raw.get(key))
        return raw


# -----------------------------------------------------------------------------
# explainSelection
# -----------------------------------------------------------------------------


class ExplanationResult(CamelModel):
    """Result of explainSelection."""

    plain_explanation: str = "Unable to generate explanation"
    examples: list[str] = Field(default_factory=list)
    related_concepts: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _repair(cls, data: Any) -> dict[str, Any]:
        raw = _as_dict(data)
        return {
            "plainExplanation": _text(raw.get("plainExplanation"), "Unable to generate explanation"),
            "examples": _strings(raw.get("examples")),
            "relatedConcepts": _strings(raw.get("relatedConcepts")),
        }


# -----------------------------------------------------------------------------
# highlightRisks
# -----------------------------------------------------------------------------


class RiskItem(CamelModel):
    id: str
    title: str
    severity: str
    description: str
    location: Optional[dict[str, Any]] = None
    recommendation: Optional[str] = None

    @classmethod
    def repair(cls, data: Any, index: int) -> "RiskItem":
        raw = _as_dict(data)
        location = raw.get("location")
        recommendation = raw.get("recommendation")
        return cls(
            id=_text(raw.get("id"), f"R{index + 1}"),
            title=_text(raw.get("title"), "Unknown risk"),
            severity=_text(raw.get("severity"), "medium"),
            description=_text(raw.get("description"), "No description provided"),
            location=location if isinstance(location, dict) else None,
            recommendation=_text(recommendation, "") or None,
        )


class RiskSummary(CamelModel):
    total_risks: int = 0
    high_risk_count: int = 0
    medium_risk_count: int = 0
    low_risk_count: int = 0
    overall_risk_level: str = "low"

    @classmethod
    def from_items(cls, items: list[RiskItem]) -> "RiskSummary":
        counts = {s: sum(1 for item in items if item.severity == s) for s in SEVERITIES}
        overall = "low"
        for severity in SEVERITIES:
            if counts[severity]:
                overall = severity
        return cls(
            total_risks=len(items),
            high_risk_count=counts["high"],
            medium_risk_count=counts["medium"],
            low_risk_count=counts["low"],
            overall_risk_level=overall,
        )


class RiskAssessmentResult(CamelModel):
    """Result of highlightRisks."""

    summary: RiskSummary
    items: list[RiskItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _repair(cls, data: Any) -> dict[str, Any]:
        raw = _as_dict(data)
        items = [
            item if isinstance(item, RiskItem) else RiskItem.repair(item, i)
            for i, item in enumerate(_items(raw.get("items")))
        ]

        computed = RiskSummary.from_items(items)
        summary = raw.get("summary")
        if isinstance(summary, RiskSummary):
            summary = summary.model_dump(by_alias=True)
        summary = _as_dict(summary)

        repaired: dict[str, Any] = {}
        for name, field in RiskSummary.model_fields.items():
            alias = field.alias or name
            value = summary.get(alias)
            default = getattr(computed, name)
            if isinstance(default, int):
                is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
                repaired[alias] = int(value) if is_number else default
            else:
                repaired[alias] = _text(value, default)

        return {"summary": repaired, "items": items}


# -----------------------------------------------------------------------------
# translateToPlainEnglish
# -----------------------------------------------------------------------------


class KeyTerm(CamelModel):
    term: str = ""
    definition: str = ""


class TranslationResult(CamelModel):
    """Result of translateToPlainEnglish."""

    original_text: str = ""
    plain_english_translation: str = "Unable to generate translation"
    key_terms_defined: list[KeyTerm] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _repair(cls, data: Any) -> dict[str, Any]:
        raw = _as_dict(data)
        terms = []
        for item in _items(raw.get("keyTermsDefined")):
            if isinstance(item, KeyTerm):
                terms.append(item)
            elif isinstance(item, dict):
                terms.append(KeyTerm(
                    term=_text(item.get("term"), ""),
                    definition=_text(item.get("definition"), ""),
                ))
        return {
            "originalText": _text(raw.get("originalText"), ""),
            "plainEnglishTranslation": _text(
                raw.get("plainEnglishTranslation"), "Unable to generate translation"
            ),
            "keyTermsDefined": terms,
        }


# -----------------------------------------------------------------------------
# analyzeByType
# -----------------------------------------------------------------------------


class TypeCheck(CamelModel):
    id: str
    ok: bool
    message: str


class TypeSpecificResult(CamelModel):
    """
    Result of analyzeByType.

    The LLM returns extracted facts as [{key, value}]; they are exposed
    as a mapping.
    """

    plain_explanation: str = "Unable to generate explanation"
    extracted: dict[str, Any] = Field(default_factory=dict)
    checks: list[TypeCheck] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _repair(cls, data: Any) -> dict[str, Any]:
        raw = _as_dict(data)

        extracted = raw.get("extracted")
        if isinstance(extracted, list):
            extracted = {
                str(item["key"]): item.get("value")
                for item in extracted
                if isinstance(item, dict) and item.get("key")
            }
        elif not isinstance(extracted, dict):
            extracted = {}

        checks = []
        for i, item in enumerate(_items(raw.get("checks"))):
            if isinstance(item, TypeCheck):
                checks.append(item)
            elif isinstance(item, dict):
                checks.append(TypeCheck(
                    id=_text(item.get("id"), f"C{i + 1}"),
                    ok=bool(item.get("ok")),
                    message=_text(item.get("message"), ""),
                ))

        return {
            "plainExplanation": _text(raw.get("plainExplanation"), "Unable to generate explanation"),
            "extracted": extracted,
            "checks": checks,
        }


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class TextPayload(CamelModel):
    value: Optional[str] = None


class AnalyzeOptions(CamelModel):
    model_config = ConfigDict(extra="allow")

    document_type: Optional[str] = None


class AnalyzeTextRequest(CamelModel):
    doc_hash: Optional[str] = None
    stats: Optional[DocumentStats] = None
    text: Optional[TextPayload] = None
    options: AnalyzeOptions = Field(default_factory=AnalyzeOptions)


class ExplainSelectionRequest(CamelModel):
    doc_hash: Optional[str] = None
    selection: Optional[str] = None
    document_context: Optional[str] = None


class HighlightRisksRequest(CamelModel):
    doc_hash: Optional[str] = None
    document_text: Optional[str] = None
    document_type: Optional[str] = None


class TranslateRequest(CamelModel):
    doc_hash: Optional[str] = None
    legal_text: Optional[str] = None


class AnalyzeByTypeRequest(CamelModel):
    doc_hash: Optional[str] = None
    text: Optional[str] = None
    stats: Optional[DocumentStats] = None


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


ResultT = TypeVar("ResultT")


class UsageInfo(CamelModel):
    estimated_tokens: int
    remaining_tokens: Optional[int] = None


class OperationResponse(CamelModel, Generic[ResultT]):
    """Envelope of an allowed gated operation."""

    ok: Literal[True] = True
    doc_hash: Optional[str] = None
    result: ResultT
    usage: UsageInfo
    entitlement: EntitlementBrief


class DeniedResponse(CamelModel):
    """
    Envelope of a policy denial.

    Denials are expected outcomes (content gate or exhausted budget), not
    errors. No LLM call was made.
    """

    ok: Literal[False] = False
    code: str
    message: str
    required_tier: Tier
    reasons: Optional[list[ClassificationReason]] = None
    usage: UsageInfo


class ByTypeStats(CamelModel):
    text_chars: int


class ByTypeResponse(OperationResponse[TypeSpecificResult]):
    """Envelope of analyzeByType: the result plus type routing details."""

    uid: str
    puid: str
    override_type_id: Optional[str] = None
    detected_type_id: Optional[str] = None
    effective_type_id: Optional[str] = None
    validation_slug: Optional[str] = None
    validation_spec: Optional[dict[str, Any]] = None
    stats: ByTypeStats
    message: str = "Type-specific analysis performed by Gemini."
