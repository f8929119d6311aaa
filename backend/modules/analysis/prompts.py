"""
Prompt builders for the gated operations.

Document text is truncated before it is embedded so a single call stays
within the model's context budget.
"""

import json
from typing import Any, Optional

PROMPT_TEXT_LIMIT = 30_000
EXPLANATION_CONTEXT_LIMIT = 1_000

TYPE_PROMPT_SECTIONS = {
    "Summary Guidance": (
        "Explain in plain English what this document is, who the parties are "
        "and what the reader is agreeing to."
    ),
    "Risk Analysis": (
        "Point out terms that are unusual, one-sided or costly for the reader."
    ),
    "Extraction Targets": (
        "Extract the key facts of this document type (parties, dates, amounts, "
        "durations) as key/value pairs."
    ),
    "Validation Checks": (
        "Check the document against the expectations for its type and report "
        "each check with ok=true/false and a short message."
    ),
}


def build_analysis_prompt(text: str, document_type: Optional[str] = None) -> str:
    return f"""
You are an expert legal AI assistant. Analyze the following {document_type or "document"} text.

Your goal is to provide a comprehensive analysis that includes:
1. A plain English explanation of what this document is about.
2. A structured list of risks, particularly those that might be unfair or dangerous to the signing party.
3. Key points that summarize the main obligations.
4. Any standard clauses that appear to be missing for this type of document.

Analyze strictly based on the text provided. Do not hallucinate clauses that are not there.

DOCUMENT TEXT:
"{text[:PROMPT_TEXT_LIMIT]}"
"""


def build_explanation_prompt(selection: str, document_context: Optional[str] = None) -> str:
    context = ""
    if document_context:
        context = f"\n\nCONTEXT FROM DOCUMENT:\n...{document_context[:EXPLANATION_CONTEXT_LIMIT]}..."

    return f"""
Explain the following legal clause in simple, plain English.
Explain what it means, why it exists, and give a concrete example of how it applies.

CLAUSE TO EXPLAIN:
"{selection}"
{context}
"""


def build_risk_prompt(text: str, document_type: Optional[str] = None) -> str:
    return f"""
Analyze this {document_type or "document"} for critical risks.
Focus on:
- Unbalanced liability clauses
- Infinite indemnities
- Unreasonable termination rights
- Hidden fees or automatic renewals
- Intellectual property rights transfers that are too broad

Identify the specific location of these risks if possible.

DOCUMENT TEXT:
"{text[:PROMPT_TEXT_LIMIT]}"
"""


def build_translation_prompt(text: str) -> str:
    return f"""
Translate the following legal text into clear, modern, plain English.
Keep the meaning exact but remove legalese (heretofore, whereas, notwithstanding).
Break long sentences into shorter ones.

LEGAL TEXT:
"{text}"
"""


def build_type_specific_prompt(
    text: str,
    type_id: Optional[str],
    validation_spec: Optional[dict[str, Any]] = None,
) -> str:
    """Prompt for type-specific analysis, optionally driven by a validation spec."""
    header = (
        "[Role: Expert Legal AI Assistant]\n"
        f"[Task: Analyze Document Type: {type_id or 'GENERAL_DOC_TYPE'}]"
    )
    sections = "\n\n".join(f"## {name}\n{body}" for name, body in TYPE_PROMPT_SECTIONS.items())

    spec_context = ""
    if validation_spec:
        spec_context = (
            "\nVALIDATION REQUIREMENTS:\n"
            f"{json.dumps(validation_spec, indent=2)}\n\n"
            "Follow these requirements to check the document.\n"
        )

    return f"""
{header}

{sections}
{spec_context}
DOCUMENT TEXT:
"{text[:PROMPT_TEXT_LIMIT]}"
"""
