"""
Target JSON schemas handed to the LLM with each prompt.

The LLM is asked to follow these; the repair models in models.py make
sure a reply that does not is still safe to return.
"""

SEVERITY = {"type": "string", "enum": ["low", "medium", "high"]}
STRING_LIST = {"type": "array", "items": {"type": "string"}}

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "plainExplanation": {
            "type": "string",
            "description": "A plain English summary of the document or section.",
        },
        "risks": {
            "type": "array",
            "description": "List of identified risks in the document.",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "severity": SEVERITY,
                    "whyItMatters": {"type": "string"},
                    "whatToCheck": STRING_LIST,
                    "anchors": {
                        **STRING_LIST,
                        "description": "Text snippets related to this risk.",
                    },
                },
                "required": ["id", "title", "severity", "whyItMatters", "whatToCheck"],
            },
        },
        "keyPoints": {**STRING_LIST, "description": "Key points extracted from the document."},
        "missingClauses": {**STRING_LIST, "description": "Standard clauses that appear to be missing."},
    },
    "required": ["plainExplanation", "risks"],
}

EXPLANATION_SCHEMA = {
    "type": "object",
    "properties": {
        "plainExplanation": {
            "type": "string",
            "description": "A clear, simple explanation of the selected text.",
        },
        "examples": {**STRING_LIST, "description": "Examples to illustrate the clause."},
        "relatedConcepts": STRING_LIST,
    },
    "required": ["plainExplanation"],
}

RISK_ASSESSMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": {
            "type": "object",
            "properties": {
                "totalRisks": {"type": "number"},
                "highRiskCount": {"type": "number"},
                "mediumRiskCount": {"type": "number"},
                "lowRiskCount": {"type": "number"},
                "overallRiskLevel": {
                    "type": "string",
                    "enum": ["low", "medium", "high", "critical"],
                },
            },
            "required": ["totalRisks", "overallRiskLevel"],
        },
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "severity": SEVERITY,
                    "description": {"type": "string"},
                    "location": {
                        "type": "object",
                        "properties": {
                            "page": {"type": "number"},
                            "paragraph": {"type": "number"},
                            "excerpt": {"type": "string"},
                        },
                    },
                    "recommendation": {"type": "string"},
                },
                "required": ["id", "title", "severity", "description"],
            },
        },
    },
    "required": ["summary", "items"],
}

TRANSLATION_SCHEMA = {
    "type": "object",
    "properties": {
        "originalText": {"type": "string"},
        "plainEnglishTranslation": {"type": "string"},
        "keyTermsDefined": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "term": {"type": "string"},
                    "definition": {"type": "string"},
                },
            },
        },
    },
    "required": ["originalText", "plainEnglishTranslation"],
}

TYPE_SPECIFIC_SCHEMA = {
    "type": "object",
    "properties": {
        "plainExplanation": {"type": "string"},
        "extracted": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "key": {"type": "string"},
                    "value": {"type": "string"},
                },
                "required": ["key", "value"],
            },
        },
        "checks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "ok": {"type": "boolean"},
                    "message": {"type": "string"},
                },
                "required": ["id", "ok", "message"],
            },
        },
    },
    "required": ["plainExplanation", "extracted", "checks"],
}
