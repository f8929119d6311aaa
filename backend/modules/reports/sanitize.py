"""
Sanitization of values written to the audit trail.

Audit records must never contain document content. Any mapping key that
hints at raw content is redacted and everything else is size-capped.
"""

from typing import Any

SENSITIVE_KEY_FRAGMENTS = ("text", "content", "selection", "pdf", "base64", "raw")

MAX_DEPTH = 4
MAX_STRING_LENGTH = 3000
MAX_LIST_ITEMS = 20
MAX_DICT_KEYS = 40
MAX_OTHER_LENGTH = 500

REDACTED = "[REDACTED]"
TRUNCATED = "[TRUNCATED]"


def safe_string(value: Any, fallback: Any = "") -> Any:
    """Stripped string form of value, or fallback when it is empty or None."""
    if value is None:
        return fallback
    text = str(value).strip()
    return text or fallback


def redact_sensitive(key: Any, value: Any) -> Any:
    lowered = str(key or "").lower()
    if any(fragment in lowered for fragment in SENSITIVE_KEY_FRAGMENTS):
        return REDACTED
    return value


def sanitize_report_value(value: Any, depth: int = 0) -> Any:
    """
    Make a value safe to store in an audit record.

    - nesting deeper than 4 levels becomes "[TRUNCATED]"
    - strings are capped at 3000 chars, lists at 20 items, dicts at 40 keys
    - dict values under content-like keys become "[REDACTED]"
    """
    if depth > MAX_DEPTH:
        return TRUNCATED
    if value is None:
        return None
    if isinstance(value, str):
        return value[:MAX_STRING_LENGTH]
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return [sanitize_report_value(item, depth + 1) for item in list(value)[:MAX_LIST_ITEMS]]
    if isinstance(value, dict):
        out = {}
        for key, item in list(value.items())[:MAX_DICT_KEYS]:
            out[str(key)] = sanitize_report_value(redact_sensitive(key, item), depth + 1)
        return out
    return str(value)[:MAX_OTHER_LENGTH]
