"""
Token estimation utilities.

Tokens are a coarse proxy for LLM cost: four characters per token.
The quota ledger charges estimates, never provider-reported counts, so
the same input is always charged the same amount.
"""

from datetime import datetime, timezone
from typing import Optional

CHARS_PER_TOKEN = 4


def estimate_tokens(total_chars: Optional[int]) -> int:
    """
    Estimate tokens for a character count.

    Args:
        total_chars: Number of characters (None is treated as 0)

    Returns:
        max(0, floor(total_chars / 4))
    """
    if not total_chars:
        return 0
    return max(0, int(total_chars) // CHARS_PER_TOKEN)


def estimate_text_tokens(text: Optional[str]) -> int:
    """Estimate tokens for a string."""
    return estimate_tokens(len(text) if text else 0)


def day_key(now: Optional[datetime] = None) -> str:
    """
    Return the UTC billing day as YYYYMMDD.

    Naive datetimes are assumed to already be UTC.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{now.year:04d}{now.month:02d}{now.day:02d}"


def daily_usage_id(puid: str, key: str) -> str:
    """Row key of a daily usage record: puid_YYYYMMDD."""
    return f"{puid}_{key}"
