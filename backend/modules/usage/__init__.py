"""
Usage module (quota ledger).

Tracks token consumption per principal and answers allow/deny before any
expensive operation runs.

Public API:
- IQuotaLedger: Interface for quota enforcement
- QuotaDecision: Allow/deny result
- estimate_tokens, day_key: Token estimation and UTC day keys
"""

from .interfaces import IQuotaLedger
from .models import QuotaCode, QuotaDecision, DailyUsageRecord, UsageEvent
from .exceptions import UsageError, InvalidTokenCountError
from .service import (
    QuotaLedger,
    SupabaseQuotaLedger,
    get_quota_ledger,
    reset_quota_ledger,
)
from .token_counter import (
    estimate_tokens,
    estimate_text_tokens,
    day_key,
    daily_usage_id,
)

__all__ = [
    # Interfaces
    "IQuotaLedger",
    # Models
    "QuotaCode",
    "QuotaDecision",
    "DailyUsageRecord",
    "UsageEvent",
    # Exceptions
    "UsageError",
    "InvalidTokenCountError",
    # Service
    "QuotaLedger",
    "SupabaseQuotaLedger",
    "get_quota_ledger",
    "reset_quota_ledger",
    # Token estimation
    "estimate_tokens",
    "estimate_text_tokens",
    "day_key",
    "daily_usage_id",
]
