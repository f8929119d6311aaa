"""
Usage module interface.

Other modules should depend on IQuotaLedger, not the concrete implementation.
The analysis module charges every gated operation through it before calling
the LLM.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from modules.entitlements.models import Tier

from .models import QuotaDecision, UsageEvent


@runtime_checkable
class IQuotaLedger(Protocol):
    """
    Interface for token quota enforcement.
    """

    async def charge_and_check(
        self,
        puid: str,
        tier: Tier,
        estimated_tokens: int,
        now: Optional[datetime] = None,
    ) -> QuotaDecision:
        """
        Check the budget and, if the charge fits, record it.

        A denied charge never mutates a counter. An accepted charge is
        durable before this returns.

        Args:
            puid: Principal ID
            tier: Tier resolved for this call
            estimated_tokens: Tokens to charge (>= 0)
            now: Clock override (UTC) used for the daily key

        Returns:
            QuotaDecision with the remaining budget

        Raises:
            InvalidTokenCountError: If estimated_tokens is negative
        """
        ...

    async def get_daily_usage(self, puid: str, day: str) -> int:
        """Tokens charged for a principal on a UTC day (YYYYMMDD)."""
        ...

    async def get_anon_usage(self, puid: str) -> int:
        """Lifetime tokens charged to an anonymous principal."""
        ...

    async def record_usage_event(self, event: UsageEvent) -> None:
        """Append a usage event. Best-effort: never raises."""
        ...

    async def cleanup_old_usage_records(self, now: Optional[datetime] = None) -> int:
        """
        Delete daily usage records older than the retention window.

        Returns:
            Number of deleted records
        """
        ...
