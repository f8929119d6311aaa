"""
Quota ledger implementation.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations of token budget enforcement.

Per tier:
- pro: unlimited, no counters touched
- anonymous: lifetime counter, snapshot read then atomic increment
- free: daily counter, read and conditional increment in one transaction
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from shared.config import Settings, get_settings
from modules.entitlements.models import Tier

from .exceptions import InvalidTokenCountError, UsageError
from .models import DailyUsageRecord, QuotaCode, QuotaDecision, UsageEvent
from .token_counter import day_key, daily_usage_id

logger = logging.getLogger(__name__)


class QuotaLedger:
    """
    Quota ledger with in-memory storage.

    For testing and development. Use SupabaseQuotaLedger for production.
    Subclasses replace the storage hooks (_get_anon_tokens_used,
    _increment_anon_tokens, _charge_daily, ...) and inherit the policy.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

        # In-memory storage
        self._anon_used: dict[str, int] = {}
        self._daily: dict[str, DailyUsageRecord] = {}
        self._events: list[UsageEvent] = []
        self._daily_lock = asyncio.Lock()

    @property
    def anon_limit(self) -> int:
        return self._settings.anon_tokens_per_uid

    @property
    def free_limit(self) -> int:
        return self._settings.free_tokens_per_day

    async def charge_and_check(
        self,
        puid: str,
        tier: Tier,
        estimated_tokens: int,
        now: Optional[datetime] = None,
    ) -> QuotaDecision:
        """Check the tier budget and record the charge if it fits."""
        if estimated_tokens < 0:
            raise InvalidTokenCountError(
                f"Estimated tokens must be non-negative, got {estimated_tokens}"
            )

        if tier == Tier.PRO:
            return QuotaDecision(allowed=True, remaining_tokens=None)

        if tier == Tier.ANONYMOUS:
            return await self._charge_anonymous(puid, estimated_tokens)

        return await self._charge_free(puid, estimated_tokens, now)

    async def _charge_anonymous(self, puid: str, estimated_tokens: int) -> QuotaDecision:
        # Snapshot read; concurrent racers may overshoot by one in-flight estimate each
        used = await self._get_anon_tokens_used(puid)
        logger.debug(
            "Anonymous charge: puid=%s used=%d estimated=%d limit=%d",
            puid, used, estimated_tokens, self.anon_limit,
        )

        if used + estimated_tokens > self.anon_limit:
            return QuotaDecision(
                allowed=False,
                code=QuotaCode.ANON_TOKEN_LIMIT,
                remaining_tokens=max(0, self.anon_limit - used),
            )

        await self._increment_anon_tokens(puid, estimated_tokens)
        return QuotaDecision(
            allowed=True,
            remaining_tokens=max(0, self.anon_limit - (used + estimated_tokens)),
        )

    async def _charge_free(
        self,
        puid: str,
        estimated_tokens: int,
        now: Optional[datetime],
    ) -> QuotaDecision:
        key = day_key(now)
        allowed, used = await self._charge_daily(puid, key, estimated_tokens, self.free_limit)
        logger.debug(
            "Free charge: puid=%s day=%s used=%d estimated=%d allowed=%s",
            puid, key, used, estimated_tokens, allowed,
        )

        if not allowed:
            return QuotaDecision(
                allowed=False,
                code=QuotaCode.FREE_TOKEN_LIMIT,
                remaining_tokens=max(0, self.free_limit - used),
            )

        return QuotaDecision(
            allowed=True,
            remaining_tokens=max(0, self.free_limit - (used + estimated_tokens)),
        )

    # -------------------------------------------------------------------------
    # Storage hooks
    # -------------------------------------------------------------------------

    async def _get_anon_tokens_used(self, puid: str) -> int:
        return self._anon_used.get(puid, 0)

    async def _increment_anon_tokens(self, puid: str, tokens: int) -> None:
        self._anon_used[puid] = self._anon_used.get(puid, 0) + tokens

    async def _charge_daily(
        self,
        puid: str,
        key: str,
        tokens: int,
        limit: int,
    ) -> tuple[bool, int]:
        """
        Atomically read the day's usage and increment it if under the limit.

        Returns:
            (allowed, tokens used before this charge)
        """
        async with self._daily_lock:
            record_id = daily_usage_id(puid, key)
            record = await self._load_daily(record_id)
            used = record.tokens_used if record else 0

            if used + tokens > limit:
                return False, used

            now = datetime.now(timezone.utc)
            if record is None:
                record = DailyUsageRecord(id=record_id, puid=puid, day_key=key)
                self._daily[record_id] = record
            record.tokens_used = used + tokens
            record.updated_at = now
            return True, used

    async def _load_daily(self, record_id: str) -> Optional[DailyUsageRecord]:
        return self._daily.get(record_id)

    async def _delete_daily_before(self, cutoff: datetime) -> int:
        stale = [k for k, r in self._daily.items() if r.updated_at < cutoff]
        for k in stale:
            del self._daily[k]
        return len(stale)

    async def _insert_event(self, event: UsageEvent) -> None:
        self._events.insert(0, event)

    # -------------------------------------------------------------------------
    # Reporting and maintenance
    # -------------------------------------------------------------------------

    async def get_daily_usage(self, puid: str, day: str) -> int:
        record = await self._load_daily(daily_usage_id(puid, day))
        return record.tokens_used if record else 0

    async def get_anon_usage(self, puid: str) -> int:
        return await self._get_anon_tokens_used(puid)

    async def get_usage_events(self, puid: str, limit: int = 50) -> list[UsageEvent]:
        return [e for e in self._events if e.puid == puid][:limit]

    async def record_usage_event(self, event: UsageEvent) -> None:
        """Append a usage event; failures are logged and swallowed."""
        try:
            await self._insert_event(event)
        except Exception:
            logger.warning("Failed to record usage event %s for %s", event.event, event.puid, exc_info=True)

    async def cleanup_old_usage_records(self, now: Optional[datetime] = None) -> int:
        """Delete daily records not updated within the retention window."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self._settings.ttl_days_usage_docs)
        deleted = await self._delete_daily_before(cutoff)

        if deleted:
            logger.info("Deleted %d old usage records", deleted)
        else:
            logger.info("No old usage records to delete")
        return deleted


class SupabaseQuotaLedger(QuotaLedger):
    """
    Quota ledger with Supabase persistence.

    Counters are changed only through PostgreSQL functions (see
    migrations/001_quota_ledger.sql):
    - increment_anon_tokens: atomic increment of principals.anon_tokens_used
    - charge_free_daily_tokens: SELECT ... FOR UPDATE on the usage_daily row,
      then a conditional increment, in one transaction
    """

    def __init__(self, supabase_client: Any, settings: Optional[Settings] = None):
        """
        Initialize with Supabase client.

        Args:
            supabase_client: Supabase client instance
            settings: Optional settings override
        """
        super().__init__(settings)
        self._db = supabase_client

    async def _get_anon_tokens_used(self, puid: str) -> int:
        result = self._db.table("principals").select("anon_tokens_used").eq(
            "puid", puid
        ).execute()

        if result.data:
            return result.data[0].get("anon_tokens_used") or 0
        return 0

    async def _increment_anon_tokens(self, puid: str, tokens: int) -> None:
        self._db.rpc("increment_anon_tokens", {
            "p_puid": puid,
            "p_tokens": tokens,
        }).execute()

    async def _charge_daily(
        self,
        puid: str,
        key: str,
        tokens: int,
        limit: int,
    ) -> tuple[bool, int]:
        result = self._db.rpc("charge_free_daily_tokens", {
            "p_puid": puid,
            "p_day_key": key,
            "p_tokens": tokens,
            "p_limit": limit,
        }).execute()

        row = result.data
        if isinstance(row, list):
            row = row[0] if row else None
        if not isinstance(row, dict) or "allowed" not in row:
            raise UsageError(
                "Unexpected reply from charge_free_daily_tokens",
                code="LEDGER_RPC_ERROR",
                details={"puid": puid, "day_key": key},
            )

        return bool(row["allowed"]), int(row.get("used") or 0)

    async def _delete_daily_before(self, cutoff: datetime) -> int:
        result = self._db.table("usage_daily").delete().lt(
            "updated_at", cutoff.isoformat()
        ).execute()
        return len(result.data or [])

    async def _insert_event(self, event: UsageEvent) -> None:
        self._db.table("usage_events").insert({
            "puid": event.puid,
            "uid": event.uid,
            "tier": event.tier,
            "event": event.event,
            "doc_hash": event.doc_hash,
            "estimated_tokens": event.estimated_tokens,
            "meta": event.meta,
            "created_at": event.created_at.isoformat(),
        }).execute()

    async def get_daily_usage(self, puid: str, day: str) -> int:
        result = self._db.table("usage_daily").select("tokens_used").eq(
            "id", daily_usage_id(puid, day)
        ).execute()

        if result.data:
            return result.data[0].get("tokens_used") or 0
        return 0

    async def get_usage_events(self, puid: str, limit: int = 50) -> list[UsageEvent]:
        result = self._db.table("usage_events").select("*").eq(
            "puid", puid
        ).order("created_at", desc=True).limit(limit).execute()

        return [
            UsageEvent(
                puid=r["puid"],
                uid=r["uid"],
                tier=r["tier"],
                event=r["event"],
                doc_hash=r.get("doc_hash"),
                estimated_tokens=r.get("estimated_tokens") or 0,
                meta=r.get("meta") or {},
                created_at=datetime.fromisoformat(
                    r["created_at"].replace("Z", "+00:00")
                ),
            )
            for r in result.data
        ]


# Module-level instance getter
_service_instance: Optional[QuotaLedger] = None


def get_quota_ledger() -> QuotaLedger:
    """Get the quota ledger singleton."""
    global _service_instance
    if _service_instance is None:
        settings = get_settings()
        if settings.use_in_memory_store:
            _service_instance = QuotaLedger(settings)
        else:
            from shared.database import get_supabase_client
            _service_instance = SupabaseQuotaLedger(get_supabase_client(), settings)
    return _service_instance


def reset_quota_ledger() -> None:
    """Reset the quota ledger singleton (for testing)."""
    global _service_instance
    _service_instance = None
