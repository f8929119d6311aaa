"""
Principal repository.

Encapsulates all access to the principals table:
- puid (primary key)
- is_pro, subscription (Pro flag, written by the payment event source)
- anon_tokens_used (lifetime counter, owned by the quota ledger)
- created_at, last_seen_at
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository

from .models import Principal

PRINCIPALS_TABLE = "principals"


class SupabasePrincipalRepository(BaseRepository[Principal]):
    """Principal records stored in Supabase."""

    def get(self, puid: str) -> Optional[Principal]:
        result = self._db.table(PRINCIPALS_TABLE).select("*").eq("puid", puid).execute()
        if not result.data:
            return None
        return self._map_to_principal(result.data[0])

    def create(self, puid: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        # Concurrent first calls race on the insert; the loser is a no-op
        self._db.table(PRINCIPALS_TABLE).upsert(
            {
                "puid": puid,
                "is_pro": False,
                "subscription": {"isPro": False},
                "anon_tokens_used": 0,
                "created_at": now,
                "last_seen_at": now,
            },
            on_conflict="puid",
            ignore_duplicates=True,
        ).execute()

    def touch(self, puid: str) -> None:
        self._db.table(PRINCIPALS_TABLE).update(
            {"last_seen_at": datetime.now(timezone.utc).isoformat()}
        ).eq("puid", puid).execute()

    def set_pro_flag(self, puid: str, is_pro: bool, status: Optional[str] = None) -> None:
        now = datetime.now(timezone.utc).isoformat()
        self._db.table(PRINCIPALS_TABLE).upsert(
            {
                "puid": puid,
                "is_pro": is_pro,
                "subscription": {"isPro": is_pro, "status": status, "updatedAt": now},
                "last_seen_at": now,
            },
            on_conflict="puid",
        ).execute()

    def _map_to_principal(self, row: dict[str, Any]) -> Principal:
        return Principal(
            puid=row["puid"],
            is_pro=row.get("is_pro"),
            subscription=row.get("subscription") or {},
            anon_tokens_used=row.get("anon_tokens_used") or 0,
            created_at=self._parse_timestamp(row.get("created_at")),
            last_seen_at=self._parse_timestamp(row.get("last_seen_at")),
        )


class InMemoryPrincipalRepository:
    """
    Principal records kept in a dict.

    For testing and development. Use SupabasePrincipalRepository for production.
    """

    def __init__(self) -> None:
        self._rows: dict[str, Principal] = {}

    def get(self, puid: str) -> Optional[Principal]:
        return self._rows.get(puid)

    def create(self, puid: str) -> None:
        if puid in self._rows:
            return
        now = datetime.now(timezone.utc)
        self._rows[puid] = Principal(
            puid=puid,
            is_pro=False,
            subscription={"isPro": False},
            created_at=now,
            last_seen_at=now,
        )

    def touch(self, puid: str) -> None:
        principal = self._rows.get(puid)
        if principal is not None:
            principal.last_seen_at = datetime.now(timezone.utc)

    def set_pro_flag(self, puid: str, is_pro: bool, status: Optional[str] = None) -> None:
        self.create(puid)
        principal = self._rows[puid]
        principal.is_pro = is_pro
        principal.subscription = {"isPro": is_pro, "status": status}

    def put(self, principal: Principal) -> None:
        """Insert or replace a record as-is (test seeding)."""
        self._rows[principal.puid] = principal
