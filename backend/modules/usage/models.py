"""
Usage module data models.

These models define the data structures used by the quota ledger
and exposed to other modules through the interface.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class QuotaCode(str, Enum):
    """Denial codes returned by the ledger."""

    ANON_TOKEN_LIMIT = "ANON_TOKEN_LIMIT"
    FREE_TOKEN_LIMIT = "FREE_TOKEN_LIMIT"


class QuotaDecision(BaseModel):
    """
    Allow/deny answer for a charge.

    remaining_tokens is None exactly when the tier is unlimited (pro).
    """

    allowed: bool = Field(..., description="Whether the charge was accepted")
    code: Optional[QuotaCode] = Field(None, description="Denial code")
    remaining_tokens: Optional[int] = Field(None, description="Tokens left after this call")

    model_config = {"frozen": True}


class DailyUsageRecord(BaseModel):
    """
    Free-tier consumption for one (principal, UTC day).

    Keyed by puid_YYYYMMDD. Deleted by the retention job.
    """

    id: str = Field(..., description="puid_YYYYMMDD")
    puid: str = Field(..., description="Principal ID")
    day_key: str = Field(..., description="UTC day (YYYYMMDD)")
    tokens_used: int = Field(default=0, description="Tokens charged this day")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UsageEvent(BaseModel):
    """
    Append-only record of a gated operation that passed the ledger.
    """

    puid: str = Field(..., description="Principal ID")
    uid: str = Field(..., description="Auth subject ID")
    tier: str = Field(..., description="Tier at the time of the call")
    event: str = Field(..., description="Operation name (analyze, explain, ...)")
    doc_hash: Optional[str] = Field(None, description="Document hash, if any")
    estimated_tokens: int = Field(default=0, description="Tokens charged")
    meta: dict[str, Any] = Field(default_factory=dict, description="Extra metadata")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
