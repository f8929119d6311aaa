"""
Entitlements module data models.

These models define the data structures used by the entitlements module
and exposed to other modules through the interface.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Tier(str, Enum):
    """Quota tiers. Derived on every call, never stored."""

    ANONYMOUS = "anonymous"
    FREE = "free"
    PRO = "pro"


class Principal(BaseModel):
    """
    One billing/quota identity.

    Created lazily on first entitlement lookup, touched on every call.
    """

    puid: str = Field(..., description="Principal ID")
    is_pro: Optional[bool] = Field(None, description="Canonical Pro flag")
    subscription: dict[str, Any] = Field(
        default_factory=dict,
        description="Subscription state written by the payment event source",
    )
    anon_tokens_used: int = Field(default=0, description="Lifetime tokens (anonymous tier)")
    created_at: Optional[datetime] = Field(None, description="First seen")
    last_seen_at: Optional[datetime] = Field(None, description="Last entitlement lookup")

    @property
    def pro_flag(self) -> bool:
        """
        Effective Pro flag.

        The canonical is_pro column wins; rows written before it existed
        carry the flag in subscription.isPro.
        """
        if isinstance(self.is_pro, bool):
            return self.is_pro
        legacy = self.subscription.get("isPro") if isinstance(self.subscription, dict) else None
        if isinstance(legacy, bool):
            return legacy
        return False


class Entitlement(BaseModel):
    """Resolved entitlement for a single call."""

    uid: str = Field(..., description="Auth subject ID")
    puid: str = Field(..., description="Principal ID")
    tier: Tier = Field(..., description="Derived tier")
    is_pro: bool = Field(default=False, description="Stored Pro flag")

    model_config = {"frozen": True}


class EntitlementSummary(BaseModel):
    """Feature flags and budgets returned to the client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tier: Tier
    is_pro: bool
    storage_enabled: bool
    ocr_enabled: bool
    anon_tokens_per_uid: int
    free_tokens_per_day: int


class EntitlementBrief(BaseModel):
    """The {tier, isPro} pair embedded in operation responses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tier: Tier
    is_pro: bool

    @classmethod
    def from_entitlement(cls, entitlement: Entitlement) -> "EntitlementBrief":
        return cls(tier=entitlement.tier, is_pro=entitlement.is_pro)
