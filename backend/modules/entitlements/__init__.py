"""
Entitlements module.

Classifies callers into anonymous / free / pro tiers.

Public API:
- IEntitlementService: Interface for entitlement resolution
- Tier, Entitlement, EntitlementSummary: Data models
"""

from .interfaces import IEntitlementService, IPrincipalRepository
from .models import (
    Tier,
    Principal,
    Entitlement,
    EntitlementSummary,
    EntitlementBrief,
)
from .repository import SupabasePrincipalRepository, InMemoryPrincipalRepository
from .service import EntitlementService, derive_tier

__all__ = [
    "IEntitlementService",
    "IPrincipalRepository",
    "Tier",
    "Principal",
    "Entitlement",
    "EntitlementSummary",
    "EntitlementBrief",
    "SupabasePrincipalRepository",
    "InMemoryPrincipalRepository",
    "EntitlementService",
    "derive_tier",
]
