"""
Entitlements module interface.

Other modules should depend on IEntitlementService, not the concrete
implementation. The analysis module uses it to classify callers into tiers.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser

from .models import Entitlement, EntitlementSummary, Principal


@runtime_checkable
class IPrincipalRepository(Protocol):
    """Storage contract for principal records."""

    def get(self, puid: str) -> Optional[Principal]:
        """Return the principal record, or None if never seen."""
        ...

    def create(self, puid: str) -> None:
        """Create a principal with zeroed counters and current timestamps."""
        ...

    def touch(self, puid: str) -> None:
        """Update last_seen_at."""
        ...

    def set_pro_flag(self, puid: str, is_pro: bool, status: Optional[str] = None) -> None:
        """Persist the Pro flag (and subscription status, if given)."""
        ...


@runtime_checkable
class IEntitlementService(Protocol):
    """
    Interface for entitlement resolution.
    """

    async def resolve_entitlement(self, user: Optional[AuthenticatedUser]) -> Entitlement:
        """
        Resolve the caller's tier from current stored state.

        Args:
            user: Authenticated caller (None if the request had no credentials)

        Returns:
            Entitlement with uid, puid, tier and is_pro

        Raises:
            UnauthenticatedError: If there is no valid auth subject
        """
        ...

    async def get_summary(self, user: Optional[AuthenticatedUser]) -> EntitlementSummary:
        """
        Resolve the caller's entitlement plus feature flags and budgets.
        """
        ...

    async def set_pro_flag(self, puid: str, is_pro: bool, status: Optional[str] = None) -> None:
        """
        Flip the subscription flag for a principal.

        Called by the payment provider integration; creates the principal
        if it does not exist yet.
        """
        ...
