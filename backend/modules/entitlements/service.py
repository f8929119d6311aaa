"""
Entitlement resolution.

Derives the caller's tier from the stored Pro flag and the session type.
The tier is re-derived on every call and never cached.
"""

import logging
from typing import Optional

from shared.config import Settings, get_settings
from shared.models import AuthenticatedUser
from modules.auth.interfaces import IAuthService

from .interfaces import IPrincipalRepository
from .models import Entitlement, EntitlementSummary, Tier

logger = logging.getLogger(__name__)


def derive_tier(is_pro: bool, is_anonymous: bool) -> Tier:
    """Pro flag wins; otherwise the session type decides."""
    if is_pro:
        return Tier.PRO
    if is_anonymous:
        return Tier.ANONYMOUS
    return Tier.FREE


class EntitlementService:
    """
    Resolves callers to entitlements.

    Owns the principal record lifecycle: the record is created on first
    sight and touched on every lookup. Those writes are telemetry, so a
    failing write is logged and the in-memory tier is still returned.
    """

    def __init__(
        self,
        auth: IAuthService,
        principals: IPrincipalRepository,
        settings: Optional[Settings] = None,
    ):
        self._auth = auth
        self._principals = principals
        self._settings = settings or get_settings()

    async def resolve_entitlement(self, user: Optional[AuthenticatedUser]) -> Entitlement:
        """Resolve uid, puid, tier and Pro flag for the caller."""
        identity = await self._auth.resolve_identity(user)

        principal = self._principals.get(identity.puid)
        is_pro = principal.pro_flag if principal is not None else False
        tier = derive_tier(is_pro, identity.is_anonymous)

        try:
            if principal is None:
                self._principals.create(identity.puid)
            else:
                self._principals.touch(identity.puid)
        except Exception:
            logger.warning("Failed to record principal %s", identity.puid, exc_info=True)

        return Entitlement(
            uid=identity.uid,
            puid=identity.puid,
            tier=tier,
            is_pro=is_pro,
        )

    async def get_summary(self, user: Optional[AuthenticatedUser]) -> EntitlementSummary:
        """Entitlement plus feature flags and token budgets."""
        entitlement = await self.resolve_entitlement(user)
        is_pro_tier = entitlement.tier == Tier.PRO

        return EntitlementSummary(
            tier=entitlement.tier,
            is_pro=entitlement.is_pro,
            storage_enabled=is_pro_tier,
            ocr_enabled=is_pro_tier,
            anon_tokens_per_uid=self._settings.anon_tokens_per_uid,
            free_tokens_per_day=self._settings.free_tokens_per_day,
        )

    async def set_pro_flag(self, puid: str, is_pro: bool, status: Optional[str] = None) -> None:
        """Flip the Pro flag (payment provider event)."""
        self._principals.set_pro_flag(puid, is_pro, status)
        logger.info("Pro flag for %s set to %s", puid, is_pro)
