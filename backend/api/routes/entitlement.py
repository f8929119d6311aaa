"""
Entitlement endpoint.

Returns the caller's tier, feature flags and token budgets.
"""

from fastapi import APIRouter, Depends

from modules.entitlements.interfaces import IEntitlementService
from modules.entitlements.models import EntitlementSummary
from shared.models import AuthenticatedUser

from ..dependencies import get_entitlement_service
from ..middleware.auth import get_current_user

router = APIRouter()


@router.get("", response_model=EntitlementSummary)
async def get_entitlement(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IEntitlementService = Depends(get_entitlement_service),
) -> EntitlementSummary:
    """
    Get the current caller's entitlement.

    Anonymous sessions are accepted.
    """
    return await service.get_summary(user)
