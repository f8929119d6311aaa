"""
User report endpoint.

Feedback and bug reports from the web client. Authentication is optional.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from modules.reports.interfaces import IReportService
from modules.reports.models import UserReportRequest
from shared.models import AuthenticatedUser, OkResponse

from ..dependencies import get_report_service
from ..middleware.auth import get_optional_user

router = APIRouter()


@router.post("", response_model=OkResponse)
async def submit_user_report(
    request: UserReportRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: IReportService = Depends(get_report_service),
) -> OkResponse:
    """Store a feedback or bug report."""
    await service.submit_user_report(user, request)
    return OkResponse()
