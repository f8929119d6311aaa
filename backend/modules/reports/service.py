"""
Audit trail service.

Every write here is best-effort: a failing audit write is logged locally
and swallowed so it can never change the outcome of the operation that
triggered it.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from shared.exceptions import DecodocsError, ExternalServiceError, InternalError
from shared.models import AuthenticatedUser

from .exceptions import InvalidReportError
from .interfaces import IReportRepository
from .models import AdminReport, AiEvent, ReportKind, ReportType, UserReportRequest
from .sanitize import safe_string, sanitize_report_value

logger = logging.getLogger(__name__)

MAX_STACK_LENGTH = 6000
MAX_AI_MESSAGE_LENGTH = 4000
MIN_REPORT_MESSAGE_LENGTH = 8
MAX_REPORT_MESSAGE_LENGTH = 5000


def normalize_report_kind(kind: Any) -> Optional[ReportKind]:
    normalized = str(kind or "").strip().lower()
    try:
        return ReportKind(normalized)
    except ValueError:
        return None


def _format_stack(error: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )[:MAX_STACK_LENGTH]


class ReportService:
    """
    Writes audit records: backend exceptions, LLM events and user reports.
    """

    def __init__(self, repository: IReportRepository):
        self._repository = repository

    async def log_backend_exception(
        self,
        function_name: str,
        error: BaseException,
        user: Optional[AuthenticatedUser] = None,
        input: Any = None,
    ) -> None:
        try:
            status_code = getattr(error, "http_status", None)
            report = AdminReport(
                report_type=ReportType.BACKEND_EXCEPTION,
                source="api",
                severity="error",
                function_name=safe_string(function_name, "unknown"),
                message=safe_string(str(error), "Unknown error"),
                code=safe_string(getattr(error, "code", None), None),
                status_code=status_code if isinstance(status_code, int) else None,
                stack=_format_stack(error),
                uid=user.id if user else None,
                email=user.email if user else None,
                auth_provider=user.sign_in_provider if user else None,
                input=sanitize_report_value(input),
            )
            self._repository.insert_report(report)
        except Exception:
            logger.exception(f"Failed to log backend exception for {function_name}")

    async def log_ai_event(self, event_type: str, payload: dict[str, Any]) -> None:
        try:
            payload = dict(payload)
            if isinstance(payload.get("message"), str):
                payload["message"] = payload["message"][:MAX_AI_MESSAGE_LENGTH]
            self._repository.insert_ai_event(AiEvent(event_type=event_type, payload=payload))
        except Exception:
            logger.exception(f"Failed to log AI event {event_type}")

    async def submit_user_report(
        self,
        user: Optional[AuthenticatedUser],
        request: UserReportRequest,
    ) -> None:
        kind = normalize_report_kind(request.kind)
        if kind is None:
            raise InvalidReportError('kind must be "feedback" or "bug"')

        message = request.message or ""
        if len(message) < MIN_REPORT_MESSAGE_LENGTH:
            raise InvalidReportError("message must be at least 8 characters")
        if len(message) > MAX_REPORT_MESSAGE_LENGTH:
            raise InvalidReportError("message is too long")

        is_bug = kind == ReportKind.BUG
        report = AdminReport(
            report_type=ReportType.USER_BUG if is_bug else ReportType.USER_FEEDBACK,
            source="web",
            severity="warning" if is_bug else "info",
            function_name="submitUserReport",
            message=message,
            page_url=safe_string(request.page_url, None),
            user_agent=safe_string(request.user_agent, None),
            uid=user.id if user else None,
            email=user.email if user else None,
            auth_provider=user.sign_in_provider if user else None,
            input=sanitize_report_value(request.extra),
        )
        self._repository.insert_report(report)
        logger.info(f"Stored {report.report_type.value} report")

    @asynccontextmanager
    async def capture_failures(
        self,
        function_name: str,
        public_message: str,
        user: Optional[AuthenticatedUser] = None,
        input: Any = None,
    ) -> AsyncIterator[None]:
        """
        Log unexpected failures and surface a generic InternalError.

        DecodocsError subclasses (auth, validation, ...) pass through
        untouched. ExternalServiceError and anything else is recorded
        with the sanitized input and replaced, so upstream error text
        never reaches the client.
        """
        try:
            yield
        except Exception as e:
            if isinstance(e, DecodocsError) and not isinstance(e, ExternalServiceError):
                raise
            logger.exception(f"{function_name} failed")
            await self.log_backend_exception(function_name, e, user, input)
            raise InternalError(public_message) from e
