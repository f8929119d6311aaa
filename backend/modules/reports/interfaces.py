"""
Reports module interface.

Other modules should depend on IReportService, not the concrete
implementation. Writes to the audit trail never fail the caller.
"""

from typing import Any, AsyncContextManager, Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser

from .models import AdminReport, AiEvent


@runtime_checkable
class IReportRepository(Protocol):
    """Storage for audit records."""

    def insert_report(self, report: AdminReport) -> None:
        ...

    def insert_ai_event(self, event: AiEvent) -> None:
        ...


@runtime_checkable
class IReportService(Protocol):
    """
    Interface for the audit trail.
    """

    async def log_backend_exception(
        self,
        function_name: str,
        error: BaseException,
        user: Optional[AuthenticatedUser] = None,
        input: Any = None,
    ) -> None:
        """Record an unexpected backend failure. Never raises."""
        ...

    async def log_ai_event(self, event_type: str, payload: dict[str, Any]) -> None:
        """Record an LLM event. Never raises."""
        ...

    async def submit_user_report(
        self,
        user: Optional[AuthenticatedUser],
        request: Any,
    ) -> None:
        """
        Store a feedback or bug report from the web UI.

        Raises:
            InvalidReportError: If kind or message is invalid
        """
        ...

    def capture_failures(
        self,
        function_name: str,
        public_message: str,
        user: Optional[AuthenticatedUser] = None,
        input: Any = None,
    ) -> AsyncContextManager[None]:
        """
        Context manager that logs unexpected exceptions and replaces them
        with a generic InternalError carrying public_message.
        """
        ...
