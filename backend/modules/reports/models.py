"""
Reports module data models.

Two record types make up the audit trail:
- AdminReport: backend exceptions and user feedback/bug reports
- AiEvent: LLM failure events
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportKind(str, Enum):
    """Kinds of report a user can submit."""

    FEEDBACK = "feedback"
    BUG = "bug"


class ReportType(str, Enum):
    BACKEND_EXCEPTION = "backend_exception"
    USER_FEEDBACK = "user_feedback"
    USER_BUG = "user_bug"


class AdminReport(BaseModel):
    """A row of the admin_reports table."""

    report_type: ReportType
    source: str
    severity: str
    function_name: str
    message: str
    status: str = "open"
    code: Optional[str] = None
    status_code: Optional[int] = None
    stack: Optional[str] = None
    page_url: Optional[str] = None
    user_agent: Optional[str] = None
    uid: Optional[str] = None
    email: Optional[str] = None
    auth_provider: Optional[str] = None
    input: Any = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AiEvent(BaseModel):
    """A row of the admin_ai_events table."""

    event_type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserReportRequest(BaseModel):
    """Body of POST /api/reports."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    kind: Optional[str] = None
    message: Optional[str] = None
    page_url: Optional[str] = None
    user_agent: Optional[str] = None
    extra: Optional[dict[str, Any]] = None
