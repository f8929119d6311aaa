"""
Reports module (audit trail).

Public API:
- IReportService: Interface for audit logging and user reports
- sanitize_report_value: Redaction applied to every stored input
"""

from .interfaces import IReportService, IReportRepository
from .models import AdminReport, AiEvent, ReportKind, ReportType, UserReportRequest
from .exceptions import InvalidReportError
from .repository import ReportRepository, InMemoryReportRepository
from .sanitize import sanitize_report_value, redact_sensitive, safe_string
from .service import ReportService, normalize_report_kind

__all__ = [
    "IReportService",
    "IReportRepository",
    "AdminReport",
    "AiEvent",
    "ReportKind",
    "ReportType",
    "UserReportRequest",
    "InvalidReportError",
    "ReportRepository",
    "InMemoryReportRepository",
    "sanitize_report_value",
    "redact_sensitive",
    "safe_string",
    "ReportService",
    "normalize_report_kind",
]
