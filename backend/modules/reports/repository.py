"""
Audit trail repository.

Tables:
- admin_reports (backend exceptions, user feedback and bug reports)
- admin_ai_events (LLM failures)
"""

from typing import Any

from shared.repository import BaseRepository

from .models import AdminReport, AiEvent


class ReportRepository(BaseRepository[AdminReport]):
    """Audit records stored in Supabase."""

    def insert_report(self, report: AdminReport) -> None:
        row: dict[str, Any] = report.model_dump(mode="json")
        self._db.table("admin_reports").insert(row).execute()

    def insert_ai_event(self, event: AiEvent) -> None:
        self._db.table("admin_ai_events").insert({
            "event_type": event.event_type,
            "payload": event.payload,
            "created_at": event.created_at.isoformat(),
        }).execute()


class InMemoryReportRepository:
    """
    Audit records kept in lists.

    For testing and development. Use ReportRepository for production.
    """

    def __init__(self) -> None:
        self.reports: list[AdminReport] = []
        self.ai_events: list[AiEvent] = []

    def insert_report(self, report: AdminReport) -> None:
        self.reports.append(report)

    def insert_ai_event(self, event: AiEvent) -> None:
        self.ai_events.append(event)
