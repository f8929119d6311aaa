"""Tests for the audit trail service."""

import pytest
from unittest.mock import MagicMock

from modules.reports.exceptions import InvalidReportError
from modules.reports.models import ReportType, UserReportRequest
from modules.reports.repository import InMemoryReportRepository, ReportRepository
from modules.reports.service import ReportService, normalize_report_kind
from shared.exceptions import ExternalServiceError, InternalError, InvalidArgumentError


@pytest.fixture
def repository():
    return InMemoryReportRepository()


@pytest.fixture
def reports(repository):
    return ReportService(repository)


class TestCaptureFailures:
    @pytest.mark.asyncio
    async def test_success_records_nothing(self, reports, repository):
        async with reports.capture_failures("op", "Failed"):
            pass
        assert repository.reports == []

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(self, reports, repository):
        with pytest.raises(InvalidArgumentError):
            async with reports.capture_failures("op", "Failed"):
                raise InvalidArgumentError("bad input")
        assert repository.reports == []

    @pytest.mark.asyncio
    async def test_unexpected_error_is_replaced(self, reports, repository, free_user):
        with pytest.raises(InternalError) as exc_info:
            async with reports.capture_failures(
                "analyzeText", "An error occurred.", free_user, {"text": "secret clause"}
            ):
                raise KeyError("missing")

        assert exc_info.value.message == "An error occurred."
        assert isinstance(exc_info.value.__cause__, KeyError)
        report = repository.reports[0]
        assert report.report_type == ReportType.BACKEND_EXCEPTION
        assert report.uid == free_user.id
        assert report.email == free_user.email
        assert report.input == {"text": "[REDACTED]"}
        assert "KeyError" in report.stack

    @pytest.mark.asyncio
    async def test_external_errors_are_hidden(self, reports, repository):
        with pytest.raises(InternalError) as exc_info:
            async with reports.capture_failures("op", "Failed"):
                raise ExternalServiceError("upstream said: api key xyz invalid", service="gemini")

        assert "xyz" not in exc_info.value.message
        assert "xyz" in repository.reports[0].message


class TestLogging:
    @pytest.mark.asyncio
    async def test_log_backend_exception_records_status(self, reports, repository):
        await reports.log_backend_exception("op", InvalidArgumentError("bad", code="BAD"))

        report = repository.reports[0]
        assert report.code == "BAD"
        assert report.status_code == 400
        assert report.uid is None

    @pytest.mark.asyncio
    async def test_audit_write_failure_is_swallowed(self):
        repository = MagicMock()
        repository.insert_report.side_effect = RuntimeError("db down")
        repository.insert_ai_event.side_effect = RuntimeError("db down")
        reports = ReportService(repository)

        await reports.log_backend_exception("op", ValueError("x"))
        await reports.log_ai_event("analyzeText_error", {"message": "x"})

    @pytest.mark.asyncio
    async def test_ai_event_message_is_capped(self, reports, repository):
        await reports.log_ai_event("analyzeText_error", {"message": "m" * 10_000, "code": "LLM_ERROR"})

        event = repository.ai_events[0]
        assert event.event_type == "analyzeText_error"
        assert len(event.payload["message"]) == 4000
        assert event.payload["code"] == "LLM_ERROR"


class TestUserReports:
    def test_normalize_kind(self):
        assert normalize_report_kind(" BUG ").value == "bug"
        assert normalize_report_kind("feedback").value == "feedback"
        assert normalize_report_kind("praise") is None
        assert normalize_report_kind(None) is None

    @pytest.mark.asyncio
    async def test_bug_report(self, reports, repository, free_user):
        await reports.submit_user_report(free_user, UserReportRequest(
            kind="Bug",
            message="The export button does nothing",
            page_url="https://decodocs.com/view",
            extra={"rawPdf": "JVBERi0", "browser": "firefox"},
        ))

        report = repository.reports[0]
        assert report.report_type == ReportType.USER_BUG
        assert report.severity == "warning"
        assert report.source == "web"
        assert report.page_url == "https://decodocs.com/view"
        assert report.input == {"rawPdf": "[REDACTED]", "browser": "firefox"}

    @pytest.mark.asyncio
    async def test_anonymous_feedback(self, reports, repository):
        await reports.submit_user_report(None, UserReportRequest(kind="feedback", message="Great app!"))

        report = repository.reports[0]
        assert report.report_type == ReportType.USER_FEEDBACK
        assert report.severity == "info"
        assert report.uid is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind, message",
        [("praise", "long enough message"), ("bug", "short"), ("bug", "x" * 5001), ("bug", None)],
    )
    async def test_invalid_reports(self, reports, repository, kind, message):
        with pytest.raises(InvalidReportError):
            await reports.submit_user_report(None, UserReportRequest(kind=kind, message=message))
        assert repository.reports == []


class TestReportRepository:
    @pytest.mark.asyncio
    async def test_insert_report_serializes_row(self):
        db = MagicMock()
        reports = ReportService(ReportRepository(db))

        await reports.log_backend_exception("op", ValueError("x"))

        db.table.assert_called_with("admin_reports")
        row = db.table.return_value.insert.call_args[0][0]
        assert row["report_type"] == "backend_exception"
        assert isinstance(row["created_at"], str)
