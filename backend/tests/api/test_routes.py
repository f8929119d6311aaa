"""
Tests for the document, analysis and report endpoints.

Runs the full stack against in-memory storage and a fake LLM.
"""

from providers.base import LLMError

from tests.conftest import DOC_HASH, create_test_token


def text_stats(total_chars=4000):
    return {"pageCount": 2, "charsPerPage": [2000, 2000], "totalChars": total_chars}


class TestDocumentRoutes:
    """Tests for /api/documents"""

    def test_preflight(self, client, auth_headers):
        response = client.post(
            "/api/documents/preflight",
            json={"docHash": DOC_HASH, "stats": text_stats()},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["classification"] == "OK"
        assert data["requiredTier"] == "free"
        assert data["stats"] == {"scanRatio": 0.0, "estimatedTokens": 1000}

    def test_preflight_oversized(self, client, auth_headers):
        response = client.post(
            "/api/documents/preflight",
            json={"docHash": DOC_HASH, "stats": text_stats(total_chars=120_001)},
            headers=auth_headers,
        )

        data = response.json()
        assert data["classification"] == "PRO_REQUIRED"
        assert data["reasons"][0]["code"] == "SIZE_LIMIT_EXCEEDED"

    def test_invalid_doc_hash(self, client, auth_headers):
        response = client.post(
            "/api/documents/preflight",
            json={"docHash": "abc", "stats": text_stats()},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["status"] == "INVALID_ARGUMENT"

    def test_malformed_body(self, client, auth_headers):
        response = client.post(
            "/api/documents/preflight",
            json={"docHash": DOC_HASH, "stats": {"pageCount": "many", "charsPerPage": []}},
            headers=auth_headers,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["status"] == "INVALID_ARGUMENT"
        assert error["message"].startswith("stats.pageCount")

    def test_type_lifecycle(self, client, auth_headers):
        detect = client.post(
            "/api/documents/detect-type",
            json={"docHash": DOC_HASH, "stats": text_stats(), "text": "Tax invoice for March"},
            headers=auth_headers,
        )
        assert detect.json()["typeId"] == "business_invoice"

        override = client.put(
            f"/api/documents/{DOC_HASH}/type-override",
            json={"typeId": "legal_nda"},
            headers=auth_headers,
        )
        assert override.json() == {"ok": True}

        state = client.get(f"/api/documents/{DOC_HASH}/type", headers=auth_headers).json()
        assert state["overrideTypeId"] == "legal_nda"
        assert state["detected"]["typeId"] == "business_invoice"
        assert state["effectiveTypeId"] == "legal_nda"

    def test_empty_override(self, client, auth_headers):
        response = client.put(
            f"/api/documents/{DOC_HASH}/type-override",
            json={"typeId": "  "},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "typeId is required"


class TestAnalysisRoutes:
    """Tests for /api/analysis"""

    def test_analyze_text(self, client, auth_headers, fake_llm):
        fake_llm.response = {"plainExplanation": "A lease.", "keyPoints": ["Rent is monthly"]}

        response = client.post(
            "/api/analysis/text",
            json={"docHash": DOC_HASH, "stats": text_stats(), "text": {"value": "The tenant..."}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["result"]["plainExplanation"] == "A lease."
        assert data["result"]["keyPoints"] == ["Rent is monthly"]
        assert data["usage"] == {"estimatedTokens": 1000, "remainingTokens": 39_000}
        assert data["entitlement"] == {"tier": "free", "isPro": False}

    def test_scanned_document_denied(self, client, auth_headers, fake_llm):
        stats = {"pageCount": 3, "charsPerPage": [0, 0, 900], "totalChars": 900}

        response = client.post(
            "/api/analysis/text",
            json={"docHash": DOC_HASH, "stats": stats, "text": {"value": "..."}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["code"] == "SCAN_DETECTED_PRO_REQUIRED"
        assert data["requiredTier"] == "pro"
        assert fake_llm.calls == []

    def test_anonymous_budget_denial(self, client, container):
        token = create_test_token(user_id="anon-9", email=None, is_anonymous=True)
        headers = {"Authorization": f"Bearer {token}"}
        container.ledger._anon_used["anon-9"] = 20_000

        response = client.post(
            "/api/analysis/explain",
            json={"selection": "Force majeure"},
            headers=headers,
        )

        data = response.json()
        assert data["ok"] is False
        assert data["code"] == "ANON_TOKEN_LIMIT"
        assert data["requiredTier"] == "free"
        assert data["usage"]["remainingTokens"] == 0

    def test_llm_failure(self, client, auth_headers, fake_llm):
        fake_llm.error = LLMError("upstream 500: internal detail", "gemini", status_code=500)

        response = client.post(
            "/api/analysis/translate",
            json={"legalText": "Whereas the party of the first part..."},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": {"message": "Failed to translate text", "status": "INTERNAL"}
        }

    def test_risks(self, client, auth_headers, fake_llm):
        fake_llm.response = {"items": [{"title": "Fees", "severity": "medium"}]}

        response = client.post(
            "/api/analysis/risks",
            json={"documentText": "Fees apply."},
            headers=auth_headers,
        )

        summary = response.json()["result"]["summary"]
        assert summary["totalRisks"] == 1
        assert summary["overallRiskLevel"] == "medium"

    def test_by_type(self, client, auth_headers, fake_llm):
        fake_llm.response = {"plainExplanation": "An NDA.", "checks": [{"id": "term", "ok": True}]}

        response = client.post(
            "/api/analysis/by-type",
            json={"docHash": DOC_HASH, "text": "Confidential information..."},
            headers=auth_headers,
        )

        data = response.json()
        assert data["ok"] is True
        assert data["result"]["checks"] == [{"id": "term", "ok": True, "message": ""}]
        assert data["effectiveTypeId"] is None
        assert data["message"] == "Type-specific analysis performed by Gemini."

    def test_missing_selection(self, client, auth_headers):
        response = client.post("/api/analysis/explain", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Selection text is required"

    def test_requires_auth(self, client):
        response = client.post("/api/analysis/text", json={})
        assert response.status_code == 401


class TestReportRoutes:
    """Tests for /api/reports"""

    def test_signed_in_report(self, client, auth_headers, container):
        response = client.post(
            "/api/reports",
            json={"kind": "bug", "message": "Highlighting is off by one", "pageUrl": "/view"},
            headers=auth_headers,
        )

        assert response.json() == {"ok": True}
        report = container.report_repository.reports[0]
        assert report.uid == "test-user-123"
        assert report.page_url == "/view"

    def test_invalid_kind(self, client):
        response = client.post("/api/reports", json={"kind": "praise", "message": "long enough"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == 'kind must be "feedback" or "bug"'
