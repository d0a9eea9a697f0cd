"""Tests for the ingestion and validation endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.errors import ConfigurationError, InputValidationError
from app.main import app
from app.models.ingestion import IngestionResponse
from app.models.validation import ValidationResponse, ValidationSummary


@pytest.fixture
def client():
    return TestClient(app)


def _service(method: str, **kwargs) -> MagicMock:
    service = MagicMock()
    setattr(service, method, AsyncMock(**kwargs))
    return service


class TestHealthEndpoint:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestIngestionEndpoint:
    @patch("app.routers.ingestion.get_url_processor", new_callable=AsyncMock)
    def test_process_success(self, mock_get, client):
        processor = _service(
            "process",
            return_value=IngestionResponse(
                success=True, session_key="session-0123456789ab", message="Retrieved from cache"
            ),
        )
        mock_get.return_value = processor

        response = client.post(
            "/ingestion/process",
            json={
                "url": "https://resend.com/docs/send-with-nodejs",
                "sessionId": "session-0123456789ab",
                "analysisContext": {"enabled": True, "maxContextPages": 3},
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "sessionKey": "session-0123456789ab",
            "message": "Retrieved from cache",
        }
        request = processor.process.call_args.args[0]
        assert request.session_id == "session-0123456789ab"
        assert request.analysis_context.max_context_pages == 3

    @patch("app.routers.ingestion.get_url_processor", new_callable=AsyncMock)
    def test_missing_url_is_400(self, mock_get, client):
        mock_get.return_value = _service(
            "process", side_effect=InputValidationError("Missing required field: url")
        )

        response = client.post("/ingestion/process", json={})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "sessionKey": "",
            "message": "Missing required field: url",
        }

    @patch("app.routers.ingestion.get_url_processor", new_callable=AsyncMock)
    def test_blank_url_is_400_before_configuration(self, mock_get, client):
        mock_get.side_effect = ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

        response = client.post("/ingestion/process", json={"url": "  "})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required field: url"
        mock_get.assert_not_awaited()

    @patch("app.routers.ingestion.get_url_processor", new_callable=AsyncMock)
    def test_out_of_range_context_pages_is_400(self, mock_get, client):
        response = client.post(
            "/ingestion/process",
            json={
                "url": "https://resend.com/docs",
                "analysisContext": {"enabled": True, "maxContextPages": 10},
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"success", "sessionKey", "message"}
        assert body["success"] is False
        assert body["sessionKey"] == ""
        assert "analysisContext.maxContextPages" in body["message"]
        mock_get.assert_not_awaited()

    @patch("app.routers.ingestion.get_url_processor", new_callable=AsyncMock)
    def test_missing_configuration_is_500(self, mock_get, client):
        mock_get.side_effect = ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

        response = client.post("/ingestion/process", json={"url": "https://resend.com/docs"})

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert "SUPABASE_URL" in response.json()["message"]


class TestValidationEndpoint:
    @patch("app.routers.validation.get_issue_validator", new_callable=AsyncMock)
    def test_validate_success(self, mock_get, client):
        validator = _service(
            "validate",
            return_value=ValidationResponse(
                success=True,
                message="Validated 0 issues",
                summary=ValidationSummary(),
            ),
        )
        mock_get.return_value = validator

        response = client.post(
            "/validation/issues",
            json={
                "issues": [
                    {
                        "id": "issue-1",
                        "title": "Emails land in spam",
                        "category": "email-delivery",
                        "relatedPages": ["https://resend.com/docs/dashboard/domains"],
                    }
                ],
                "domain": "resend.com",
                "sessionKey": "session-abc",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["summary"]["totalIssues"] == 0
        request = validator.validate.call_args.args[0]
        assert request.session_key == "session-abc"
        assert request.issues[0].related_pages == ["https://resend.com/docs/dashboard/domains"]

    @patch("app.routers.validation.get_issue_validator", new_callable=AsyncMock)
    def test_missing_parameters_is_400(self, mock_get, client):
        mock_get.return_value = _service(
            "validate",
            side_effect=InputValidationError(
                "Missing required parameters: issues, domain, and sessionKey"
            ),
        )

        response = client.post("/validation/issues", json={"domain": "resend.com"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Missing required parameters: issues, domain, and sessionKey"
        assert body["validationResults"] == []

    @patch("app.routers.validation.get_issue_validator", new_callable=AsyncMock)
    def test_missing_configuration_is_500(self, mock_get, client):
        mock_get.side_effect = ConfigurationError("ANTHROPIC_API_KEY not configured")

        response = client.post(
            "/validation/issues",
            json={"issues": [], "domain": "resend.com", "sessionKey": "s"},
        )

        assert response.status_code == 500
        assert response.json()["message"] == "ANTHROPIC_API_KEY not configured"

    @patch("app.routers.validation.get_issue_validator", new_callable=AsyncMock)
    def test_missing_session_key_is_400_before_configuration(self, mock_get, client):
        mock_get.side_effect = ConfigurationError("ANTHROPIC_API_KEY not configured")

        response = client.post(
            "/validation/issues", json={"issues": [], "domain": "resend.com"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Missing required parameters: issues, domain, and sessionKey"
        )
        mock_get.assert_not_awaited()

    @patch("app.routers.validation.get_issue_validator", new_callable=AsyncMock)
    def test_malformed_issue_is_400_with_empty_summary(self, mock_get, client):
        response = client.post(
            "/validation/issues",
            json={"issues": [{"id": "1"}], "domain": "x.com", "sessionKey": "s"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "issues.0.title: Field required" in body["message"]
        assert body["validationResults"] == []
        assert body["summary"] == {
            "totalIssues": 0,
            "resolved": 0,
            "confirmed": 0,
            "potentialGaps": 0,
            "criticalGaps": 0,
        }
        assert "detail" not in body
        mock_get.assert_not_awaited()


class TestMalformedBodyElsewhere:
    def test_json_decode_error_is_400(self, client):
        response = client.post(
            "/ingestion/process",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
