"""
Tests for the report generation API server.

Copyright (c) 2025 MedScribe contributors
License: CC BY 4.0
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from medscribe import server
from medscribe.errors import GenerationError, QuotaExceededError, RateLimitError
from medscribe.pipeline.config import AppConfig, GenerationSettings


@pytest.fixture
def mock_service(sample_report_payload) -> MagicMock:
    """Prescription service returning the sample payload."""
    service = MagicMock()
    service.generate.return_value = dict(sample_report_payload)
    return service


@pytest.fixture
def client(mock_service: MagicMock, monkeypatch):
    """Test client with the service dependency replaced."""
    monkeypatch.setattr(server, "_config", None)
    monkeypatch.setattr(server, "_service", None)
    server.app.dependency_overrides[server.get_service] = lambda: mock_service
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


class TestHealth:
    """Tests for the health endpoint."""

    def test_health_without_key(self, client: TestClient):
        """Test health when gateway credentials are missing."""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["service_ready"] is False

    def test_health_ready(self, client: TestClient):
        """Test health with a configured gateway key."""
        server.configure(AppConfig(generation=GenerationSettings(api_key="test-key")))

        response = client.get("/api/v1/health")

        assert response.json()["service_ready"] is True


class TestLanguages:
    """Tests for the languages endpoint."""

    def test_languages(self, client: TestClient):
        """Test listing languages."""
        response = client.get("/api/v1/languages")

        codes = [lang["code"] for lang in response.json()["languages"]]
        assert codes == ["en", "hi", "te", "ta", "kn", "mr"]
        assert response.json()["languages"][1]["nativeName"] == "हिंदी"


class TestGeneratePrescription:
    """Tests for the generate-prescription endpoint."""

    def test_success(self, client: TestClient, mock_service: MagicMock):
        """Test a successful generation."""
        response = client.post(
            "/api/v1/generate-prescription",
            json={
                "transcript": "Fever for two days.",
                "language": "Hindi",
                "patientDetails": {"name": "Ravi", "gender": "child-male"},
                "vitals": {"pulse": "96"},
            },
        )

        assert response.status_code == 200
        assert response.json()["prescription"]["diagnosis"] == (
            "Acute viral upper respiratory infection"
        )
        request = mock_service.generate.call_args.args[0]
        assert request.language == "Hindi"
        assert request.is_child
        assert request.patient_details["age"] == "N/A"

    def test_empty_transcript(self, client: TestClient, mock_service: MagicMock):
        """Test that a blank transcript is a client error."""
        response = client.post("/api/v1/generate-prescription", json={"transcript": "  "})

        assert response.status_code == 400
        assert response.json() == {"error": "Transcript is required"}
        mock_service.generate.assert_not_called()

    def test_missing_transcript(self, client: TestClient):
        """Test a body without a transcript."""
        response = client.post("/api/v1/generate-prescription", json={})

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "error,status",
        [
            (RateLimitError(), 429),
            (QuotaExceededError(), 402),
            (GenerationError("Gateway error: 503"), 500),
        ],
    )
    def test_error_statuses(self, client: TestClient, mock_service: MagicMock, error, status):
        """Test status code mapping."""
        mock_service.generate.side_effect = error

        response = client.post("/api/v1/generate-prescription", json={"transcript": "Cough."})

        assert response.status_code == status
        assert response.json() == {"error": error.message}

    def test_unexpected_error(self, client: TestClient, mock_service: MagicMock):
        """Test that unexpected failures are masked."""
        mock_service.generate.side_effect = RuntimeError("boom")

        response = client.post("/api/v1/generate-prescription", json={"transcript": "Cough."})

        assert response.status_code == 500
        assert response.json() == {"error": "Unknown error"}
