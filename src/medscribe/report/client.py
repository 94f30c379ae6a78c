"""
Report Generation Clients

HTTP clients for the two hops of report generation:

- ChatCompletionClient: calls an OpenAI-compatible chat completions gateway
  (used by the backend).
- PrescriptionClient: calls the backend's generate-prescription endpoint
  (used by the consultation session).

PrescriptionService joins the assembler and the gateway client in-process,
which is what the backend endpoint runs and what the CLI uses when no
backend URL is configured.
"""

from dataclasses import dataclass
from typing import Any, Protocol
import logging
import os

import requests

from medscribe.errors import (
    ConfigError,
    EmptyTranscriptError,
    GenerationError,
    QuotaExceededError,
    RateLimitError,
)
from medscribe.report.assembler import ReportRequest, build_messages, parse_report
from medscribe.report.report_types import ReportParseResult

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL_ID = "google/gemini-3-flash-preview"


def _error_message(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("message")
        return error
    return None


def raise_for_generation_status(response: requests.Response, service: str) -> None:
    """Map a failed response to the generation error taxonomy."""
    status = response.status_code
    if status == 200:
        return

    logger.error("[%s] Request failed: %s - %s", service, status, response.text[:500])
    if status == 429:
        raise RateLimitError(status_code=status)
    if status == 402:
        raise QuotaExceededError(status_code=status)
    raise GenerationError(_error_message(response), status_code=status)


@dataclass
class ChatClientConfig:
    """Configuration for the chat completions gateway."""

    api_key: str | None = None
    gateway_url: str = DEFAULT_GATEWAY_URL
    model_id: str = DEFAULT_MODEL_ID
    temperature: float = 0.3
    timeout_seconds: float = 120.0

    @classmethod
    def from_env(cls) -> "ChatClientConfig":
        """Create configuration from environment variables."""
        return cls(
            api_key=os.environ.get("MEDSCRIBE_API_KEY"),
            gateway_url=os.environ.get("MEDSCRIBE_GATEWAY_URL", DEFAULT_GATEWAY_URL),
            model_id=os.environ.get("MEDSCRIBE_MODEL_ID", DEFAULT_MODEL_ID),
            timeout_seconds=float(os.environ.get("MEDSCRIBE_TIMEOUT", "120.0")),
        )


class ChatCompletionClient:
    """Client for an OpenAI-compatible chat completions endpoint."""

    def __init__(self, config: ChatClientConfig | None = None):
        """Initialize the gateway client."""
        self.config = config or ChatClientConfig()
        self.api_key = self.config.api_key or os.environ.get("MEDSCRIBE_API_KEY")

        if not self.api_key:
            raise ConfigError(
                "AI service not configured. "
                "Set MEDSCRIBE_API_KEY environment variable or pass api_key in config."
            )

    @property
    def _headers(self) -> dict[str, str]:
        """Request headers."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def complete(self, messages: list[dict[str, str]]) -> str:
        """Send a chat completion and return the reply text."""
        payload = {
            "model": self.config.model_id,
            "messages": messages,
            "temperature": self.config.temperature,
        }

        try:
            response = requests.post(
                self.config.gateway_url,
                headers=self._headers,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error("[Gateway] Transport error: %s", e)
            raise GenerationError() from e

        raise_for_generation_status(response, "Gateway")

        try:
            result = response.json()
        except ValueError as e:
            raise GenerationError("Invalid AI response") from e

        choices = result.get("choices", []) if isinstance(result, dict) else []
        content = choices[0].get("message", {}).get("content", "") if choices else ""
        if not content:
            logger.error("[Gateway] No content in AI response")
            raise GenerationError("Invalid AI response")

        logger.debug("[Gateway] Reply length: %d", len(content))
        return content


class PrescriptionBackend(Protocol):
    """Anything that turns a report request into a prescription payload."""

    def generate(self, request: ReportRequest) -> dict[str, Any]:
        ...


class PrescriptionService:
    """In-process report generation: prompt, gateway call, parse."""

    def __init__(self, chat_client: ChatCompletionClient):
        self.chat_client = chat_client

    def generate_report(self, request: ReportRequest) -> ReportParseResult:
        """Generate and parse a report. Malformed replies yield a fallback."""
        if not request.transcript.strip():
            raise EmptyTranscriptError("Transcript is required")

        content = self.chat_client.complete(build_messages(request))
        return parse_report(
            content,
            is_child=request.is_child,
            is_female=request.is_female,
            transcript=request.transcript,
        )

    def generate(self, request: ReportRequest) -> dict[str, Any]:
        """Generate a report and return its wire dictionary."""
        return self.generate_report(request).report.to_dict()


@dataclass
class PrescriptionClientConfig:
    """Configuration for the generate-prescription backend client."""

    backend_url: str = "http://localhost:8000/api/v1/generate-prescription"
    auth_token: str | None = None
    timeout_seconds: float = 180.0

    @classmethod
    def from_env(cls) -> "PrescriptionClientConfig":
        """Create configuration from environment variables."""
        return cls(
            backend_url=os.environ.get(
                "MEDSCRIBE_BACKEND_URL", "http://localhost:8000/api/v1/generate-prescription"
            ),
            auth_token=os.environ.get("MEDSCRIBE_AUTH_TOKEN"),
        )


class PrescriptionClient:
    """HTTP client for the generate-prescription endpoint."""

    def __init__(self, config: PrescriptionClientConfig | None = None):
        """Initialize backend client."""
        self.config = config or PrescriptionClientConfig()

    @property
    def _headers(self) -> dict[str, str]:
        """Request headers."""
        headers = {"Content-Type": "application/json"}
        if self.config.auth_token:
            headers["Authorization"] = f"Bearer {self.config.auth_token}"
        return headers

    def health_check(self) -> bool:
        """Check if the backend is reachable."""
        base = self.config.backend_url.rsplit("/", 1)[0]
        try:
            response = requests.get(f"{base}/health", timeout=10.0)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def generate(self, request: ReportRequest) -> dict[str, Any]:
        """Request a report; returns the ``prescription`` payload."""
        logger.info(
            "[Report] Requesting report (%d chars, language=%s)",
            len(request.transcript),
            request.language,
        )
        try:
            response = requests.post(
                self.config.backend_url,
                headers=self._headers,
                json=request.to_payload(),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error("[Report] Transport error: %s", e)
            raise GenerationError() from e

        raise_for_generation_status(response, "Report")

        try:
            body = response.json()
        except ValueError as e:
            raise GenerationError("Invalid response from report service") from e

        prescription = body.get("prescription") if isinstance(body, dict) else None
        if not isinstance(prescription, dict):
            raise GenerationError("Invalid response from report service")
        return prescription
