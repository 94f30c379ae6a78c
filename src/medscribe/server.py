"""
MedScribe FastAPI Server

Report generation backend. Holds the gateway credentials and the fixed system
prompt so browsers never see either.

Usage:
    medscribe serve --port 8000
    uvicorn medscribe.server:app --reload --port 8000

Endpoints:
    POST /api/v1/generate-prescription - Transcript and patient context to report
    GET  /api/v1/languages             - Supported consultation languages
    GET  /api/v1/health                - Health check
"""

from typing import Optional
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from medscribe import __version__
from medscribe.errors import (
    ConfigError,
    EmptyTranscriptError,
    GenerationError,
    MedScribeError,
    QuotaExceededError,
    RateLimitError,
)
from medscribe.pipeline.config import AppConfig
from medscribe.report.assembler import ReportRequest
from medscribe.report.client import ChatCompletionClient, PrescriptionService
from medscribe.transcription.languages import list_languages

logger = logging.getLogger(__name__)

# =============================================================================
# App Configuration
# =============================================================================

app = FastAPI(
    title="MedScribe API",
    description="Consultation transcript to structured prescription report",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# =============================================================================
# Service Initialization
# =============================================================================

_config: AppConfig | None = None
_service: PrescriptionService | None = None


def configure(config: AppConfig) -> None:
    """Use ``config`` for the service; drops any cached instance."""
    global _config, _service
    _config = config
    _service = None


def get_service() -> PrescriptionService:
    """Get or create the prescription service."""
    global _config, _service
    if _service is None:
        if _config is None:
            _config = AppConfig.from_env()
        client = ChatCompletionClient(_config.generation.chat_config())
        _service = PrescriptionService(client)
        logger.info("[Server] Prescription service ready (model=%s)", _config.generation.model_id)
    return _service


# =============================================================================
# Request/Response Models
# =============================================================================

class PrescriptionRequest(BaseModel):
    """Request body for report generation (camelCase wire names)."""
    transcript: Optional[str] = None
    language: Optional[str] = "English"
    patientDetails: Optional[dict] = None
    vitals: Optional[dict] = None
    isChild: Optional[bool] = None
    isFemale: Optional[bool] = None


class PrescriptionResponse(BaseModel):
    """Successful report generation."""
    prescription: dict


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    service_ready: bool


# =============================================================================
# Error Mapping
# =============================================================================

def status_for(error: MedScribeError) -> int:
    """HTTP status for an application error."""
    if isinstance(error, EmptyTranscriptError):
        return 400
    if isinstance(error, RateLimitError):
        return 429
    if isinstance(error, QuotaExceededError):
        return 402
    return 500


@app.exception_handler(MedScribeError)
async def medscribe_error_handler(request: Request, exc: MedScribeError):
    status = status_for(exc)
    if status == 500:
        logger.error("[Server] %s: %s", type(exc).__name__, exc.message)
    return JSONResponse(status_code=status, content={"error": exc.message})


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    try:
        service_ready = get_service() is not None
    except ConfigError:
        service_ready = False

    return HealthResponse(status="ok", version=__version__, service_ready=service_ready)


@app.get("/api/v1/languages")
async def languages():
    """List supported consultation languages."""
    return {
        "languages": [
            {"code": lang.code, "name": lang.name, "nativeName": lang.native_name}
            for lang in list_languages()
        ]
    }


@app.post("/api/v1/generate-prescription", response_model=PrescriptionResponse)
def generate_prescription(
    body: PrescriptionRequest,
    service: PrescriptionService = Depends(get_service),
):
    """
    Generate a structured prescription report from a consultation transcript.

    - **transcript**: Newline-joined consultation transcript (required)
    - **language**: Display name of the consultation language
    - **patientDetails** / **vitals**: Form values; blanks get placeholders
    - **isChild** / **isFemale**: Patient category for history gating

    Errors: 400 empty transcript, 429 rate limited, 402 quota exhausted,
    500 otherwise. Error bodies are ``{"error": message}``.
    """
    request = ReportRequest.from_payload(body.model_dump())
    if not request.transcript:
        raise EmptyTranscriptError("Transcript is required")

    logger.info(
        "[Server] Generating report (%d chars, language=%s)",
        len(request.transcript),
        request.language,
    )
    try:
        prescription = service.generate(request)
    except MedScribeError:
        raise
    except Exception as e:
        logger.exception("[Server] Unexpected failure")
        raise GenerationError("Unknown error") from e

    return PrescriptionResponse(prescription=prescription)
