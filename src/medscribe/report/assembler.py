"""
Report Request Assembler

Builds the outbound report request from the transcript log and a patient
snapshot, and turns the model's reply into a typed Report. Parsing never
raises: a reply that cannot be read yields a deterministic fallback report.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Sequence
import json
import logging
import re

from medscribe.errors import EmptyTranscriptError
from medscribe.report.prompts import USER_PROMPT_NAME, load_prompt, system_prompt
from medscribe.report.report_types import (
    NOT_AVAILABLE,
    FallbackReport,
    ParsedReport,
    PatientDetails,
    PatientFindings,
    PatientSnapshot,
    Report,
    ReportParseResult,
    Vitals,
    is_child_gender,
    is_female_gender,
)
from medscribe.transcription.transcript_types import TranscriptEntry

logger = logging.getLogger(__name__)

_FENCE_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCE_ANY = re.compile(r"```\s*([\s\S]*?)\s*```")

FALLBACK_DIAGNOSIS = "Consultation analysis incomplete"
FALLBACK_CONDITION = "Unable to analyze the consultation. Please review the original transcript."
FALLBACK_HISTORY = "Not available"
FALLBACK_ADVICE = "Please consult with a healthcare professional for accurate diagnosis"
FALLBACK_FOLLOW_UP = "Schedule a follow-up appointment"


@dataclass(frozen=True)
class ReportRequest:
    """One report-generation request."""

    transcript: str
    language: str
    patient_details: dict[str, str] = field(default_factory=dict)
    vitals: dict[str, str] = field(default_factory=dict)
    is_child: bool = False
    is_female: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Wire body for the generate-prescription endpoint."""
        return {
            "transcript": self.transcript,
            "language": self.language,
            "patientDetails": dict(self.patient_details),
            "vitals": dict(self.vitals),
            "isChild": self.is_child,
            "isFemale": self.is_female,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ReportRequest":
        """Create from a wire body; missing patient fields get placeholders."""
        details = PatientDetails.from_dict(data.get("patientDetails") or {})
        vitals = Vitals.from_dict(data.get("vitals") or {})
        is_child = data.get("isChild")
        is_female = data.get("isFemale")
        return cls(
            transcript=(data.get("transcript") or "").strip(),
            language=data.get("language") or "English",
            patient_details=details.to_payload(),
            vitals=vitals.to_payload(),
            is_child=bool(is_child) if is_child is not None else is_child_gender(details.gender),
            is_female=bool(is_female) if is_female is not None else is_female_gender(details.gender),
        )


def build_report_request(
    entries: Sequence[TranscriptEntry], snapshot: PatientSnapshot, language_name: str
) -> ReportRequest:
    """Assemble a request from the transcript log snapshot.

    Raises EmptyTranscriptError before anything is sent when there is no
    transcript.
    """
    if not entries:
        raise EmptyTranscriptError()

    transcript = "\n".join(entry.text for entry in entries)
    return ReportRequest(
        transcript=transcript,
        language=language_name,
        patient_details=snapshot.details.to_payload(),
        vitals=snapshot.vitals.to_payload(),
        is_child=snapshot.is_child,
        is_female=snapshot.is_female,
    )


def _category(request: ReportRequest) -> str:
    if request.is_child:
        return "Child (female)" if request.is_female else "Child"
    return "Adult female" if request.is_female else "Adult"


def build_user_message(request: ReportRequest) -> str:
    """Fill the user prompt template with the request context."""
    values = {key: NOT_AVAILABLE for key in ("name", "age", "gender", "address", "occupation")}
    values.update(request.patient_details)
    values.update(Vitals().to_payload())
    values.update(request.vitals)
    values.update(
        language=request.language,
        category=_category(request),
        transcript=request.transcript,
    )
    return load_prompt(USER_PROMPT_NAME).format(**values)


def build_messages(request: ReportRequest) -> list[dict[str, str]]:
    """Chat messages for an OpenAI-compatible completion call."""
    return [
        {"role": "system", "content": system_prompt()},
        {"role": "user", "content": build_user_message(request)},
    ]


def strip_code_fence(text: str) -> str:
    """Return the body of a fenced code block if present, else the text."""
    match = _FENCE_JSON.search(text) or _FENCE_ANY.search(text)
    body = match.group(1) if match else text
    return body.strip()


def _decode_json(content: str) -> Any:
    body = strip_code_fence(content)
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        # Prose around the object: take the outermost braces
        start = body.find("{")
        end = body.rfind("}") + 1
        if start >= 0 and end > start:
            return json.loads(body[start:end])
        raise


def _shape_problem(data: Any) -> str | None:
    if not isinstance(data, dict):
        return f"expected a JSON object, got {type(data).__name__}"
    patient_info = data.get("patientInfo")
    if patient_info is not None and not isinstance(patient_info, dict):
        return "patientInfo is not an object"
    medications = data.get("medications")
    if medications is not None and not isinstance(medications, list):
        return "medications is not a list"
    return None


def _new_report_id(generated_at: datetime) -> str:
    return f"rx-{int(generated_at.timestamp() * 1000)}"


def fallback_report(
    is_child: bool,
    is_female: bool,
    transcript: str = "",
    generated_at: datetime | None = None,
    report_id: str | None = None,
) -> Report:
    """Deterministic report used when the model reply is unusable."""
    generated_at = generated_at or datetime.now(timezone.utc)
    report = Report(
        id=report_id or _new_report_id(generated_at),
        generated_at=generated_at,
        patient_info=PatientFindings(
            symptoms=(),
            medical_history=FALLBACK_HISTORY,
            current_condition=FALLBACK_CONDITION,
        ),
        diagnosis=FALLBACK_DIAGNOSIS,
        advice=(FALLBACK_ADVICE,),
        follow_up=FALLBACK_FOLLOW_UP,
        consultation_transcript=transcript,
    )
    return report.with_patient_category(is_child, is_female)


def parse_report(
    content: str | dict[str, Any] | None,
    is_child: bool,
    is_female: bool,
    transcript: str = "",
    clock: Callable[[], datetime] | None = None,
    report_id: str | None = None,
) -> ReportParseResult:
    """Parse a model reply into a report.

    ``content`` is the raw completion text (optionally fenced) or an already
    decoded object. Never raises.
    """
    generated_at = (clock or (lambda: datetime.now(timezone.utc)))()

    def fallback(reason: str) -> FallbackReport:
        logger.warning("[Report] Using fallback report: %s", reason)
        return FallbackReport(
            report=fallback_report(is_child, is_female, transcript, generated_at, report_id),
            reason=reason,
        )

    if content is None or (isinstance(content, str) and not content.strip()):
        return fallback("empty reply")

    if isinstance(content, str):
        try:
            data = _decode_json(content)
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug("[Report] Raw reply preview: %s", content[:500])
            return fallback(f"invalid JSON: {e}")
    else:
        data = content

    problem = _shape_problem(data)
    if problem:
        return fallback(problem)

    try:
        report = Report.from_dict(
            data,
            report_id=report_id or _new_report_id(generated_at),
            generated_at=generated_at,
            transcript=transcript,
        )
    except (TypeError, ValueError, AttributeError) as e:
        return fallback(f"unreadable report fields: {e}")

    logger.info(
        "[Report] Parsed report: %d symptoms, %d medications",
        len(report.patient_info.symptoms),
        len(report.medications),
    )
    return ParsedReport(report=report.with_patient_category(is_child, is_female))
