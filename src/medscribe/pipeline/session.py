"""
Consultation Session

End-to-end orchestration of one consultation: language selection, the
patient form, continuous transcription into the transcript log, report
generation through the prescription backend, and export.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
import logging

from medscribe.accounts import AccountProvider, Role
from medscribe.errors import (
    EmptyTranscriptError,
    GenerationInProgressError,
    InsufficientCreditsError,
    MedScribeError,
    NotAuthenticatedError,
    RecordingActiveError,
)
from medscribe.export import render_html, render_pdf, render_share_text, render_text
from medscribe.pipeline.config import AppConfig
from medscribe.report.assembler import build_report_request
from medscribe.report.client import PrescriptionBackend
from medscribe.report.report_types import (
    GENDER_OPTIONS,
    PatientDetails,
    PatientSnapshot,
    Report,
    Vitals,
)
from medscribe.transcription.languages import display_name, is_supported
from medscribe.transcription.provider import RecognizerFactory, Scheduler
from medscribe.transcription.session_controller import (
    RecognitionError,
    SessionState,
    TranscriptionController,
)
from medscribe.transcription.transcript_types import TranscriptLog

logger = logging.getLogger(__name__)

MSG_GENERATED = "Prescription generated successfully"
MSG_NO_REPORT = "No prescription report to export"


@dataclass(frozen=True)
class Notification:
    """One-shot message for the user."""

    level: str  # success, error
    title: str
    message: str


class ConsultationSession:
    """One doctor-patient consultation."""

    def __init__(
        self,
        recognizer_factory: RecognizerFactory | None,
        prescription_client: PrescriptionBackend,
        accounts: AccountProvider | None = None,
        config: AppConfig | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the session and its transcription controller."""
        self.config = config or AppConfig()
        self.client = prescription_client
        self.accounts = accounts
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.transcript = TranscriptLog()
        self.patient = PatientDetails()
        self.vitals = Vitals()
        self.report: Report | None = None
        self.snapshot: PatientSnapshot | None = None
        self.generating = False

        self._language_code = self.config.transcription.default_language
        self._notifications: list[Notification] = []
        self._last_error: RecognitionError | None = None

        self.controller = TranscriptionController(
            recognizer_factory,
            language_code=self._language_code,
            on_transcription=self.transcript.append,
            on_state_change=self._on_state_change,
            scheduler=scheduler,
            config=self.config.transcription.controller_config(),
            clock=self._clock,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def language_code(self) -> str:
        return self._language_code

    @property
    def listening(self) -> bool:
        return self.controller.listening

    @property
    def interim_text(self) -> str:
        return self.controller.interim_text

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    def drain_notifications(self) -> list[Notification]:
        """Return pending notifications and clear them."""
        drained, self._notifications = self._notifications, []
        return drained

    def _notify(self, level: str, title: str, message: str) -> None:
        self._notifications.append(Notification(level, title, message))

    def _on_state_change(self, state: SessionState) -> None:
        error = state.last_error
        if error is not None and error != self._last_error:
            self._notify("error", "Error", error.message)
        self._last_error = error

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------

    def _ensure_not_listening(self) -> None:
        if self.controller.listening:
            raise RecordingActiveError()

    def set_language(self, code: str) -> None:
        """Select the consultation language."""
        self._ensure_not_listening()
        if not is_supported(code):
            raise ValueError(f"Unsupported language: {code}")
        self._language_code = code
        self.controller.set_language(code)

    def update_patient(self, **changes: str) -> PatientDetails:
        """Edit patient details."""
        self._ensure_not_listening()
        _check_fields(PatientDetails, changes)
        gender = changes.get("gender")
        if gender and gender not in GENDER_OPTIONS:
            raise ValueError(f"Unknown gender option: {gender}")
        self.patient = replace(self.patient, **changes)
        return self.patient

    def update_vitals(self, **changes: str) -> Vitals:
        """Edit vital signs."""
        self._ensure_not_listening()
        _check_fields(Vitals, changes)
        self.vitals = replace(self.vitals, **changes)
        return self.vitals

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self) -> None:
        self.controller.start()

    def stop_recording(self) -> None:
        self.controller.stop()

    def clear_transcript(self) -> None:
        """Drop the transcript and the report built from it."""
        self.transcript.clear()
        self.report = None
        self.snapshot = None

    def reset(self) -> None:
        """Start over: stop recording and clear every input and output."""
        self.controller.stop()
        self.clear_transcript()
        self.patient = PatientDetails()
        self.vitals = Vitals()
        self._language_code = self.config.transcription.default_language
        self.controller.set_language(self._language_code)
        logger.info("[Session] Reset")

    def close(self) -> None:
        self.controller.close()

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------

    def _check_account(self) -> None:
        if self.accounts is None:
            return
        if self.accounts.get_session() is None:
            raise NotAuthenticatedError()
        if self.accounts.get_role() == Role.ADMIN:
            return
        credits = self.accounts.get_credits()
        if credits is None or credits.remaining <= 0:
            raise InsufficientCreditsError()

    def _consume_credit(self) -> None:
        if self.accounts is None or self.accounts.get_role() == Role.ADMIN:
            return
        self.accounts.decrement_credits()

    def generate_report(self) -> Report:
        """Generate a report from the transcript and the current form.

        On failure the transcript, the form and any previous report are
        left as they were.
        """
        if self.generating:
            raise GenerationInProgressError()

        try:
            entries = self.transcript.all()
            if not entries:
                raise EmptyTranscriptError()
            self._check_account()
        except MedScribeError as e:
            self._notify("error", "Error", e.message)
            raise

        self.generating = True
        try:
            snapshot = PatientSnapshot.capture(self.patient, self.vitals, taken_at=self._clock())
            request = build_report_request(entries, snapshot, display_name(self._language_code))
            logger.info("[Session] Generating report from %d entries", len(entries))
            payload = self.client.generate(request)
            report = Report.from_dict(
                payload, generated_at=snapshot.taken_at, transcript=request.transcript
            )
            report = report.with_patient_category(snapshot.is_child, snapshot.is_female)
        except MedScribeError as e:
            logger.error("[Session] Report generation failed: %s", e.message)
            self._notify("error", "Error", e.message)
            raise
        finally:
            self.generating = False

        self._consume_credit()
        self.report = report
        self.snapshot = snapshot
        self._notify("success", "Success", MSG_GENERATED)
        return report

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_report(self, fmt: str = "text", output: str | Path | None = None) -> str | bytes:
        """Render the current report as ``text``, ``share``, ``html`` or ``pdf``."""
        if self.report is None or self.snapshot is None:
            raise MedScribeError(MSG_NO_REPORT)

        branding = self.config.export.branding()
        if fmt == "pdf":
            return render_pdf(
                self.report, self.snapshot, output, branding, self.config.export.page_size
            )

        renderers = {"text": render_text, "share": render_share_text, "html": render_html}
        if fmt not in renderers:
            raise ValueError(f"Unknown export format: {fmt}")
        rendered = renderers[fmt](self.report, self.snapshot, branding)
        if output is not None:
            Path(output).write_text(rendered, encoding="utf-8")
        return rendered


def _check_fields(cls: Any, changes: dict[str, Any]) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} field(s): {', '.join(unknown)}")
