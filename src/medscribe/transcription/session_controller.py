"""
Transcription Session Controller

Owns one continuous speech-to-text session on top of an unreliable,
auto-ending recognizer. Provider callbacks are inputs to an explicit state
machine:

    IDLE --start()--> STARTING --on_start--> LISTENING
    LISTENING --result--> LISTENING                (commit finals, update interim)
    LISTENING --no-speech / on_end--> RESTART_PENDING --timer--> STARTING
    LISTENING --not-allowed--> STOPPED             (error surfaced)
    LISTENING --on_end after stop()--> STOPPED
    any --stop() / close()--> STOPPED
    UNSUPPORTED                                     (terminal, decided once)

The controller never raises across its boundary; failures land in
``last_error``. Committed entries go to ``on_transcription`` exactly once.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable
import itertools
import logging

from medscribe.transcription.languages import DEFAULT_LANGUAGE_CODE, resolve_speech_locale
from medscribe.transcription.provider import (
    RecognizerFactory,
    Scheduler,
    SpeechRecognizer,
    TimerHandle,
    AsyncioScheduler,
    detect_capability,
)
from medscribe.transcription.transcript_types import RecognitionResultBatch, TranscriptEntry

logger = logging.getLogger(__name__)

MSG_UNSUPPORTED = "Speech recognition is not supported in this environment"
MSG_PERMISSION_DENIED = "Microphone access denied. Please allow microphone access."
MSG_START_FAILED = "Failed to start speech recognition"


class SessionStatus(str, Enum):
    """Controller lifecycle states."""

    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    RESTART_PENDING = "restart_pending"
    STOPPED = "stopped"
    UNSUPPORTED = "unsupported"


class ErrorKind(str, Enum):
    """User-facing recognition error categories."""

    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    START_FAILED = "start_failed"
    PROVIDER = "provider"


@dataclass(frozen=True)
class RecognitionError:
    """Last error surfaced by the controller."""

    kind: ErrorKind
    message: str
    code: str | None = None


@dataclass(frozen=True)
class SessionState:
    """Observable snapshot of the controller."""

    status: SessionStatus = SessionStatus.IDLE
    listening: bool = False
    supported: bool = True
    last_error: RecognitionError | None = None
    interim_text: str = ""
    manual_stop_requested: bool = False


@dataclass
class ControllerConfig:
    """Configuration for the transcription controller."""

    # Debounce before a recoverable restart
    restart_delay_seconds: float = 0.1
    # Provider error codes that trigger a silent restart
    recoverable_error_codes: tuple[str, ...] = ("no-speech",)
    permission_error_codes: tuple[str, ...] = ("not-allowed", "service-not-allowed")
    ignored_error_codes: tuple[str, ...] = ("aborted",)
    continuous: bool = True
    interim_results: bool = True
    max_alternatives: int = 1


TranscriptionCallback = Callable[[TranscriptEntry], None]
StateCallback = Callable[[SessionState], None]


@dataclass
class _PendingRestart:
    timer: TimerHandle
    recreate: bool = False


class TranscriptionController:
    """Continuous transcription session with debounced auto-restart."""

    def __init__(
        self,
        recognizer_factory: RecognizerFactory | None,
        language_code: str = DEFAULT_LANGUAGE_CODE,
        on_transcription: TranscriptionCallback | None = None,
        on_state_change: StateCallback | None = None,
        scheduler: Scheduler | None = None,
        config: ControllerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the controller and probe for recognition capability."""
        self.config = config or ControllerConfig()
        self.on_transcription = on_transcription
        self.on_state_change = on_state_change

        self._factory = recognizer_factory
        self._scheduler = scheduler or AsyncioScheduler()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._language_code = language_code
        self._entry_seq = itertools.count(1)

        self._handle: SpeechRecognizer | None = None
        self._handle_language = language_code
        self._pending: _PendingRestart | None = None

        supported = detect_capability(recognizer_factory)
        self._state = SessionState(
            status=SessionStatus.IDLE if supported else SessionStatus.UNSUPPORTED,
            supported=supported,
        )

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def listening(self) -> bool:
        return self._state.listening

    @property
    def supported(self) -> bool:
        return self._state.supported

    @property
    def last_error(self) -> RecognitionError | None:
        return self._state.last_error

    @property
    def interim_text(self) -> str:
        return self._state.interim_text

    @property
    def has_pending_restart(self) -> bool:
        return self._pending is not None

    @property
    def language_code(self) -> str:
        return self._language_code

    def set_language(self, code: str) -> None:
        """Select the language for the next session (a running one keeps its locale)."""
        self._language_code = code

    def _update(self, **changes) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        if self.on_state_change:
            self.on_state_change(new_state)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Open a fresh recognition session, replacing any previous handle."""
        if not self._state.supported:
            self._update(last_error=RecognitionError(ErrorKind.UNSUPPORTED, MSG_UNSUPPORTED))
            return

        self._cancel_restart()
        self._open_session()

    def stop(self) -> None:
        """Stop recording. No restart can follow this call."""
        # The flag goes first so an on_end fired synchronously by
        # handle.stop() takes the stopped path.
        self._update(manual_stop_requested=True)
        self._cancel_restart()

        handle = self._handle
        if handle is not None:
            self._stop_quietly(handle)
            self._detach(handle)

        self._update(
            status=SessionStatus.STOPPED if self._state.supported else SessionStatus.UNSUPPORTED,
            listening=False,
            interim_text="",
        )

    def close(self) -> None:
        """Tear down when the consumer goes away."""
        self.stop()

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    def _open_session(self) -> None:
        previous = self._handle
        if previous is not None:
            self._detach(previous)
            self._stop_quietly(previous)

        self._update(status=SessionStatus.STARTING, interim_text="")
        handle = None
        try:
            handle = self._factory()
            handle.continuous = self.config.continuous
            handle.interim_results = self.config.interim_results
            handle.lang = resolve_speech_locale(self._language_code)
            handle.max_alternatives = self.config.max_alternatives
            self._attach(handle)
            self._handle_language = self._language_code

            logger.debug("[Speech] Starting recognizer (lang=%s)", handle.lang)
            handle.start()
        except Exception as e:
            logger.error("[Speech] Failed to start recognition: %s", e)
            if handle is not None:
                self._detach(handle)
            self._cancel_restart()
            self._update(
                status=SessionStatus.STOPPED,
                listening=False,
                interim_text="",
                last_error=RecognitionError(ErrorKind.START_FAILED, MSG_START_FAILED),
            )

    def _attach(self, handle: SpeechRecognizer) -> None:
        self._handle = handle
        handle.on_start = lambda: self._handle_start(handle)
        handle.on_end = lambda: self._handle_end(handle)
        handle.on_error = lambda code, message=None: self._handle_error(handle, code, message)
        handle.on_result = lambda batch: self._handle_result(handle, batch)

    def _detach(self, handle: SpeechRecognizer) -> None:
        if self._handle is handle:
            self._handle = None

    @staticmethod
    def _stop_quietly(handle: SpeechRecognizer) -> None:
        try:
            handle.stop()
        except Exception as e:
            # Stopping a dead handle is not a failure
            logger.debug("[Speech] Ignoring error while stopping recognizer: %s", e)

    # ------------------------------------------------------------------
    # Restart timer
    # ------------------------------------------------------------------

    def _should_auto_restart(self) -> bool:
        return self._state.listening and not self._state.manual_stop_requested

    def _schedule_restart(self, recreate: bool) -> None:
        if self._pending is not None:
            self._pending.recreate = self._pending.recreate or recreate
            return
        timer = self._scheduler.call_later(
            self.config.restart_delay_seconds, self._on_restart_timer
        )
        self._pending = _PendingRestart(timer=timer, recreate=recreate)
        self._update(status=SessionStatus.RESTART_PENDING)

    def _cancel_restart(self) -> None:
        if self._pending is not None:
            self._pending.timer.cancel()
            self._pending = None

    def _on_restart_timer(self) -> None:
        pending = self._pending
        self._pending = None
        if pending is None or not self._should_auto_restart():
            return

        handle = self._handle
        if pending.recreate or handle is None:
            logger.debug("[Speech] Recreating recognizer after recoverable condition")
            self._open_session()
            return

        logger.debug("[Speech] Restarting recognizer after spontaneous end")
        self._update(status=SessionStatus.STARTING)
        try:
            handle.start()
        except Exception as e:
            logger.debug("[Speech] Could not restart recognizer (%s); recreating", e)
            self._open_session()

    # ------------------------------------------------------------------
    # Provider events
    # ------------------------------------------------------------------

    def _handle_start(self, handle: SpeechRecognizer) -> None:
        if handle is not self._handle:
            return
        logger.info("[Speech] Recognition started")
        self._update(
            status=SessionStatus.LISTENING,
            listening=True,
            last_error=None,
            manual_stop_requested=False,
        )

    def _handle_result(self, handle: SpeechRecognizer, batch: RecognitionResultBatch) -> None:
        if handle is not self._handle:
            return

        interim_parts: list[str] = []
        committed: list[TranscriptEntry] = []
        for result in batch.changed():
            if result.is_final:
                text = result.transcript.strip()
                if text:
                    committed.append(self._make_entry(text))
            else:
                interim_parts.append(result.transcript)

        self._update(interim_text="".join(interim_parts))

        for entry in committed:
            logger.debug("[Speech] Committed entry %s (%d chars)", entry.id, len(entry.text))
            if self.on_transcription:
                self.on_transcription(entry)

    def _make_entry(self, text: str) -> TranscriptEntry:
        timestamp = self._clock()
        seq = next(self._entry_seq)
        return TranscriptEntry(
            id=f"trans-{int(timestamp.timestamp() * 1000)}-{seq}",
            text=text,
            timestamp=timestamp,
            language_code=self._handle_language,
        )

    def _handle_error(self, handle: SpeechRecognizer, code: str, message: str | None) -> None:
        if handle is not self._handle:
            return

        if code in self.config.ignored_error_codes:
            logger.debug("[Speech] Ignoring %s", code)
            return

        if code in self.config.permission_error_codes:
            logger.warning("[Speech] Microphone permission denied (%s)", code)
            self._cancel_restart()
            self._update(
                status=SessionStatus.STOPPED,
                listening=False,
                interim_text="",
                last_error=RecognitionError(ErrorKind.PERMISSION_DENIED, MSG_PERMISSION_DENIED, code),
            )
            return

        if code in self.config.recoverable_error_codes:
            if self._should_auto_restart():
                logger.debug("[Speech] Recoverable %s, scheduling restart", code)
                self._schedule_restart(recreate=True)
            return

        logger.error("[Speech] Recognition error: %s %s", code, message or "")
        self._cancel_restart()
        self._update(
            status=SessionStatus.STOPPED,
            listening=False,
            interim_text="",
            last_error=RecognitionError(ErrorKind.PROVIDER, f"Recognition error: {code}", code),
        )

    def _handle_end(self, handle: SpeechRecognizer) -> None:
        if handle is not self._handle:
            return

        if self._should_auto_restart():
            logger.debug("[Speech] Recognizer ended on its own, scheduling restart")
            self._schedule_restart(recreate=False)
            return

        logger.info("[Speech] Recognition ended")
        self._detach(handle)
        self._update(
            status=SessionStatus.STOPPED if self._state.supported else SessionStatus.UNSUPPORTED,
            listening=False,
            interim_text="",
        )
