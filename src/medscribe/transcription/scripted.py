"""
Scripted Speech Service

A recognizer implementation that replays provider events from a script
instead of listening to a microphone. It behaves like a browser recognizer:
``start`` on a running handle raises, ``stop`` ends the session and fires
``on_end``, ``abort`` reports an ``aborted`` error before ending.

Script format (YAML or JSON), events sorted by ``at`` seconds:

    events:
      - {at: 0.5, type: result, results: [{transcript: "Patient has fever", is_final: true}]}
      - {at: 4.0, type: error, code: no-speech}
      - {at: 4.0, type: end}
      - {at: 9.0, type: stop}     # user presses stop

``result``, ``error`` and ``end`` go to whichever recognizer is running at
that moment; ``stop`` and ``start`` are user commands for the replay driver.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import json
import logging

import yaml

from medscribe.transcription.provider import (
    EndCallback,
    ErrorCallback,
    ResultCallback,
    Scheduler,
    StartCallback,
)
from medscribe.transcription.transcript_types import RecognitionResultBatch

logger = logging.getLogger(__name__)

PROVIDER_EVENTS = ("result", "error", "end")
COMMAND_EVENTS = ("start", "stop")


class RecognizerStateError(RuntimeError):
    """Raised when ``start`` is called on a recognizer that is already running."""


class ScriptedRecognizer:
    """Recognizer handle whose events are injected by the owning service."""

    def __init__(self, service: "ScriptedSpeechService", index: int):
        self.continuous = False
        self.interim_results = False
        self.lang = "en-US"
        self.max_alternatives = 1

        self.on_start: StartCallback | None = None
        self.on_end: EndCallback | None = None
        self.on_error: ErrorCallback | None = None
        self.on_result: ResultCallback | None = None

        self.index = index
        self.running = False
        self.start_count = 0
        self.stop_count = 0
        self._service = service

    def start(self) -> None:
        if self.running:
            raise RecognizerStateError("recognition has already started")
        if self._service.fail_start:
            raise RecognizerStateError("recognizer failed to start")
        self.running = True
        self.start_count += 1
        self._service.start_calls += 1
        if self.on_start:
            self.on_start()

    def stop(self) -> None:
        self.stop_count += 1
        if not self.running:
            return
        self.emit_end()

    def abort(self) -> None:
        if not self.running:
            return
        self.emit_error("aborted")
        self.emit_end()

    def emit_result(self, batch: RecognitionResultBatch) -> None:
        """Deliver a result batch if running."""
        if self.running and self.on_result:
            self.on_result(batch)

    def emit_error(self, code: str, message: str | None = None) -> None:
        """Deliver an error if running."""
        if self.running and self.on_error:
            self.on_error(code, message)

    def emit_end(self) -> None:
        """End the session and deliver ``on_end``."""
        if not self.running:
            return
        self.running = False
        if self.on_end:
            self.on_end()


@dataclass
class ScriptEvent:
    """One timed event of a replay script."""

    at: float
    type: str
    code: str | None = None
    message: str | None = None
    batch: RecognitionResultBatch | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScriptEvent":
        """Create from dictionary."""
        event_type = data.get("type", "")
        if event_type not in PROVIDER_EVENTS + COMMAND_EVENTS:
            raise ValueError(f"Unknown script event type: {event_type!r}")
        batch = None
        if event_type == "result":
            batch = RecognitionResultBatch.from_dict(data)
        return cls(
            at=float(data.get("at", 0.0)),
            type=event_type,
            code=data.get("code"),
            message=data.get("message"),
            batch=batch,
        )


@dataclass
class SpeechScript:
    """An ordered list of script events."""

    events: list[ScriptEvent] = field(default_factory=list)
    language: str | None = None

    @property
    def duration(self) -> float:
        """Time of the last event."""
        return max((e.at for e in self.events), default=0.0)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpeechScript":
        """Create from dictionary."""
        events = [ScriptEvent.from_dict(e) for e in data.get("events", [])]
        events.sort(key=lambda e: e.at)
        return cls(events=events, language=data.get("language"))


def load_script(path: str | Path) -> SpeechScript:
    """Load a replay script from a YAML or JSON file."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Script file not found: {path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    return SpeechScript.from_dict(data or {})


class ScriptedSpeechService:
    """Recognizer factory that hands out ScriptedRecognizer handles."""

    def __init__(self, available: bool = True):
        """Initialize the service."""
        self.available = available
        self.fail_start = False
        self.recognizers: list[ScriptedRecognizer] = []
        self.start_calls = 0

    def is_available(self) -> bool:
        return self.available

    def __call__(self) -> ScriptedRecognizer:
        recognizer = ScriptedRecognizer(self, len(self.recognizers))
        self.recognizers.append(recognizer)
        return recognizer

    @property
    def active(self) -> ScriptedRecognizer | None:
        """The most recently created recognizer that is running."""
        for recognizer in reversed(self.recognizers):
            if recognizer.running:
                return recognizer
        return None

    @property
    def running_count(self) -> int:
        """How many handles are currently running."""
        return sum(1 for r in self.recognizers if r.running)

    def dispatch(self, event: ScriptEvent) -> bool:
        """Deliver a provider event to the running recognizer. Returns False if none is running."""
        recognizer = self.active
        if recognizer is None:
            logger.debug("[Script] Dropping %s event at %.2fs: no running recognizer", event.type, event.at)
            return False
        if event.type == "result" and event.batch is not None:
            recognizer.emit_result(event.batch)
        elif event.type == "error":
            recognizer.emit_error(event.code or "unknown", event.message)
        elif event.type == "end":
            recognizer.emit_end()
        return True

    def schedule(self, script: SpeechScript, scheduler: Scheduler, commands: dict | None = None) -> None:
        """Schedule every script event on the scheduler.

        ``commands`` maps ``start``/``stop`` to zero-argument callables.
        """
        commands = commands or {}
        for event in script.events:
            if event.type in COMMAND_EVENTS:
                command = commands.get(event.type)
                if command is not None:
                    scheduler.call_later(event.at, command)
            else:
                scheduler.call_later(event.at, lambda e=event: self.dispatch(e))
