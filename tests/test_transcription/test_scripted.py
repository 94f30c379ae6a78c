"""
Tests for the scripted speech service.

Copyright (c) 2025 MedScribe contributors
License: CC BY 4.0
"""

import json
from pathlib import Path

import pytest

from medscribe.transcription.scripted import (
    RecognizerStateError,
    ScriptEvent,
    ScriptedSpeechService,
    SpeechScript,
    load_script,
)
from medscribe.transcription.session_controller import SessionStatus, TranscriptionController
from medscribe.transcription.transcript_types import RecognitionResult, RecognitionResultBatch


SCRIPT_YAML = """
language: hi
events:
  - {at: 0.5, type: result, results: [{transcript: "Patient has fever", is_final: true}]}
  - {at: 2.0, type: error, code: no-speech}
  - {at: 2.0, type: end}
  - {at: 3.0, type: result, results: [{transcript: "and a sore throat", is_final: true}]}
  - {at: 4.0, type: stop}
"""


class TestScriptedRecognizer:
    """Tests for the scripted recognizer handle."""

    def test_start_twice_raises(self):
        """Test that a running recognizer refuses a second start."""
        service = ScriptedSpeechService()
        recognizer = service()
        recognizer.start()

        with pytest.raises(RecognizerStateError):
            recognizer.start()

    def test_stop_fires_end(self):
        """Test that stop ends the session."""
        service = ScriptedSpeechService()
        recognizer = service()
        ended = []
        recognizer.on_end = lambda: ended.append(True)
        recognizer.start()
        recognizer.stop()

        assert ended == [True]
        assert not recognizer.running

    def test_abort_reports_aborted(self):
        """Test that abort emits an aborted error before ending."""
        service = ScriptedSpeechService()
        recognizer = service()
        events = []
        recognizer.on_error = lambda code, message=None: events.append(code)
        recognizer.on_end = lambda: events.append("end")
        recognizer.start()
        recognizer.abort()

        assert events == ["aborted", "end"]

    def test_events_require_running(self):
        """Test that a stopped recognizer delivers nothing."""
        service = ScriptedSpeechService()
        recognizer = service()
        results = []
        recognizer.on_result = results.append
        recognizer.emit_result(RecognitionResultBatch(results=(RecognitionResult.final("x"),)))

        assert results == []


class TestSpeechScript:
    """Tests for script parsing."""

    def test_load_yaml(self, tmp_path: Path):
        """Test loading a YAML script."""
        path = tmp_path / "consult.yaml"
        path.write_text(SCRIPT_YAML, encoding="utf-8")

        script = load_script(path)

        assert script.language == "hi"
        assert len(script.events) == 5
        assert script.duration == 4.0
        assert script.events[0].batch.results[0].transcript == "Patient has fever"

    def test_load_json(self, tmp_path: Path):
        """Test loading a JSON script."""
        path = tmp_path / "consult.json"
        path.write_text(json.dumps({"events": [{"at": 1, "type": "end"}]}), encoding="utf-8")

        script = load_script(path)

        assert script.events[0].type == "end"

    def test_events_sorted(self):
        """Test that events are ordered by time."""
        script = SpeechScript.from_dict(
            {"events": [{"at": 3, "type": "end"}, {"at": 1, "type": "stop"}]}
        )

        assert [e.at for e in script.events] == [1.0, 3.0]

    def test_unknown_event_type(self):
        """Test rejecting an unknown event."""
        with pytest.raises(ValueError):
            ScriptEvent.from_dict({"at": 0, "type": "explode"})

    def test_missing_file(self, tmp_path: Path):
        """Test loading a missing script."""
        with pytest.raises(FileNotFoundError):
            load_script(tmp_path / "missing.yaml")


class TestScriptReplay:
    """Tests for replaying a script through the controller."""

    def test_replay(self, tmp_path: Path, scheduler, transcript_log):
        """Test a consultation with a silent gap and a manual stop."""
        path = tmp_path / "consult.yaml"
        path.write_text(SCRIPT_YAML, encoding="utf-8")
        script = load_script(path)

        service = ScriptedSpeechService()
        controller = TranscriptionController(
            service,
            language_code=script.language,
            on_transcription=transcript_log.append,
            scheduler=scheduler,
        )
        service.schedule(script, scheduler, commands={"stop": controller.stop})
        controller.start()
        scheduler.advance(script.duration + 1.0)

        assert [e.text for e in transcript_log] == ["Patient has fever", "and a sore throat"]
        assert all(e.language_code == "hi" for e in transcript_log)
        assert service.start_calls == 2
        assert controller.status == SessionStatus.STOPPED
        assert controller.last_error is None

    def test_dispatch_without_running_recognizer(self):
        """Test that events are dropped when nothing is running."""
        service = ScriptedSpeechService()

        assert not service.dispatch(ScriptEvent(at=0.0, type="end"))
