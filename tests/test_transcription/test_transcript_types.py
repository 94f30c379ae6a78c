"""
Tests for transcript type definitions.

Copyright (c) 2025 MedScribe contributors
License: CC BY 4.0
"""

from datetime import datetime, timezone

import pytest

from medscribe.transcription.transcript_types import (
    RecognitionResult,
    RecognitionResultBatch,
    SpeechAlternative,
    TranscriptEntry,
    TranscriptLog,
)


def _entry(i: int, text: str) -> TranscriptEntry:
    return TranscriptEntry(
        id=f"trans-{i}",
        text=text,
        timestamp=datetime(2025, 1, 1, 10, 0, i, tzinfo=timezone.utc),
        language_code="en",
    )


class TestRecognitionResult:
    """Tests for RecognitionResult class."""

    def test_final_shortcut(self):
        """Test building a final result."""
        result = RecognitionResult.final("fever since monday", confidence=0.9)

        assert result.is_final
        assert result.transcript == "fever since monday"
        assert result.confidence == 0.9

    def test_no_alternatives(self):
        """Test a result without alternatives."""
        result = RecognitionResult(is_final=True)

        assert result.transcript == ""
        assert result.confidence == 0.0

    def test_from_dict_with_alternatives(self):
        """Test parsing the alternatives form."""
        result = RecognitionResult.from_dict(
            {
                "is_final": True,
                "alternatives": [
                    {"transcript": "cough", "confidence": 0.8},
                    {"transcript": "cuff", "confidence": 0.1},
                ],
            }
        )

        assert result.is_final
        assert result.transcript == "cough"
        assert len(result.alternatives) == 2

    def test_from_dict_bare_transcript(self):
        """Test parsing the shorthand form."""
        result = RecognitionResult.from_dict({"transcript": "headache"})

        assert not result.is_final
        assert result.alternatives == (SpeechAlternative("headache", 1.0),)


class TestRecognitionResultBatch:
    """Tests for RecognitionResultBatch class."""

    def test_changed_skips_delivered_results(self):
        """Test that results before result_index are skipped."""
        batch = RecognitionResultBatch(
            results=(
                RecognitionResult.final("one"),
                RecognitionResult.final("two"),
                RecognitionResult.interim("three"),
            ),
            result_index=1,
        )

        assert [r.transcript for r in batch.changed()] == ["two", "three"]

    def test_from_dict(self):
        """Test creating a batch from dictionary."""
        batch = RecognitionResultBatch.from_dict(
            {
                "result_index": 0,
                "results": [
                    {"transcript": "pain in the knee", "is_final": True},
                    {"transcript": "for two", "is_final": False},
                ],
            }
        )

        assert len(batch.results) == 2
        assert batch.results[0].is_final
        assert not batch.results[1].is_final


class TestTranscriptEntry:
    """Tests for TranscriptEntry class."""

    def test_to_dict(self):
        """Test conversion to dictionary."""
        data = _entry(1, "Patient has fever").to_dict()

        assert data["id"] == "trans-1"
        assert data["text"] == "Patient has fever"
        assert data["language"] == "en"
        assert data["timestamp"].startswith("2025-01-01T10:00:01")

    def test_from_dict(self):
        """Test creation from dictionary."""
        entry = TranscriptEntry.from_dict(
            {
                "id": "trans-9",
                "text": "बुखार है",
                "timestamp": "2025-01-01T10:00:00+00:00",
                "language": "hi",
            }
        )

        assert entry.language_code == "hi"
        assert entry.timestamp.year == 2025


class TestTranscriptLog:
    """Tests for TranscriptLog class."""

    def test_append_preserves_order(self):
        """Test entries come back in commit order."""
        log = TranscriptLog()
        log.append(_entry(1, "first"))
        log.append(_entry(2, "second"))

        assert [e.text for e in log] == ["first", "second"]
        assert len(log) == 2

    def test_text_joins_with_newlines(self):
        """Test the outbound transcript text."""
        log = TranscriptLog([_entry(1, "Fever for two days."), _entry(2, "No cough.")])

        assert log.text() == "Fever for two days.\nNo cough."
        assert log.word_count == 6

    def test_snapshot_is_immutable(self):
        """Test that snapshots are unaffected by later appends."""
        log = TranscriptLog([_entry(1, "first")])
        snapshot = log.all()
        log.append(_entry(2, "second"))

        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_clear(self):
        """Test clearing the log."""
        log = TranscriptLog([_entry(1, "first")])
        log.clear()

        assert len(log) == 0
        assert log.text() == ""

    def test_to_dict(self):
        """Test conversion to dictionary."""
        log = TranscriptLog([_entry(1, "first")])

        assert log.to_dict() == {"entries": [_entry(1, "first").to_dict()]}


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", 0),
        ("one", 1),
        ("  spaced   out words  ", 3),
    ],
)
def test_word_count(text: str, expected: int):
    """Test word counting across entries."""
    log = TranscriptLog([_entry(1, text)])

    assert log.word_count == expected
