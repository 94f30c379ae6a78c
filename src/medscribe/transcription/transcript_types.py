"""
Transcript Data Types

Recognizer result batches and the committed transcript log.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator
import threading


@dataclass(frozen=True)
class SpeechAlternative:
    """One recognition hypothesis for a segment."""

    transcript: str
    confidence: float = 1.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpeechAlternative":
        """Create from dictionary."""
        return cls(
            transcript=data.get("transcript", ""),
            confidence=float(data.get("confidence", 1.0)),
        )


@dataclass(frozen=True)
class RecognitionResult:
    """A recognized segment, interim or final."""

    is_final: bool
    alternatives: tuple[SpeechAlternative, ...] = ()

    @property
    def transcript(self) -> str:
        """Best-guess text (first alternative)."""
        if not self.alternatives:
            return ""
        return self.alternatives[0].transcript

    @property
    def confidence(self) -> float:
        if not self.alternatives:
            return 0.0
        return self.alternatives[0].confidence

    @classmethod
    def final(cls, text: str, confidence: float = 1.0) -> "RecognitionResult":
        """Shortcut for a final segment with a single alternative."""
        return cls(is_final=True, alternatives=(SpeechAlternative(text, confidence),))

    @classmethod
    def interim(cls, text: str, confidence: float = 1.0) -> "RecognitionResult":
        """Shortcut for an interim segment with a single alternative."""
        return cls(is_final=False, alternatives=(SpeechAlternative(text, confidence),))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecognitionResult":
        """Create from dictionary.

        Accepts either an ``alternatives`` list or a bare ``transcript``.
        """
        if "alternatives" in data:
            alternatives = tuple(
                SpeechAlternative.from_dict(a) for a in data.get("alternatives") or []
            )
        else:
            alternatives = (
                SpeechAlternative(
                    transcript=data.get("transcript", ""),
                    confidence=float(data.get("confidence", 1.0)),
                ),
            )
        return cls(is_final=bool(data.get("is_final", False)), alternatives=alternatives)


@dataclass(frozen=True)
class RecognitionResultBatch:
    """Results delivered by one recognizer ``result`` event.

    ``result_index`` is the first result that changed since the previous
    event; earlier entries were already delivered and are skipped.
    """

    results: tuple[RecognitionResult, ...]
    result_index: int = 0

    def changed(self) -> tuple[RecognitionResult, ...]:
        """Results from ``result_index`` onward, in provider order."""
        return self.results[self.result_index:]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecognitionResultBatch":
        """Create from dictionary."""
        return cls(
            results=tuple(RecognitionResult.from_dict(r) for r in data.get("results", [])),
            result_index=int(data.get("result_index", 0)),
        )


@dataclass(frozen=True)
class TranscriptEntry:
    """A committed (final) piece of the consultation transcript."""

    id: str
    text: str
    timestamp: datetime
    language_code: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "language": self.language_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscriptEntry":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            text=data["text"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            language_code=data.get("language", "en"),
        )


class TranscriptLog:
    """Append-only, chronologically ordered transcript entries.

    The controller is the only writer. Readers get tuple snapshots so they
    never iterate the underlying list while an append is in progress.
    """

    def __init__(self, entries: list[TranscriptEntry] | None = None):
        """Initialize the log, optionally seeded with entries."""
        self._entries: list[TranscriptEntry] = list(entries or [])
        self._lock = threading.Lock()

    def append(self, entry: TranscriptEntry) -> None:
        """Append a committed entry."""
        with self._lock:
            self._entries.append(entry)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def all(self) -> tuple[TranscriptEntry, ...]:
        """Snapshot of the entries in commit order."""
        with self._lock:
            return tuple(self._entries)

    def text(self) -> str:
        """Entry texts joined with newlines, in commit order."""
        return "\n".join(entry.text for entry in self.all())

    @property
    def word_count(self) -> int:
        """Count of words across all entries."""
        return sum(len(entry.text.split()) for entry in self.all())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(self.all())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"entries": [e.to_dict() for e in self.all()]}
