"""
Transcription Module

Continuous speech-to-text session control and the transcript log.
"""

from medscribe.transcription.languages import (
    Language,
    SUPPORTED_LANGUAGES,
    display_name,
    resolve_speech_locale,
)
from medscribe.transcription.provider import ManualScheduler, AsyncioScheduler
from medscribe.transcription.scripted import ScriptedSpeechService, load_script
from medscribe.transcription.session_controller import (
    ControllerConfig,
    RecognitionError,
    SessionState,
    SessionStatus,
    TranscriptionController,
)
from medscribe.transcription.transcript_types import (
    RecognitionResult,
    RecognitionResultBatch,
    TranscriptEntry,
    TranscriptLog,
)

__all__ = [
    "Language",
    "SUPPORTED_LANGUAGES",
    "display_name",
    "resolve_speech_locale",
    "ManualScheduler",
    "AsyncioScheduler",
    "ScriptedSpeechService",
    "load_script",
    "ControllerConfig",
    "RecognitionError",
    "SessionState",
    "SessionStatus",
    "TranscriptionController",
    "RecognitionResult",
    "RecognitionResultBatch",
    "TranscriptEntry",
    "TranscriptLog",
]
