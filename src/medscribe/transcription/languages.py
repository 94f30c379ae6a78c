"""
Language Registry

Consultation languages and the speech-recognition locales they map to.
"""

from dataclasses import dataclass

DEFAULT_LANGUAGE_CODE = "en"
DEFAULT_SPEECH_LOCALE = "en-IN"


@dataclass(frozen=True)
class Language:
    """A supported consultation language."""

    code: str
    name: str
    native_name: str
    speech_code: str

    @property
    def label(self) -> str:
        """Label shown in language pickers, e.g. 'हिंदी (Hindi)'."""
        return f"{self.native_name} ({self.name})"


SUPPORTED_LANGUAGES: tuple[Language, ...] = (
    Language("en", "English", "English", "en-IN"),
    Language("hi", "Hindi", "हिंदी", "hi-IN"),
    Language("te", "Telugu", "తెలుగు", "te-IN"),
    Language("ta", "Tamil", "தமிழ்", "ta-IN"),
    Language("kn", "Kannada", "ಕನ್ನಡ", "kn-IN"),
    Language("mr", "Marathi", "मराठी", "mr-IN"),
)

_BY_CODE = {lang.code: lang for lang in SUPPORTED_LANGUAGES}


def get_language(code: str) -> Language | None:
    """Look up a language by its consultation code."""
    return _BY_CODE.get(code)


def is_supported(code: str) -> bool:
    """Whether the code is in the registry."""
    return code in _BY_CODE


def list_languages() -> list[Language]:
    """List supported languages in display order."""
    return list(SUPPORTED_LANGUAGES)


def resolve_speech_locale(code: str) -> str:
    """Map a consultation code to a recognizer locale tag (falls back to en-IN)."""
    lang = _BY_CODE.get(code)
    return lang.speech_code if lang else DEFAULT_SPEECH_LOCALE


def display_name(code: str) -> str:
    """English display name for a consultation code (the code itself if unknown)."""
    lang = _BY_CODE.get(code)
    return lang.name if lang else code
