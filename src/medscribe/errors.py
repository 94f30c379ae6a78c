"""
Errors

Exception hierarchy for report generation and account gating. Recognition
errors are not raised; the transcription controller records them as state.
"""


class MedScribeError(Exception):
    """Base class for application errors."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class ConfigError(MedScribeError):
    """Invalid or missing configuration."""


class EmptyTranscriptError(MedScribeError):
    """Generation was requested with nothing transcribed."""

    user_message = "No transcription available. Please record a consultation first."


class RecordingActiveError(MedScribeError):
    """The form is locked while recording."""

    user_message = "Stop recording before changing the language or patient details."


class GenerationInProgressError(MedScribeError):
    """A report is already being generated."""

    user_message = "A prescription report is already being generated."


class GenerationError(MedScribeError):
    """The report backend failed."""

    user_message = "Failed to generate prescription"
    retryable = False

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(GenerationError):
    """Upstream rate limit; the user may retry shortly."""

    user_message = "Rate limit exceeded. Please try again in a moment."
    retryable = True


class QuotaExceededError(GenerationError):
    """Upstream quota exhausted; retrying will not help."""

    user_message = "AI service quota exceeded. Please contact support."


class AuthorizationError(MedScribeError):
    """The current user may not generate a report."""


class NotAuthenticatedError(AuthorizationError):
    user_message = "Please sign in to generate prescriptions."


class InsufficientCreditsError(AuthorizationError):
    user_message = "No credits remaining. Please contact your administrator."
