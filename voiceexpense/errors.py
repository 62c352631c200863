"""
Error kinds raised by the extraction pipeline.

Every error carries a machine-readable code, a human message and the HTTP
status the API layer maps it to. Components raise the most specific kind;
nothing here is retried automatically.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from voiceexpense.schemas.extraction import UsageSnapshot


class ExtractionError(Exception):
    """Base class for all pipeline errors."""

    code = "EXTRACTION_ERROR"
    status_code = 500
    default_message = "Expense extraction failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serialize to the API error envelope body."""
        return {"code": self.code, "message": self.message}


# ─────────────────────────────────────────────────────────────────────────────
# User-correctable input errors
# ─────────────────────────────────────────────────────────────────────────────

class ValidationError(ExtractionError):
    """Malformed, missing or oversized input."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"


class EmptyTranscription(ValidationError):
    """Speech-to-text succeeded but produced no usable text."""

    code = "EMPTY_TRANSCRIPTION"
    default_message = "No speech detected in the audio file"


class UnsupportedAudioFormat(ValidationError):
    code = "UNSUPPORTED_AUDIO_FORMAT"
    default_message = (
        "Invalid audio file format. Supported formats: mp3, wav, m4a, mp4, webm, ogg"
    )


class AudioTooLarge(ValidationError):
    code = "AUDIO_TOO_LARGE"
    status_code = 413
    default_message = "Audio file exceeds the maximum allowed size"


# ─────────────────────────────────────────────────────────────────────────────
# Quota
# ─────────────────────────────────────────────────────────────────────────────

class RateLimitExceeded(ExtractionError):
    """Daily extraction quota exhausted for the user's tier."""

    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = (
        "You have exceeded your daily AI parsing limit. "
        "Please try again tomorrow or upgrade your plan."
    )

    def __init__(self, message: str | None = None, usage: "UsageSnapshot | None" = None):
        super().__init__(message)
        self.usage = usage


# ─────────────────────────────────────────────────────────────────────────────
# Ambiguous provider output
# ─────────────────────────────────────────────────────────────────────────────

class ClarificationRequired(ExtractionError):
    """The input was too ambiguous; carries a follow-up question for the user."""

    code = "CLARIFICATION_REQUIRED"
    status_code = 400
    default_message = "Clarification required"

    def __init__(self, question: str | None = None):
        super().__init__(question)
        self.question = self.message


# ─────────────────────────────────────────────────────────────────────────────
# Upstream dependency failures (transient, caller may retry with backoff)
# ─────────────────────────────────────────────────────────────────────────────

class TranscriptionUnavailable(ExtractionError):
    code = "TRANSCRIPTION_UNAVAILABLE"
    status_code = 503
    default_message = "Speech-to-text service is currently unavailable"


class ExtractionProviderError(ExtractionError):
    code = "AI_PROVIDER_ERROR"
    status_code = 503
    default_message = "AI provider service is currently unavailable"
