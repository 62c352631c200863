"""
Audio transcription gateway using an OpenAI-compatible Whisper endpoint
(OpenAI or Groq, chosen by settings.transcription_provider).

The gateway validates the upload before any network call, stages it to a
temporary file for the SDK, and always removes that file afterwards.
"""

import hashlib
import os
import tempfile
from typing import Any

from openai import OpenAI, OpenAIError

from voiceexpense.config import Settings, settings as default_settings
from voiceexpense.errors import (
    AudioTooLarge,
    EmptyTranscription,
    TranscriptionUnavailable,
    UnsupportedAudioFormat,
    ValidationError,
)
from voiceexpense.logging_config import get_logger
from voiceexpense.schemas.extraction import AudioPayload

logger = get_logger(__name__)

# Extension used for staged files when the upload has none
DEFAULT_AUDIO_EXTENSION = "m4a"


class TranscriptionGateway:
    """Converts an audio payload into plain text."""

    def __init__(self, config: Settings | None = None, client: OpenAI | None = None):
        self.config = config or default_settings
        self._client = client

    def _get_client(self) -> OpenAI:
        """Get or create the speech-to-text client."""
        if self._client is None:
            api_key = self.config.transcription_api_key
            if not api_key:
                raise TranscriptionUnavailable(
                    f"{self.config.transcription_provider.upper()}_API_KEY not configured"
                )
            self._client = OpenAI(
                api_key=api_key,
                base_url=self.config.transcription_base_url,
                timeout=self.config.transcription_timeout_seconds,
                max_retries=self.config.llm_max_retries,
            )
            logger.debug(
                "transcription_client_created",
                provider=self.config.transcription_provider,
            )
        return self._client

    def validate_payload(self, audio: AudioPayload) -> None:
        """
        Reject payloads the provider would refuse.

        Raises:
            ValidationError: Empty payload
            AudioTooLarge: Payload above max_audio_size_bytes
            UnsupportedAudioFormat: Neither MIME type nor extension allowed
        """
        if audio.size == 0:
            raise ValidationError("Audio file is empty")

        if audio.size > self.config.max_audio_size_bytes:
            max_mb = self.config.max_audio_size_bytes / (1024 * 1024)
            raise AudioTooLarge(f"Audio file exceeds maximum size of {max_mb:g} MB")

        allowed_mimes = {m.lower() for m in self.config.allowed_audio_mime_types}
        allowed_exts = {e.lower().lstrip(".") for e in self.config.allowed_audio_extensions}
        mime_ok = (audio.content_type or "").lower() in allowed_mimes
        ext_ok = audio.extension in allowed_exts

        if not (mime_ok or ext_ok):
            raise UnsupportedAudioFormat(
                "Invalid audio file format. Supported formats: "
                + ", ".join(sorted(allowed_exts))
            )

    def transcribe(self, audio: AudioPayload, **kwargs: Any) -> str:
        """
        Transcribe an audio payload.

        Args:
            audio: Uploaded audio
            **kwargs: Additional context (e.g., user_id, request_id) for logging

        Returns:
            Transcribed text, stripped of surrounding whitespace

        Raises:
            ValidationError: Payload rejected before the provider call
            TranscriptionUnavailable: Provider error, timeout or no text in response
            EmptyTranscription: Provider returned only whitespace
        """
        self.validate_payload(audio)

        audio_hash = hashlib.sha256(audio.content).hexdigest()[:16]
        logger.info(
            "transcribing_audio",
            size=audio.size,
            hash=audio_hash,
            content_type=audio.content_type,
            model=self.config.whisper_model,
            **kwargs,
        )

        suffix = f".{audio.extension or DEFAULT_AUDIO_EXTENSION}"
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                prefix="recording-", suffix=suffix, delete=False
            ) as staged:
                temp_path = staged.name
                staged.write(audio.content)

            client = self._get_client()
            with open(temp_path, "rb") as audio_file:
                transcription = client.audio.transcriptions.create(
                    model=self.config.whisper_model,
                    file=audio_file,
                    language=self.config.whisper_language,
                    response_format="json",
                )
        except OpenAIError as e:
            logger.error(
                "audio_transcription_failed",
                error=str(e),
                error_type=type(e).__name__,
                **kwargs,
                exc_info=True,
            )
            raise TranscriptionUnavailable(f"Failed to transcribe audio: {e}") from e
        finally:
            if temp_path is not None:
                _remove_staged_file(temp_path)

        text = getattr(transcription, "text", None)
        if not isinstance(text, str):
            logger.error("transcription_missing_text", **kwargs)
            raise TranscriptionUnavailable("Speech-to-text response contained no text")

        text = text.strip()
        if not text:
            logger.info("transcription_empty", **kwargs)
            raise EmptyTranscription()

        logger.info("audio_transcribed_successfully", text_length=len(text), **kwargs)
        logger.debug("transcription_result", text_preview=text[:100], **kwargs)
        return text


def _remove_staged_file(path: str) -> None:
    try:
        os.unlink(path)
        logger.debug("staged_audio_removed", path=path)
    except FileNotFoundError:
        pass
