"""
Governed AI extraction pipeline.

One call turns a transcription or an audio upload into normalized expense
entries, charging the caller's daily quota only when usable entries come
back:

    transcribe (audio only) -> input checks -> check_quota -> parse
    -> normalize -> validate_confidence -> record_usage -> response

Errors from any stage propagate unchanged; nothing is retried here.
"""

from voiceexpense.config import settings
from voiceexpense.database import get_session_local
from voiceexpense.errors import (
    ClarificationRequired,
    TranscriptionUnavailable,
    ValidationError,
)
from voiceexpense.logging_config import get_logger
from voiceexpense.schemas.extraction import (
    AudioPayload,
    ExtractionRequest,
    PipelineResult,
    SubscriptionTier,
)
from voiceexpense.services.usage_governor import UsageGovernor, tier_name
from voiceexpense.tools.extraction.normalizer import normalize_result
from voiceexpense.tools.extraction.provider import (
    ExtractionProvider,
    LangChainExtractionProvider,
)
from voiceexpense.tools.extraction.transcription import TranscriptionGateway

logger = get_logger(__name__)


class ExtractionPipeline:
    """Composes the governor, transcription gateway and extraction provider."""

    def __init__(
        self,
        governor: UsageGovernor,
        provider: ExtractionProvider,
        transcriber: TranscriptionGateway | None = None,
        max_text_length: int | None = None,
    ):
        self.governor = governor
        self.provider = provider
        self.transcriber = transcriber
        self.max_text_length = max_text_length or settings.max_transcription_length

    def run(
        self,
        user_id: str,
        tier: str | SubscriptionTier,
        *,
        text: str | None = None,
        audio: AudioPayload | None = None,
    ) -> PipelineResult:
        """
        Extract expenses for one request.

        Args:
            user_id: Caller identity from the session collaborator
            tier: Caller's subscription tier
            text: Typed or pre-transcribed description of spending
            audio: Voice recording; takes precedence over text when both are given

        Returns:
            PipelineResult with entries, confidence and today's usage

        Raises:
            ValidationError: Missing, empty or oversized input (and audio subclasses)
            TranscriptionUnavailable: Speech-to-text failed
            RateLimitExceeded: Daily quota already used up
            ExtractionProviderError: Language model failed or replied with junk
            ClarificationRequired: Input too ambiguous; carries the question
        """
        request = ExtractionRequest(
            user_id=user_id, tier=tier_name(tier), text=text, audio=audio
        )
        return self.run_request(request)

    def run_request(self, request: ExtractionRequest) -> PipelineResult:
        log = logger.bind(
            user_id=request.user_id,
            tier=request.tier,
            input_type=request.input_type,
        )
        log.info("extraction_pipeline_started")

        text = self._resolve_text(request, log)

        self.governor.check_quota(request.user_id, request.tier)

        provisional = self.provider.parse(text, user_id=request.user_id)
        result = normalize_result(provisional, source_text=text)
        log.debug(
            "extraction_normalized",
            entry_count=len(result.entries),
            confidence=result.confidence.value,
        )

        try:
            self.provider.validate_confidence(result)
        except ClarificationRequired as e:
            log.info("extraction_needs_clarification", question=e.question)
            raise

        self.governor.record_usage(request.user_id)
        usage = self.governor.remaining(request.user_id, request.tier)

        log.info(
            "extraction_pipeline_completed",
            entry_count=len(result.entries),
            confidence=result.confidence.value,
            used=usage.used,
            limit=usage.limit,
        )
        return PipelineResult(
            entries=result.entries,
            confidence=result.confidence,
            usage=usage,
        )

    def _resolve_text(self, request: ExtractionRequest, log) -> str:
        """Produce the text to parse, transcribing audio when present."""
        if request.audio is not None:
            if self.transcriber is None:
                raise TranscriptionUnavailable("Speech-to-text is not configured")
            text = self.transcriber.transcribe(request.audio, user_id=request.user_id)
            log.debug("audio_transcribed", text_length=len(text))
        elif request.text is None:
            raise ValidationError("Transcription or audio file is required")
        else:
            text = request.text

        if not text.strip():
            raise ValidationError("Transcription cannot be empty")

        # Length is measured on the text as received, surrounding whitespace included
        if len(text) > self.max_text_length:
            raise ValidationError(
                f"Transcription exceeds maximum length of {self.max_text_length} characters"
            )

        return text.strip()


def build_default_pipeline(governor: UsageGovernor | None = None) -> ExtractionPipeline:
    """Wire a pipeline from application settings."""
    return ExtractionPipeline(
        governor=governor or UsageGovernor(get_session_local()),
        provider=LangChainExtractionProvider(),
        transcriber=TranscriptionGateway(),
    )
