"""
Expense extraction providers.

ExtractionProvider is the capability set the pipeline depends on. The
LangChain implementation talks to whichever hosted chat model is configured;
another vendor can be plugged in by implementing the same two methods.
"""

import json
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.utils.json import parse_json_markdown
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI
from pydantic import ValidationError as PydanticValidationError

from voiceexpense.config import Settings, settings as default_settings
from voiceexpense.errors import ExtractionError, ExtractionProviderError
from voiceexpense.logging_config import get_logger
from voiceexpense.prompts.expense_extraction import EXPENSE_EXTRACTION_PROMPT
from voiceexpense.schemas.extraction import (
    ExtractionResult,
    ProvisionalResult,
    ValidationOutcome,
)
from voiceexpense.tools.extraction.confidence import validate_confidence

logger = get_logger(__name__)

# Vendors that accept OpenAI-style response_format JSON mode
JSON_MODE_PROVIDERS = {"openai", "groq"}


@runtime_checkable
class ExtractionProvider(Protocol):
    """Turns free text into a provisional expense result."""

    def parse(self, text: str, **kwargs: Any) -> ProvisionalResult:
        """
        Raises:
            ExtractionProviderError: Upstream failure or non-JSON reply
        """
        ...

    def validate_confidence(self, result: ExtractionResult) -> ValidationOutcome:
        """
        Raises:
            ClarificationRequired: The result is not usable as-is
        """
        ...


def get_llm_for_extraction(config: Settings | None = None) -> BaseChatModel:
    """
    Get configured LLM for expense extraction based on settings.

    Returns:
        Configured LangChain chat model

    Raises:
        ValueError: If provider is not supported or API key missing
    """
    config = config or default_settings
    provider = config.llm_provider.lower()
    common = {
        "temperature": config.llm_temperature,
        "timeout": config.extraction_timeout_seconds,
        "max_retries": config.llm_max_retries,
    }

    if provider == "openai":
        if not config.openai_api_key:
            raise ValueError("OPENAI_API_KEY not configured")

        logger.debug("initializing_openai_llm", model=config.openai_model)
        return ChatOpenAI(
            model=config.openai_model,
            api_key=config.openai_api_key,
            **common,
        )

    elif provider == "groq":
        if not config.groq_api_key:
            raise ValueError("GROQ_API_KEY not configured")

        # Groq serves an OpenAI-compatible API
        logger.debug("initializing_groq_llm", model=config.groq_model)
        return ChatOpenAI(
            model=config.groq_model,
            api_key=config.groq_api_key,
            base_url=config.groq_base_url,
            **common,
        )

    elif provider == "anthropic":
        if not config.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not configured")

        logger.debug("initializing_anthropic_llm", model=config.anthropic_model)
        return ChatAnthropic(
            model=config.anthropic_model,
            api_key=config.anthropic_api_key,
            **common,
        )

    elif provider == "google":
        if not config.google_api_key:
            raise ValueError("GOOGLE_API_KEY not configured")

        logger.debug("initializing_google_llm", model=config.google_model)
        return ChatGoogleGenerativeAI(
            model=config.google_model,
            google_api_key=config.google_api_key,
            **common,
        )

    else:
        raise ValueError(
            f"Unsupported LLM provider: {provider}. "
            f"Supported: openai, anthropic, google, groq"
        )


class LangChainExtractionProvider:
    """ExtractionProvider backed by a LangChain chat model."""

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        config: Settings | None = None,
        json_mode: bool | None = None,
    ):
        self.config = config or default_settings
        self._llm = llm
        if json_mode is None:
            json_mode = self.config.llm_provider in JSON_MODE_PROVIDERS
        self.json_mode = json_mode

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm_for_extraction(self.config)
        return self._llm

    def parse(self, text: str, **kwargs: Any) -> ProvisionalResult:
        """
        Send text to the model and parse its JSON reply.

        Args:
            text: Transcription or typed description of spending
            **kwargs: Additional context (e.g., user_id, request_id) for logging

        Returns:
            ProvisionalResult exactly as the model described it

        Raises:
            ExtractionProviderError: Any model/transport failure, empty reply,
                or a reply that is not a JSON object of the expected shape
        """
        logger.info(
            "extracting_expenses_from_text",
            text_length=len(text),
            provider=self.config.llm_provider,
            **kwargs,
        )

        try:
            model = self.llm
            if self.json_mode:
                model = model.bind(response_format={"type": "json_object"})
            chain = EXPENSE_EXTRACTION_PROMPT | model
            logger.debug("invoking_llm_chain", text_preview=text[:100])
            message = chain.invoke(
                {"text": text, "today": datetime.now(timezone.utc).isoformat()}
            )

            content = _message_text(message.content)
            if not content.strip():
                raise ExtractionProviderError("No response from AI provider")

            # Strict: a reply cut off mid-object must fail, not be auto-closed
            parsed = parse_json_markdown(content, parser=json.loads)
            if not isinstance(parsed, dict):
                raise ExtractionProviderError("AI provider reply was not a JSON object")

            result = ProvisionalResult.model_validate(parsed)

        except ExtractionError:
            raise
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(
                "expense_extraction_unparseable",
                error=str(e),
                error_type=type(e).__name__,
                **kwargs,
            )
            raise ExtractionProviderError(
                "AI provider returned malformed structured data"
            ) from e
        except Exception as e:
            logger.error(
                "expense_extraction_failed",
                error=str(e),
                error_type=type(e).__name__,
                text_preview=text[:100],
                **kwargs,
                exc_info=True,
            )
            raise ExtractionProviderError(
                str(e) or "Failed to parse expenses with AI provider"
            ) from e

        logger.info(
            "expenses_extracted",
            expense_count=len(result.expenses),
            confidence=result.confidence,
            needs_clarification=result.needs_clarification,
            **kwargs,
        )
        return result

    def validate_confidence(self, result: ExtractionResult) -> ValidationOutcome:
        return validate_confidence(result)


def _message_text(content: Any) -> str:
    """Flatten chat message content (plain string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""
