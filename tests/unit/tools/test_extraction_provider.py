"""
Unit tests for the LangChain extraction provider.

Tests:
- Prompt wiring and JSON parsing with a fake chat model
- Malformed / empty replies
- Transport failures mapped to ExtractionProviderError
- Model selection from settings
"""

from unittest.mock import MagicMock, patch

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from voiceexpense.config import Settings
from voiceexpense.errors import ClarificationRequired, ExtractionProviderError
from voiceexpense.prompts.expense_extraction import EXPENSE_EXTRACTION_PROMPT
from voiceexpense.schemas.extraction import ExtractionResult
from voiceexpense.tools.extraction.provider import (
    ExtractionProvider,
    LangChainExtractionProvider,
    get_llm_for_extraction,
)

VALID_REPLY = """{
  "expenses": [
    {"amount": 12.5, "category": "Food & Drink", "date": "2026-01-09T12:00:00Z",
     "merchant": "Cafe Luna", "notes": null}
  ],
  "confidence": "high",
  "needsClarification": false,
  "clarificationQuestion": null
}"""


class TimingOutChatModel(FakeListChatModel):
    def _call(self, *args, **kwargs):
        raise TimeoutError("timed out")


def _provider(*responses: str, json_mode: bool = False) -> LangChainExtractionProvider:
    llm = FakeListChatModel(responses=list(responses))
    return LangChainExtractionProvider(llm=llm, config=Settings(), json_mode=json_mode)


# ─────────────────────────────────────────────────────────────────────────────
# Prompt
# ─────────────────────────────────────────────────────────────────────────────


class TestPrompt:
    def test_prompt_lists_categories_and_today(self):
        messages = EXPENSE_EXTRACTION_PROMPT.format_messages(
            text="lunch 12", today="2026-01-09T00:00:00+00:00"
        )

        system = messages[0].content
        assert "Food & Drink" in system
        assert "Other" in system
        assert "2026-01-09T00:00:00+00:00" in system
        assert messages[1].content == "lunch 12"


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────


class TestParse:
    def test_conforms_to_protocol(self):
        assert isinstance(_provider(VALID_REPLY), ExtractionProvider)

    def test_valid_reply(self):
        result = _provider(VALID_REPLY).parse("Lunch at Cafe Luna, 12.50")

        assert len(result.expenses) == 1
        assert result.expenses[0].amount == 12.5
        assert result.expenses[0].merchant == "Cafe Luna"
        assert result.confidence == "high"
        assert result.needs_clarification is False

    def test_valid_reply_in_json_mode(self):
        result = _provider(VALID_REPLY, json_mode=True).parse("Lunch 12.50")

        assert len(result.expenses) == 1

    def test_fenced_reply_is_accepted(self):
        result = _provider(f"```json\n{VALID_REPLY}\n```").parse("Lunch 12.50")

        assert result.expenses[0].category == "Food & Drink"

    def test_clarification_fields_read_from_camel_case(self):
        reply = (
            '{"expenses": [], "confidence": "low", "needsClarification": true, '
            '"clarificationQuestion": "How much was it?"}'
        )

        result = _provider(reply).parse("bought something")

        assert result.needs_clarification is True
        assert result.clarification_question == "How much was it?"

    def test_null_expenses_treated_as_empty(self):
        result = _provider('{"expenses": null, "confidence": "low"}').parse("hm")

        assert result.expenses == []

    def test_empty_reply(self):
        with pytest.raises(ExtractionProviderError, match="No response"):
            _provider("").parse("lunch 12")

    def test_non_json_reply(self):
        with pytest.raises(ExtractionProviderError, match="malformed"):
            _provider("Sorry, I cannot help with that.").parse("lunch 12")

    @pytest.mark.parametrize(
        "reply",
        [
            '{"expenses": [{"amount": 4',
            '{"expenses": [{"amount": 45.5, "category": "Food',
            '```json\n{"expenses": [{"amount": 12.5}',
        ],
    )
    def test_truncated_reply_rejected(self, reply):
        with pytest.raises(ExtractionProviderError, match="malformed"):
            _provider(reply).parse("coffee 45.50")

    def test_json_array_reply(self):
        with pytest.raises(ExtractionProviderError, match="not a JSON object"):
            _provider("[1, 2, 3]").parse("lunch 12")

    def test_wrong_shape_reply(self):
        with pytest.raises(ExtractionProviderError, match="malformed"):
            _provider('{"expenses": "twelve dollars"}').parse("lunch 12")

    def test_transport_failure(self):
        provider = LangChainExtractionProvider(
            llm=TimingOutChatModel(responses=[VALID_REPLY]), config=Settings(), json_mode=False
        )

        with pytest.raises(ExtractionProviderError) as exc_info:
            provider.parse("lunch 12")

        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value.__cause__, TimeoutError)


class TestValidateConfidence:
    def test_delegates_to_confidence_rules(self):
        with pytest.raises(ClarificationRequired):
            _provider(VALID_REPLY).validate_confidence(ExtractionResult())


# ─────────────────────────────────────────────────────────────────────────────
# Model Selection
# ─────────────────────────────────────────────────────────────────────────────


class TestGetLlmForExtraction:
    def test_openai(self):
        config = Settings(llm_provider="openai", openai_api_key="sk-test")

        with patch("voiceexpense.tools.extraction.provider.ChatOpenAI") as mock_cls:
            get_llm_for_extraction(config)

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["model"] == config.openai_model
        assert kwargs["timeout"] == config.extraction_timeout_seconds
        assert kwargs["max_retries"] == 0

    def test_groq_goes_through_openai_compatible_client(self):
        config = Settings(llm_provider="groq", groq_api_key="gsk-test")

        with patch("voiceexpense.tools.extraction.provider.ChatOpenAI") as mock_cls:
            get_llm_for_extraction(config)

        assert mock_cls.call_args.kwargs["base_url"] == config.groq_base_url

    def test_anthropic(self):
        config = Settings(llm_provider="anthropic", anthropic_api_key="sk-ant-test")

        with patch("voiceexpense.tools.extraction.provider.ChatAnthropic") as mock_cls:
            get_llm_for_extraction(config)

        assert mock_cls.call_args.kwargs["model"] == config.anthropic_model

    def test_google(self):
        config = Settings(llm_provider="google", google_api_key="g-test")

        with patch("voiceexpense.tools.extraction.provider.ChatGoogleGenerativeAI") as mock_cls:
            get_llm_for_extraction(config)

        assert mock_cls.call_args.kwargs["google_api_key"] == "g-test"

    def test_missing_key(self):
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            get_llm_for_extraction(Settings(llm_provider="anthropic", anthropic_api_key=""))

    def test_missing_key_surfaces_as_provider_error(self):
        provider = LangChainExtractionProvider(
            config=Settings(llm_provider="openai", openai_api_key="")
        )

        with pytest.raises(ExtractionProviderError, match="OPENAI_API_KEY"):
            provider.parse("lunch 12")

    def test_json_mode_defaults_by_vendor(self):
        llm = MagicMock()

        assert LangChainExtractionProvider(llm=llm, config=Settings(llm_provider="groq")).json_mode
        assert not LangChainExtractionProvider(
            llm=llm, config=Settings(llm_provider="anthropic")
        ).json_mode
