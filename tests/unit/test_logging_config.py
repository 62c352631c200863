"""
Unit tests for logging configuration and request-scoped context.
"""

import logging

import pytest
import structlog
from structlog.testing import LogCapture

from voiceexpense.logging_config import configure_logging, get_logger, request_context


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    structlog.contextvars.clear_contextvars()
    configure_logging()


@pytest.fixture
def captured():
    """Route structlog through a capture processor, merging bound context first."""
    capture = LogCapture()
    structlog.reset_defaults()
    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars, capture],
        cache_logger_on_first_use=False,
    )
    return capture


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


class TestConfigureLogging:
    def test_json_format(self):
        configure_logging(log_format="json", log_level="INFO")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.processors.dict_tracebacks in processors
        assert processors[0] is structlog.contextvars.merge_contextvars

    def test_console_format(self):
        configure_logging(log_format="console", log_level="INFO")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert structlog.processors.dict_tracebacks not in processors

    def test_level_applied_and_sdk_loggers_quieted(self):
        configure_logging(log_format="json", log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING


# ─────────────────────────────────────────────────────────────────────────────
# Request Context
# ─────────────────────────────────────────────────────────────────────────────


class TestRequestContext:
    def test_bound_values_reach_events(self, captured):
        logger = get_logger("voiceexpense.test")

        with request_context(user_id="user-1", tier="pro"):
            logger.info("expense_parsed", entry_count=2)

        assert captured.entries == [
            {
                "event": "expense_parsed",
                "entry_count": 2,
                "user_id": "user-1",
                "tier": "pro",
                "log_level": "info",
            }
        ]

    def test_none_values_skipped(self):
        with request_context(user_id="user-1", tier=None):
            assert structlog.contextvars.get_contextvars() == {"user_id": "user-1"}

    def test_context_cleared_on_exit(self):
        with request_context(user_id="user-1"):
            pass

        assert "user_id" not in structlog.contextvars.get_contextvars()

    def test_nested_blocks_restore_outer(self):
        with request_context(user_id="outer"):
            with request_context(user_id="inner"):
                assert structlog.contextvars.get_contextvars()["user_id"] == "inner"
            assert structlog.contextvars.get_contextvars()["user_id"] == "outer"

    def test_cleared_when_block_raises(self):
        with pytest.raises(RuntimeError):
            with request_context(user_id="user-1"):
                raise RuntimeError("boom")

        assert "user_id" not in structlog.contextvars.get_contextvars()
