"""
Structured logging for VoiceExpense.

Events are snake_case names with keyword context. Request-scoped values
(user_id, tier) are bound once per request with request_context() and then
appear on every event logged underneath, including pipeline and storage events.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog

from voiceexpense.config import settings


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def _output_processors(log_format: str) -> list:
    """Exception rendering plus the final renderer for the chosen format."""
    if log_format == "json":
        # Tracebacks stay structured so log shippers can index frames
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
    ]


def configure_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_format: "json" or "console" (defaults to settings.log_format)
        log_level: Level name such as "INFO" (defaults to settings.log_level)
    """
    log_format = log_format or settings.log_format
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    structlog.configure(
        processors=_shared_processors() + _output_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)
    # SDK request chatter; our own events carry what matters
    for noisy in ("httpx", "openai"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))


@contextmanager
def request_context(**values) -> Iterator[None]:
    """
    Bind values to every event logged inside the block.

    None values are skipped. Previous bindings are restored on exit, so
    nested blocks and threadpool reuse don't leak context between requests.
    """
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; use as logger = get_logger(__name__)."""
    return structlog.get_logger(name)
