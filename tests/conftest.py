"""
Pytest configuration and fixtures for the VoiceExpense test suite.

Provides:
- Database fixtures (file-backed SQLite engine, session factory)
- A controllable UTC clock and a usage governor bound to it
- A scripted extraction provider
"""

import os
from datetime import datetime, timezone
from typing import Generator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SQLALCHEMY_DATABASE_URL", "sqlite:///./voiceexpense-test.db")

from voiceexpense.database import create_db_engine, init_db
from voiceexpense.schemas.extraction import (
    ExtractionResult,
    ProvisionalResult,
    ValidationOutcome,
)
from voiceexpense.services.usage_governor import UsageGovernor
from voiceexpense.tools.extraction.confidence import validate_confidence

TEST_TIER_LIMITS = {"trial": 10, "free": 10, "pro": 1000}


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """
    File-backed SQLite engine with the schema created.

    A file (not :memory:) so that every pooled connection, including those
    opened from worker threads, sees the same database.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'usage.db'}")
    init_db(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    """A plain session for direct storage tests."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ─────────────────────────────────────────────────────────────────────────────
# Clock / Governor Fixtures
# ─────────────────────────────────────────────────────────────────────────────

class FakeClock:
    """Callable clock whose time the test controls."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 9, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def governor(session_factory, clock) -> UsageGovernor:
    return UsageGovernor(session_factory, tier_limits=TEST_TIER_LIMITS, clock=clock)


# ─────────────────────────────────────────────────────────────────────────────
# Provider Fixtures
# ─────────────────────────────────────────────────────────────────────────────

class ScriptedProvider:
    """
    ExtractionProvider returning queued replies.

    Each queued item is either a ProvisionalResult, a dict (validated into
    one) or an exception instance to raise.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: list[str] = []

    def parse(self, text: str, **kwargs) -> ProvisionalResult:
        self.calls.append(text)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return ProvisionalResult.model_validate(reply)
        return reply

    def validate_confidence(self, result: ExtractionResult) -> ValidationOutcome:
        return validate_confidence(result)


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def coffee_reply() -> dict:
    """A well-formed model reply with one expense."""
    return {
        "expenses": [
            {
                "amount": 45.5,
                "category": "coffee",
                "date": "2026-01-09T08:30:00Z",
                "merchant": "Starbucks",
                "notes": "Coffee with team",
            }
        ],
        "confidence": "high",
        "needsClarification": False,
        "clarificationQuestion": None,
    }
