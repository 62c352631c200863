"""
Usage counter storage operations.

The daily counter is only ever mutated with a single
INSERT ... ON CONFLICT DO UPDATE statement so parallel requests for the same
user and day cannot lose updates. Do not add a read-then-write variant.
"""

from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from voiceexpense.logging_config import get_logger
from voiceexpense.models.usage import UsageCounter

logger = get_logger(__name__)

# Dialects whose insert() supports on_conflict_do_update
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _dialect_insert(session: Session):
    """Pick the dialect-specific insert construct for the session's engine."""
    dialect = session.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(
            f"Atomic usage increment is not supported on dialect: {dialect}"
        ) from None


def get_daily_usage(session: Session, user_id: str, usage_date: date) -> int:
    """
    Get the number of extraction calls for a user on a day.

    Args:
        session: Database session
        user_id: Opaque user identifier
        usage_date: UTC calendar day

    Returns:
        Call count, 0 when no counter exists yet
    """
    count = session.scalar(
        select(UsageCounter.call_count).where(
            UsageCounter.user_id == user_id,
            UsageCounter.usage_date == usage_date,
        )
    )
    return count or 0


def increment_daily_usage(session: Session, user_id: str, usage_date: date) -> None:
    """
    Atomically add one call to the user's counter for the day.

    Creates the counter at 1 if it does not exist. The caller owns the
    transaction (commit/rollback).

    Args:
        session: Database session
        user_id: Opaque user identifier
        usage_date: UTC calendar day
    """
    now = datetime.now(timezone.utc)
    insert = _dialect_insert(session)

    stmt = insert(UsageCounter).values(
        user_id=user_id,
        usage_date=usage_date,
        call_count=1,
        created_at=now,
        updated_at=now,
    )
    # onupdate hooks do not fire for ON CONFLICT updates, so set updated_at here
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "usage_date"],
        set_={
            "call_count": UsageCounter.call_count + 1,
            "updated_at": now,
        },
    )
    session.execute(stmt)

    logger.debug("usage_counter_incremented", user_id=user_id, usage_date=usage_date.isoformat())
