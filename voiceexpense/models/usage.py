"""Daily AI usage counter - one row per (user, UTC calendar day)."""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from voiceexpense.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UsageCounter(Base):
    """
    Number of extraction calls a user made on a given day.

    The day is part of the key, so a new day starts a new row instead of
    resetting an old one. Rows are only ever created or incremented by
    storage.usage_writer.increment_daily_usage.
    """

    __tablename__ = "ai_usage_counter"
    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_ai_usage_counter_user_day"),
        CheckConstraint("call_count >= 0", name="ck_ai_usage_counter_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Opaque identifier supplied by the identity collaborator
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    call_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<UsageCounter(user_id={self.user_id}, date={self.usage_date}, "
            f"count={self.call_count})>"
        )
