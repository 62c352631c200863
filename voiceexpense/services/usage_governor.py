"""
Per-user daily quota enforcement for AI extraction calls.

Quota ceilings depend on the subscription tier supplied by the entitlement
collaborator. "Today" is the UTC calendar date; the counter key rolls over at
UTC midnight, so there is no reset job.
"""

from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session, sessionmaker

from voiceexpense.config import settings
from voiceexpense.errors import RateLimitExceeded
from voiceexpense.logging_config import get_logger
from voiceexpense.schemas.extraction import QuotaDecision, SubscriptionTier, UsageSnapshot
from voiceexpense.storage.usage_writer import get_daily_usage, increment_daily_usage

logger = get_logger(__name__)

# Tier used when the entitlement collaborator sends something we don't know
DEFAULT_TIER = SubscriptionTier.FREE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def tier_name(tier: str | SubscriptionTier) -> str:
    """Normalize a tier value to its lowercase name."""
    if isinstance(tier, SubscriptionTier):
        return tier.value
    return str(tier).strip().lower()


class UsageGovernor:
    """
    Tracks and enforces the daily extraction quota.

    Every operation opens its own session from the factory, so the governor
    can be shared across request threads.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        tier_limits: Mapping[str, int] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.tier_limits = dict(tier_limits if tier_limits is not None else settings.tier_limits)
        self.clock = clock

    def today(self) -> date:
        """Current UTC calendar day."""
        now = self.clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()

    def limit_for(self, tier: str | SubscriptionTier) -> int:
        """
        Daily ceiling for a tier.

        Unknown tiers get the free ceiling.
        """
        key = tier_name(tier)
        if key not in self.tier_limits:
            logger.warning("unknown_subscription_tier", tier=key, fallback=DEFAULT_TIER.value)
            key = DEFAULT_TIER.value
        return self.tier_limits[key]

    def _used_today(self, user_id: str) -> int:
        with self.session_factory() as session:
            return get_daily_usage(session, user_id, self.today())

    def check_quota(self, user_id: str, tier: str | SubscriptionTier) -> QuotaDecision:
        """
        Verify the user may make another extraction call today.

        Read-only: does not consume quota.

        Raises:
            RateLimitExceeded: If today's count has reached the tier ceiling
        """
        limit = self.limit_for(tier)
        used = self._used_today(user_id)

        if used >= limit:
            logger.info("quota_exceeded", user_id=user_id, tier=tier_name(tier), used=used, limit=limit)
            raise RateLimitExceeded(usage=UsageSnapshot.build(used, limit))

        logger.debug("quota_checked", user_id=user_id, tier=tier_name(tier), used=used, limit=limit)
        return QuotaDecision(allowed=True, used=used, limit=limit)

    def record_usage(self, user_id: str) -> None:
        """
        Count one successful extraction call for today.

        Database errors propagate to the caller.
        """
        usage_date = self.today()
        try:
            with self.session_factory() as session, session.begin():
                increment_daily_usage(session, user_id, usage_date)
        except Exception as e:
            logger.error(
                "usage_record_failed",
                user_id=user_id,
                usage_date=usage_date.isoformat(),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise

        logger.info("usage_recorded", user_id=user_id, usage_date=usage_date.isoformat())

    def remaining(self, user_id: str, tier: str | SubscriptionTier) -> UsageSnapshot:
        """Read-only snapshot of today's usage."""
        return UsageSnapshot.build(self._used_today(user_id), self.limit_for(tier))
