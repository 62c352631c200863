"""
FastAPI dependencies for dependency injection.

Provides database sessions, caller identity, and service instances.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from voiceexpense.database import get_db, get_session_local
from voiceexpense.logging_config import get_logger
from voiceexpense.schemas.extraction import SubscriptionTier
from voiceexpense.services.extraction_pipeline import (
    ExtractionPipeline,
    build_default_pipeline,
)
from voiceexpense.services.usage_governor import UsageGovernor

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Database Session
# ─────────────────────────────────────────────────────────────────────────────

# Type alias for cleaner dependency injection
DbSession = Annotated[Session, Depends(get_db)]


# ─────────────────────────────────────────────────────────────────────────────
# Caller Identity
# ─────────────────────────────────────────────────────────────────────────────

class Caller(BaseModel):
    """Identity and entitlement supplied by the upstream session layer."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    tier: str


def get_caller(
    x_user_id: Annotated[str | None, Header()] = None,
    x_subscription_tier: Annotated[str | None, Header()] = None,
) -> Caller:
    """
    Read the caller from request headers.

    Authentication happens upstream; this only requires that a user id
    was forwarded. A missing tier is treated as free.

    Raises:
        HTTPException: 401 if X-User-Id is missing
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        logger.warning("request_missing_user_id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )

    tier = (x_subscription_tier or SubscriptionTier.FREE.value).strip().lower()
    return Caller(user_id=user_id, tier=tier)


CurrentCaller = Annotated[Caller, Depends(get_caller)]


# ─────────────────────────────────────────────────────────────────────────────
# Services
# ─────────────────────────────────────────────────────────────────────────────

@lru_cache
def get_usage_governor() -> UsageGovernor:
    """
    Dependency to get the shared usage governor.

    Returns:
        UsageGovernor bound to the application session factory
    """
    return UsageGovernor(get_session_local())


@lru_cache
def get_extraction_pipeline() -> ExtractionPipeline:
    """
    Dependency to get the shared extraction pipeline.

    Returns:
        ExtractionPipeline wired from settings
    """
    return build_default_pipeline(governor=get_usage_governor())


Governor = Annotated[UsageGovernor, Depends(get_usage_governor)]
Pipeline = Annotated[ExtractionPipeline, Depends(get_extraction_pipeline)]
