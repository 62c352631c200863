"""
Health check endpoints for monitoring and deployment.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from voiceexpense import __version__
from voiceexpense.api.deps import DbSession
from voiceexpense.config import settings
from voiceexpense.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    environment: str
    checks: dict[str, bool]


class ReadinessStatus(BaseModel):
    """Readiness check response model."""
    ready: bool
    checks: dict[str, dict]


@router.get("", response_model=HealthStatus)
@router.get("/", response_model=HealthStatus, include_in_schema=False)
def health_check() -> HealthStatus:
    """
    Basic health check endpoint.

    Returns basic application status without checking dependencies.
    """
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.environment,
        checks={"app": True},
    )


@router.get("/ready", response_model=ReadinessStatus)
def readiness_check(db: DbSession) -> ReadinessStatus:
    """
    Readiness check with dependency verification.

    The usage counter store must answer; missing provider keys are reported
    but do not make the service unready.
    """
    checks = {}
    all_ready = True

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "ok"}
    except Exception as e:
        checks["database"] = {"status": "error", "error": str(e)}
        all_ready = False
        logger.error("health_check_db_failed", error=str(e))

    llm_key = getattr(settings, f"{settings.llm_provider}_api_key", "")
    checks["llm"] = {
        "status": "ok" if llm_key else "not_configured",
        "provider": settings.llm_provider,
        "configured": bool(llm_key),
    }

    transcription_configured = bool(settings.transcription_api_key)
    checks["transcription"] = {
        "status": "ok" if transcription_configured else "not_configured",
        "provider": settings.transcription_provider,
        "configured": transcription_configured,
    }

    return ReadinessStatus(ready=all_ready, checks=checks)


@router.get("/live")
def liveness_check() -> dict:
    """
    Simple liveness probe.

    Returns 200 if the application process is running.
    """
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}
