"""
API route modules.
"""

from voiceexpense.api.routes.expenses import router as expenses_router
from voiceexpense.api.routes.health import router as health_router

__all__ = ["expenses_router", "health_router"]
