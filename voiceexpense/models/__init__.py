"""
SQLAlchemy ORM models for the application.
All models must be imported here so Base.metadata sees them.
"""

from voiceexpense.models.usage import UsageCounter

__all__ = [
    "UsageCounter",
]
