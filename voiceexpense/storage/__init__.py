"""
Storage layer for persisting data.

This module provides:
- Daily usage counter reads and the atomic increment used for quota accounting
"""

from voiceexpense.storage.usage_writer import get_daily_usage, increment_daily_usage

__all__ = [
    "get_daily_usage",
    "increment_daily_usage",
]
