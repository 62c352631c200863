"""
Centralized prompts for the VoiceExpense application.

All LLM prompts should be defined in this package for easy maintenance
and versioning.
"""

from voiceexpense.prompts.expense_extraction import (
    CATEGORY_ALIASES,
    CATEGORY_LIST,
    EXPENSE_EXTRACTION_PROMPT,
    EXPENSE_EXTRACTION_SYSTEM,
    EXPENSE_EXTRACTION_USER,
)

__all__ = [
    "CATEGORY_ALIASES",
    "CATEGORY_LIST",
    "EXPENSE_EXTRACTION_PROMPT",
    "EXPENSE_EXTRACTION_SYSTEM",
    "EXPENSE_EXTRACTION_USER",
]
