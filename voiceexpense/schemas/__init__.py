"""Pydantic schemas shared by the extraction pipeline stages."""

from voiceexpense.schemas.extraction import (
    CATCH_ALL_CATEGORY,
    AudioPayload,
    Category,
    ConfidenceLabel,
    ExpenseEntry,
    ExtractionRequest,
    ExtractionResult,
    PipelineResult,
    ProvisionalExpense,
    ProvisionalResult,
    QuotaDecision,
    SubscriptionTier,
    UsageSnapshot,
    ValidationOutcome,
)

__all__ = [
    "CATCH_ALL_CATEGORY",
    "AudioPayload",
    "Category",
    "ConfidenceLabel",
    "ExpenseEntry",
    "ExtractionRequest",
    "ExtractionResult",
    "PipelineResult",
    "ProvisionalExpense",
    "ProvisionalResult",
    "QuotaDecision",
    "SubscriptionTier",
    "UsageSnapshot",
    "ValidationOutcome",
]
