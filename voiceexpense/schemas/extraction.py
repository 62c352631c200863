"""
Pydantic schemas for the extraction pipeline.

Two families live here:
- Provisional* models describe the raw, loosely-typed reply of the language
  model. They accept anything JSON can carry so a sloppy reply still reaches
  the normalizer instead of failing validation.
- ExpenseEntry / ExtractionResult and the usage models are the canonical,
  immutable values handed between pipeline stages and back to the caller.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    """Closed set of expense categories. OTHER is the catch-all."""

    FOOD_AND_DRINK = "Food & Drink"
    GROCERIES = "Groceries"
    TRANSPORT = "Transport"
    RENT = "Rent"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


CATCH_ALL_CATEGORY = Category.OTHER


class ConfidenceLabel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SubscriptionTier(str, Enum):
    TRIAL = "trial"
    FREE = "free"
    PRO = "pro"


# ─────────────────────────────────────────────────────────────────────────────
# Provider reply (provisional)
# ─────────────────────────────────────────────────────────────────────────────


class ProvisionalExpense(BaseModel):
    """One expense as the model returned it, before normalization."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    amount: Any = None
    category: Any = None
    date: Any = None
    merchant: Any = None
    notes: Any = None


class ProvisionalResult(BaseModel):
    """
    Unvalidated output of an ExtractionProvider.

    Field aliases follow the JSON contract in the extraction prompt
    (needsClarification / clarificationQuestion); snake_case names are
    accepted too.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    expenses: list[ProvisionalExpense] = Field(default_factory=list)
    confidence: Any = None
    needs_clarification: bool = Field(default=False, alias="needsClarification")
    clarification_question: str | None = Field(
        default=None, alias="clarificationQuestion"
    )

    @field_validator("expenses", mode="before")
    @classmethod
    def none_expenses_to_empty(cls, v: Any) -> Any:
        """Treat a null expenses array as empty."""
        return [] if v is None else v

    @field_validator("needs_clarification", mode="before")
    @classmethod
    def none_flag_to_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("clarification_question", mode="before")
    @classmethod
    def question_to_str(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Canonical result
# ─────────────────────────────────────────────────────────────────────────────


class ExpenseEntry(BaseModel):
    """
    A normalized expense candidate, ready to be persisted by the caller.

    amount is None when the model's value could not be coerced to a number;
    the confidence validator turns that into a clarification request.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "amount": 45.50,
                "category": "Food & Drink",
                "date": "2026-01-09T12:00:00+00:00",
                "merchant": "Starbucks",
                "notes": "Coffee with team",
                "raw_transcription": "I spent $45.50 at Starbucks for coffee",
            }
        },
    )

    amount: Decimal | None = Field(
        None,
        description="Expense amount as a decimal number",
        examples=[45.50, 12.00],
    )
    category: Category = Field(
        default=CATCH_ALL_CATEGORY,
        description="Member of the closed category set",
    )
    date: datetime = Field(..., description="When the expense occurred (UTC)")
    merchant: str | None = Field(None, max_length=255, examples=["Starbucks"])
    notes: str | None = Field(None, max_length=1000)
    raw_transcription: str = Field(
        ..., description="Original input text, attached for audit"
    )

    def to_response(self) -> dict[str, Any]:
        """JSON-friendly representation used in API responses."""
        return {
            "amount": float(self.amount) if self.amount is not None else None,
            "category": self.category.value,
            "date": self.date.isoformat(),
            "merchant": self.merchant,
            "notes": self.notes,
            "raw_transcription": self.raw_transcription,
        }


class ExtractionResult(BaseModel):
    """Normalized provider output: entries plus the provider's own signals."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[ExpenseEntry, ...] = ()
    confidence: ConfidenceLabel = ConfidenceLabel.MEDIUM
    needs_clarification: bool = False
    clarification_question: str | None = None
    source_text: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Request / usage
# ─────────────────────────────────────────────────────────────────────────────


class AudioPayload(BaseModel):
    """Uploaded audio as received from the client."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(default="recording.m4a")
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lowercase extension without the dot ('' when absent)."""
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot else ""


class ExtractionRequest(BaseModel):
    """A single request-scoped extraction job. Never persisted."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    tier: str
    text: str | None = None
    audio: AudioPayload | None = None

    @property
    def input_type(self) -> str:
        return "audio" if self.audio is not None else "text"


class UsageSnapshot(BaseModel):
    """Today's quota usage for one user."""

    model_config = ConfigDict(frozen=True)

    used: int = Field(..., ge=0)
    limit: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)

    @classmethod
    def build(cls, used: int, limit: int) -> "UsageSnapshot":
        return cls(used=used, limit=limit, remaining=max(0, limit - used))


class QuotaDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    used: int
    limit: int


class ValidationOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True


class PipelineResult(BaseModel):
    """What the request handler gets back from a successful run."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[ExpenseEntry, ...]
    confidence: ConfidenceLabel
    usage: UsageSnapshot

    def to_response(self) -> dict[str, Any]:
        return {
            "expenses": [entry.to_response() for entry in self.entries],
            "confidence": self.confidence.value,
            "usage": self.usage.model_dump(),
        }
