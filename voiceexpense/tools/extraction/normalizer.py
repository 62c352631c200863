"""
Normalization of provider output into canonical expense entries.

Everything here is pure and total: bad values are lowered to None or to a
default, never raised. Running normalize_result on its own output returns an
equal result.
"""

import math
import re
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from voiceexpense.prompts.expense_extraction import CATEGORY_ALIASES
from voiceexpense.schemas.extraction import (
    CATCH_ALL_CATEGORY,
    Category,
    ConfidenceLabel,
    ExpenseEntry,
    ExtractionResult,
    ProvisionalResult,
)

_CATEGORIES_BY_NAME = {category.value.lower(): category for category in Category}

# One number, optionally wrapped in a currency symbol or code. Commas are
# accepted only as thousands separators (1,250.00), never as decimals.
_CURRENCY = r"(?:[$€£¥₹]|US\$|dollars?|euros?|bucks|[A-Za-z]{3})"
_AMOUNT_PATTERN = re.compile(
    rf"^{_CURRENCY}?\s*(?P<number>[+-]?(?:\d{{1,3}}(?:,\d{{3}})+|\d+)(?:\.\d+)?)\s*{_CURRENCY}?$",
    re.IGNORECASE,
)

# Column limits of ExpenseEntry
MAX_MERCHANT_LENGTH = 255
MAX_NOTES_LENGTH = 1000


def normalize_amount(value: Any) -> Decimal | None:
    """Coerce a number-ish value to Decimal, or None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        amount = Decimal(str(value))
    elif isinstance(value, str):
        match = _AMOUNT_PATTERN.match(value.strip())
        if match is None:
            return None
        amount = Decimal(match.group("number").replace(",", ""))
    else:
        return None

    if not amount.is_finite():
        return None
    return amount


def resolve_category(value: Any) -> Category:
    """
    Map free text onto the closed category set.

    Exact (case-insensitive) name match first, then the alias table,
    then the catch-all category.
    """
    if isinstance(value, Category):
        return value
    if not isinstance(value, str):
        return CATCH_ALL_CATEGORY

    key = value.strip().lower()
    if key in _CATEGORIES_BY_NAME:
        return _CATEGORIES_BY_NAME[key]
    return CATEGORY_ALIASES.get(key, CATCH_ALL_CATEGORY)


def normalize_date(value: Any, now: datetime) -> datetime:
    """Parse an absolute timestamp; missing or unparseable means now (UTC)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return now
    else:
        return now

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_optional_text(value: Any, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    if max_length is not None:
        text = text[:max_length].rstrip()
    return text or None


def normalize_confidence(value: Any) -> ConfidenceLabel:
    if isinstance(value, ConfidenceLabel):
        return value
    if isinstance(value, str):
        try:
            return ConfidenceLabel(value.strip().lower())
        except ValueError:
            pass
    return ConfidenceLabel.MEDIUM


def normalize_result(
    result: ProvisionalResult | ExtractionResult,
    source_text: str | None = None,
    now: datetime | None = None,
) -> ExtractionResult:
    """
    Coerce provider output into an ExtractionResult.

    Args:
        result: Provider reply, or an already-normalized result
        source_text: Original input text attached to every entry for audit
        now: Timestamp used for entries without a date (defaults to current UTC time)

    Returns:
        New ExtractionResult; the input is not modified
    """
    now = now or datetime.now(timezone.utc)

    if isinstance(result, ExtractionResult):
        raw_entries = [entry.model_dump() for entry in result.entries]
        source = source_text if source_text is not None else result.source_text
    else:
        raw_entries = [expense.model_dump() for expense in result.expenses]
        source = source_text or ""

    entries = tuple(
        ExpenseEntry(
            amount=normalize_amount(raw.get("amount")),
            category=resolve_category(raw.get("category")),
            date=normalize_date(raw.get("date"), now),
            merchant=normalize_optional_text(raw.get("merchant"), MAX_MERCHANT_LENGTH),
            notes=normalize_optional_text(raw.get("notes"), MAX_NOTES_LENGTH),
            raw_transcription=source,
        )
        for raw in raw_entries
    )

    return ExtractionResult(
        entries=entries,
        confidence=normalize_confidence(result.confidence),
        needs_clarification=bool(result.needs_clarification),
        clarification_question=normalize_optional_text(result.clarification_question),
        source_text=source,
    )
