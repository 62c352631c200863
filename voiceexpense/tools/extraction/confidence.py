"""
Confidence validation for normalized extraction results.

Runs after normalization, so categories never trigger a clarification:
they are defaulted, not rejected.
"""

from voiceexpense.errors import ClarificationRequired
from voiceexpense.logging_config import get_logger
from voiceexpense.schemas.extraction import ExtractionResult, ValidationOutcome

logger = get_logger(__name__)

NO_EXPENSES_QUESTION = (
    "No expenses could be extracted from the transcription. "
    "Could you please provide more details?"
)
INVALID_AMOUNT_QUESTION = (
    "Some expenses have invalid amounts. Could you please clarify the amounts?"
)


def validate_confidence(result: ExtractionResult) -> ValidationOutcome:
    """
    Decide whether a normalized result is usable.

    Checks, in order:
    1. Provider asked for clarification with a question -> that question
    2. No entries -> ask for more detail
    3. Any missing or non-positive amount -> ask about amounts

    Raises:
        ClarificationRequired: With the follow-up question for the user
    """
    question = (result.clarification_question or "").strip()
    if result.needs_clarification and question:
        logger.info("clarification_requested_by_provider", question=question)
        raise ClarificationRequired(question)

    if not result.entries:
        logger.info("clarification_no_entries")
        raise ClarificationRequired(NO_EXPENSES_QUESTION)

    invalid = [e for e in result.entries if e.amount is None or e.amount <= 0]
    if invalid:
        logger.info("clarification_invalid_amounts", invalid_count=len(invalid))
        raise ClarificationRequired(INVALID_AMOUNT_QUESTION)

    return ValidationOutcome(ok=True)
