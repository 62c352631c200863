"""VoiceExpense - governed AI extraction of expenses from speech and text."""

__version__ = "0.1.0"
