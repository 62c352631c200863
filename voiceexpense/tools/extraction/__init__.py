"""
Extraction tools for voice and text expense capture.
Provides the transcription gateway, the extraction provider, the result
normalizer and the confidence validator.
"""

from voiceexpense.tools.extraction.confidence import validate_confidence
from voiceexpense.tools.extraction.normalizer import normalize_result
from voiceexpense.tools.extraction.provider import (
    ExtractionProvider,
    LangChainExtractionProvider,
    get_llm_for_extraction,
)
from voiceexpense.tools.extraction.transcription import TranscriptionGateway

__all__ = [
    # Audio
    "TranscriptionGateway",
    # Model-backed parsing
    "ExtractionProvider",
    "LangChainExtractionProvider",
    "get_llm_for_extraction",
    # Post-processing
    "normalize_result",
    "validate_confidence",
]
