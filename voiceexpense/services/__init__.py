"""
Application services for business logic.

This module contains the quota governor and the pipeline that composes
transcription, extraction and validation into a single governed call.
"""

from voiceexpense.services.extraction_pipeline import (
    ExtractionPipeline,
    build_default_pipeline,
)
from voiceexpense.services.usage_governor import UsageGovernor

__all__ = [
    "ExtractionPipeline",
    "UsageGovernor",
    "build_default_pipeline",
]
