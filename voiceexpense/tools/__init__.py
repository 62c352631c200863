"""
Tools package for the VoiceExpense application.

Provides the pieces the extraction pipeline is assembled from:
- Extraction: transcription, model-backed parsing, normalization and validation
"""
