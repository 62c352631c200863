"""
Expense extraction endpoints.

Parsing runs in FastAPI's threadpool (sync handlers): the pipeline makes
blocking provider and database calls.
"""

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile

from voiceexpense.api.deps import CurrentCaller, Governor, Pipeline
from voiceexpense.config import settings
from voiceexpense.logging_config import get_logger, request_context
from voiceexpense.schemas.extraction import AudioPayload

logger = get_logger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _to_payload(upload: UploadFile | None, max_bytes: int) -> AudioPayload | None:
    """
    Read a multipart upload into an AudioPayload (None if nothing was sent).

    At most max_bytes + 1 bytes are read, enough for the size check to
    reject an oversized upload without buffering all of it.
    """
    if upload is None or not upload.filename:
        return None
    return AudioPayload(
        filename=upload.filename,
        content=upload.file.read(max_bytes + 1),
        content_type=upload.content_type,
    )


@router.post("/parse")
def parse_expenses(
    caller: CurrentCaller,
    pipeline: Pipeline,
    transcription: Annotated[str | None, Form()] = None,
    audio: Annotated[UploadFile | None, File()] = None,
) -> dict:
    """
    Extract expense entries from a transcription or a voice recording.

    Entries are returned for the client to confirm; nothing is stored here.
    """
    with request_context(user_id=caller.user_id, tier=caller.tier):
        result = pipeline.run(
            caller.user_id,
            caller.tier,
            text=transcription,
            audio=_to_payload(audio, settings.max_audio_size_bytes),
        )
    return {"success": True, "data": result.to_response()}


@router.get("/usage")
def get_usage(caller: CurrentCaller, governor: Governor) -> dict:
    """Today's AI parsing usage for the caller."""
    usage = governor.remaining(caller.user_id, caller.tier)
    return {"success": True, "data": {"usage": usage.model_dump()}}
