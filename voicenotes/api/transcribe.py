# =============================================================================
# Transcription API — Audio Clip → Text
# =============================================================================
#
# POST /api/transcribe  (multipart/form-data, field `audio`)
#
# FLOW:
#   1. Authenticate (401)
#   2. Rate limit, transcription policy (429)
#   3. Validate content type, presence, size and MIME type (400), first
#      from the upload metadata, then from the bytes actually read
#   4. Speech-to-text call, bounded by a 30 s timeout
#   5. 200 {"transcription": "...", "success": true}
#
# Upstream failures propagate and map to 502 / 408 / 422 / 503
# (see services/transcription.py).
# The transcript is returned for review; saving it is a separate
# POST /api/notes call.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from voicenotes.api.deps import (
    get_settings,
    get_speech_to_text,
    rate_limit,
)
from voicenotes.config import Settings
from voicenotes.errors import InputValidationError
from voicenotes.models.responses import TranscriptionResponse
from voicenotes.services.rate_limiter import EndpointClass
from voicenotes.services.transcription import SpeechToText
from voicenotes.services.validation import validate_audio_blob, validate_audio_file

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Transcription"])


@router.post(
    "/api/transcribe",
    response_model=TranscriptionResponse,
    summary="Transcribe a recorded audio clip",
    description=(
        "Upload an audio clip as multipart/form-data in the `audio` field. "
        "Returns the transcript; nothing is stored."
    ),
    dependencies=[
        Depends(rate_limit(
            EndpointClass.TRANSCRIPTION,
            "Too many transcriptions. Please wait before recording again.",
        )),
    ],
)
async def transcribe_endpoint(
    request: Request,
    settings: Settings = Depends(get_settings),
    speech_to_text: SpeechToText = Depends(get_speech_to_text),
) -> TranscriptionResponse:
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise InputValidationError("Content-Type must be multipart/form-data")

    form = await request.form()
    audio = form.get("audio")
    if not isinstance(audio, UploadFile):
        raise InputValidationError("No audio file found in the `audio` field")

    # Metadata first, before the part is read into memory
    validation = validate_audio_file(
        audio.filename, audio.content_type, audio.size,
        settings.max_audio_file_size_bytes,
    )
    if not validation.is_valid:
        raise InputValidationError(validation.error)

    data = await audio.read()
    validation = validate_audio_blob(
        data, audio.content_type, settings.max_audio_file_size_bytes,
    )
    if not validation.is_valid:
        raise InputValidationError(validation.error)

    filename = audio.filename or "audio.webm"
    logger.info(
        "Transcription request: user=%s file=%s type=%s size=%d",
        request.state.user.id, filename, audio.content_type, len(data),
    )

    text = await speech_to_text.transcribe(data, filename, audio.content_type)
    return TranscriptionResponse(transcription=text, success=True)
