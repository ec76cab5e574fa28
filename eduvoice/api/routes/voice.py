"""API routes for speech-to-text and text-to-speech."""

import logging

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status

from eduvoice.api.deps import AppSettings, CurrentUser, Voice
from eduvoice.schemas.voice import SpeechRequest, TranscriptionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/voice", tags=["voice"])


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe_audio(
    current_user: CurrentUser,
    voice: Voice,
    settings: AppSettings,
    audio: UploadFile | None = File(None),
) -> TranscriptionResponse:
    """Transcribe a recorded question. The clip is not stored."""
    if audio is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No audio file provided")

    limit = settings.max_audio_upload_bytes
    data = await audio.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Audio exceeds the {limit // (1024 * 1024)} MB upload limit",
        )
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Audio file is empty")

    transcription = await voice.transcribe(
        audio.filename or "audio.webm",
        data,
        audio.content_type or "application/octet-stream",
    )
    logger.info("Transcribed %d bytes of audio for user %s", len(data), current_user.id)
    return TranscriptionResponse(text=transcription.text, duration=transcription.duration)


@router.post(
    "/speak",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}, "description": "MP3 audio"}},
)
async def speak_text(
    request: SpeechRequest,
    current_user: CurrentUser,
    voice: Voice,
) -> Response:
    """Read text aloud; returns audio/mpeg."""
    audio = await voice.speak(request.text)
    return Response(content=audio, media_type="audio/mpeg")
