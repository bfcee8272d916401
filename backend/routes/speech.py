"""Speech-to-text route. The request body is the raw audio."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from schemas import SpeechResponse
from services.azure_clients import ServiceClients, get_service_clients
from services.errors import SpeechRecognitionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["speech"])

DEFAULT_AUDIO_CONTENT_TYPE = "audio/wav; codecs=audio/pcm; samplerate=16000"


@router.post("/speech-to-text", response_model=SpeechResponse)
async def speech_to_text(request: Request,
                         clients: ServiceClients = Depends(get_service_clients)):
    audio = await request.body()
    if not audio:
        return JSONResponse(status_code=400, content={"error": "No audio data provided"})

    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("audio/"):
        content_type = DEFAULT_AUDIO_CONTENT_TYPE

    try:
        text = await clients.speech.recognize(audio, content_type=content_type)
    except SpeechRecognitionError as e:
        logger.warning(f"Speech recognition failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process speech", "details": str(e)},
        )
    return SpeechResponse(text=text)
