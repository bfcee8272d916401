"""
Azure AI backend clients.

Thin async wrappers around the three cloud collaborators the pipeline talks
to: Azure OpenAI (text generation), Azure Computer Vision (image analysis)
and Azure Speech (single-shot speech-to-text). Every failure, including a
missing key, surfaces as a RemoteCallError subclass so callers can fall back.

One ServiceClients bundle is built lazily from config and injected into the
agents, so tests can swap in fakes.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import httpx
from openai import AsyncAzureOpenAI

import config
from services.errors import AnalysisError, RemoteCallError, SpeechRecognitionError

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r'^data:([\w.+-]+/[\w.+-]+)((?:;[\w.+-]+=[\w.+-]+)*);base64,')


def decode_data_url(data_url: str) -> bytes:
    """Strip a ``data:<mime>[;param=value]*;base64,`` prefix and decode the payload."""
    if not isinstance(data_url, str) or not data_url:
        raise AnalysisError("No image data supplied")
    payload = _DATA_URL_PREFIX.sub("", data_url, count=1)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AnalysisError(f"Could not decode base64 payload: {e}") from e


def data_url_content_type(data_url) -> Optional[str]:
    """MIME type of a data URL with its parameters, e.g. ``audio/webm; codecs=opus``."""
    match = _DATA_URL_PREFIX.match(data_url) if isinstance(data_url, str) else None
    if match is None:
        return None
    mime, params = match.groups()
    return "; ".join([mime] + [p for p in params.split(";") if p])


def is_audio_data_url(value) -> bool:
    return isinstance(value, str) and value.startswith("data:audio/")


class AzureOpenAIClient:
    """Generative text calls against an Azure OpenAI deployment."""

    def __init__(self, api_key: str, endpoint: str, deployment: str,
                 api_version: str, timeout: float = 60.0):
        self.deployment = deployment
        self._client = None
        if api_key and endpoint:
            self._client = AsyncAzureOpenAI(
                api_key=api_key,
                azure_endpoint=endpoint,
                api_version=api_version,
                timeout=timeout,
            )

    async def complete(self, system_prompt: str, user_prompt: str,
                       temperature: float = 0.2, max_tokens: int = 4000) -> str:
        if self._client is None:
            raise RemoteCallError("Azure OpenAI is not configured")
        try:
            response = await self._client.chat.completions.create(
                model=self.deployment,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise RemoteCallError(f"Azure OpenAI call failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AzureVisionClient:
    """Image analysis via the Computer Vision v3.2 REST API."""

    def __init__(self, api_key: str, endpoint: str, timeout: float = 60.0):
        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/") if endpoint else ""
        self.timeout = timeout

    async def analyze_image(self, image_bytes: bytes, features: List[str],
                            details: Optional[List[str]] = None) -> dict:
        if not self.api_key or not self.endpoint:
            raise AnalysisError("Azure Computer Vision is not configured")

        params = {"visualFeatures": ",".join(features)}
        if details:
            params["details"] = ",".join(details)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.endpoint}/vision/v3.2/analyze",
                    params=params,
                    content=image_bytes,
                    headers={
                        "Ocp-Apim-Subscription-Key": self.api_key,
                        "Content-Type": "application/octet-stream",
                    },
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise AnalysisError(
                f"Vision API returned status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise AnalysisError(f"Vision API call failed: {e}") from e


class AzureSpeechClient:
    """Single-shot recognition via the Speech short-audio REST API."""

    def __init__(self, api_key: str, region: str, language: str = "en-US",
                 timeout: float = 60.0):
        self.api_key = api_key
        self.region = region
        self.language = language
        self.timeout = timeout

    async def recognize(self, audio_bytes: bytes,
                        content_type: str = "audio/wav; codecs=audio/pcm; samplerate=16000") -> str:
        if not self.api_key or not self.region:
            raise SpeechRecognitionError("Azure Speech is not configured")
        if not audio_bytes:
            raise SpeechRecognitionError("No audio data provided")

        url = (
            f"https://{self.region}.stt.speech.microsoft.com/speech/recognition/"
            "conversation/cognitiveservices/v1"
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    params={"language": self.language, "format": "simple"},
                    content=audio_bytes,
                    headers={
                        "Ocp-Apim-Subscription-Key": self.api_key,
                        "Content-Type": content_type,
                        "Accept": "application/json",
                    },
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPStatusError as e:
            raise SpeechRecognitionError(
                f"Speech API returned status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise SpeechRecognitionError(f"Speech API call failed: {e}") from e

        text = (result.get("DisplayText") or "").strip()
        if result.get("RecognitionStatus") != "Success" or not text:
            raise SpeechRecognitionError("No text was recognized from the audio")
        return text


@dataclass
class ServiceClients:
    """The backend collaborators shared by every pipeline stage."""

    llm: AzureOpenAIClient
    vision: AzureVisionClient
    speech: AzureSpeechClient


_service_clients = None


def build_service_clients() -> ServiceClients:
    return ServiceClients(
        llm=AzureOpenAIClient(
            api_key=config.AZURE_OPENAI_KEY,
            endpoint=config.AZURE_OPENAI_ENDPOINT,
            deployment=config.AZURE_OPENAI_DEPLOYMENT,
            api_version=config.AZURE_OPENAI_API_VERSION,
            timeout=config.AZURE_REQUEST_TIMEOUT,
        ),
        vision=AzureVisionClient(
            api_key=config.AZURE_VISION_KEY,
            endpoint=config.AZURE_VISION_ENDPOINT,
            timeout=config.AZURE_REQUEST_TIMEOUT,
        ),
        speech=AzureSpeechClient(
            api_key=config.AZURE_SPEECH_KEY,
            region=config.AZURE_SPEECH_REGION,
            language=config.AZURE_SPEECH_LANGUAGE,
            timeout=config.AZURE_REQUEST_TIMEOUT,
        ),
    )


def get_service_clients() -> ServiceClients:
    """Lazy initialization of the shared Azure clients."""
    global _service_clients
    if _service_clients is None:
        _service_clients = build_service_clients()
        if not config.AZURE_OPENAI_KEY:
            logger.warning("AZURE_OPENAI_KEY not set; every request will use fallback layouts")
    return _service_clients
