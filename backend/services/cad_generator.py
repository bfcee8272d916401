"""
CAD model generation, the entry point behind the HTTP routes.

Picks the three-stage Orchestrator or the Multimodal Merger depending on how
many non-text modalities were supplied, and falls back to the offline
generator when the cloud pipeline fails. The UI learns about a fallback
through ``fallbackUsed`` and ``message`` rather than through an error.
"""

import logging
import random
from typing import Optional

from config import FALLBACK_SEED
from services.agents import RendererAgent, build_stub_threejs_code
from services.azure_clients import (
    ServiceClients, data_url_content_type, decode_data_url, is_audio_data_url,
)
from services.errors import (
    AnalysisError, CadPipelineError, CodeEmitterError, MultimodalMergeError, SpeechRecognitionError,
)
from services.fallback import FallbackGenerator
from services.multimodal import MultimodalProcessor, should_merge
from services.orchestrator import AgentOrchestrator
from services.vision_analyzer import VisionAnalyzer

logger = logging.getLogger(__name__)

DEFAULT_SKETCH_PROMPT = "Generate a CAD model based on this sketch"
SUCCESS_MESSAGE = "Model generated with Azure AI services"
FALLBACK_MESSAGE = "Cloud services unavailable; sample data used"


def has_any_input(inputs: dict) -> bool:
    return any(inputs.get(key) for key in ("text", "sketch", "speech", "photo"))


def combine_prompt(text: str, speech_text: str) -> str:
    parts = [p.strip() for p in (text, speech_text) if p and p.strip()]
    return "\n\n".join(parts)


async def transcribe_speech(speech_client, audio_data_url: str) -> Optional[str]:
    """Transcript for an audio data URL, or None when recognition fails."""
    try:
        audio = decode_data_url(audio_data_url)
        content_type = data_url_content_type(audio_data_url)
        if content_type:
            return await speech_client.recognize(audio, content_type=content_type)
        return await speech_client.recognize(audio)
    except (SpeechRecognitionError, AnalysisError) as e:
        logger.warning(f"Speech recognition failed, continuing without speech: {e}")
        return None


def _result(model_data: dict, code: str, metadata=None, processing_time_ms=None,
            fallback_used: bool = False) -> dict:
    return {
        "modelData": model_data,
        "code": code,
        "metadata": metadata,
        "fallbackUsed": fallback_used,
        "message": FALLBACK_MESSAGE if fallback_used else SUCCESS_MESSAGE,
        "processingTimeMs": processing_time_ms,
    }


async def _run_orchestrator(orchestrator: AgentOrchestrator, prompt: str,
                            image: Optional[str], metadata=None) -> dict:
    traced = await orchestrator.process_design_request_with_tracing(prompt, image)
    return _result(
        traced["modelData"], traced["code"],
        metadata=metadata, processing_time_ms=traced.get("processingTimeMs"),
    )


async def _run_merge(clients: ServiceClients, orchestrator: AgentOrchestrator,
                     inputs: dict, prompt: str, image: Optional[str]) -> dict:
    processor = MultimodalProcessor(clients.llm, VisionAnalyzer(clients.vision))
    try:
        merged = await processor.merge(inputs)
    except MultimodalMergeError as e:
        logger.warning(f"Multimodal merge failed, using the text pipeline: {e}")
        return await _run_orchestrator(orchestrator, prompt, image)

    if merged["modelData"].get("error"):
        # The combined reply is still a rich description; re-run it as a prompt
        logger.warning("Merged reply had no model JSON, reprocessing raw text as prompt")
        return await _run_orchestrator(
            orchestrator, merged["rawResponse"] or prompt, image, metadata=merged["metadata"],
        )

    model = merged["modelData"]
    try:
        code = await RendererAgent(clients.llm).emit(model, prompt)
    except CodeEmitterError as e:
        logger.warning(f"Code generation failed, using stub code: {e}")
        code = build_stub_threejs_code(model, prompt)
    return _result(model, code, metadata=merged["metadata"])


async def generate_cad_model(inputs: dict, clients: ServiceClients,
                             fallback: Optional[FallbackGenerator] = None) -> dict:
    """
    Generate a model and renderer code from any mix of text/sketch/speech/photo.

    Args:
        inputs: Dict with optional "text", "sketch", "speech", "photo". Speech
            may be a transcript or an audio data URL.
        clients: Backend clients shared by every stage.
        fallback: Offline generator override. By default a fresh generator
            seeded with FALLBACK_SEED is built per request, so a pinned seed
            gives the same layout for the same input on every request.

    Returns:
        Dict with modelData, code, metadata, fallbackUsed, message and
        processingTimeMs.
    """
    fallback = fallback or FallbackGenerator(rng=random.Random(FALLBACK_SEED))
    inputs = dict(inputs)

    if is_audio_data_url(inputs.get("speech")):
        inputs["speech"] = await transcribe_speech(clients.speech, inputs["speech"])

    sketch = inputs.get("sketch")
    image = sketch or inputs.get("photo")
    prompt = combine_prompt(inputs.get("text") or "", inputs.get("speech") or "")
    if not prompt and image:
        prompt = DEFAULT_SKETCH_PROMPT

    orchestrator = AgentOrchestrator.from_clients(clients)
    try:
        if should_merge(inputs):
            return await _run_merge(clients, orchestrator, inputs, prompt, image)
        return await _run_orchestrator(orchestrator, prompt, image)
    except CadPipelineError as e:
        logger.warning(f"Design pipeline failed ({e}), using fallback model generation")

    generated = fallback.generate(prompt, sketch)
    return _result(generated["modelData"], generated["code"], fallback_used=True)
