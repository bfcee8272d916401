"""
Multimodal Merger.

When two or more of sketch/speech/photo arrive together, the three-stage
pipeline is bypassed: both images are analyzed concurrently, then a single
combined generative call sees every modality at once. Metadata about the
merged model (counts, area, contribution weights) is derived afterwards,
deterministically, from the repaired model.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from shapely.geometry import box

from config import MERGE_RETRY_TEMPERATURE, MODALITY_PRIORS
from services.errors import (
    AnalysisError, CadPipelineError, MultimodalMergeError, ParseError, RemoteCallError,
)
from services.json_extract import extract_json_object
from services.model_validator import repair_model

logger = logging.getLogger(__name__)

NON_TEXT_MODALITIES = ("sketch", "speech", "photo")

MERGE_SYSTEM_PROMPT = (
    "You are an architectural AI assistant that interprets multiple types of input to create "
    "detailed building specifications. Analyze all provided inputs (text descriptions, speech input, "
    "sketch analysis, photo analysis) and create a unified architectural model. "
    "Your output should follow the exact format required for the CAD generation system."
)

MERGE_OUTPUT_FORMAT = """Based on all these inputs, create a complete architectural specification that follows this structure:
{
  "rooms": [
    {
      "name": "string",
      "width": number,
      "length": number,
      "height": number,
      "x": number,
      "y": number,
      "z": number,
      "connected_to": ["string"]
    }
  ],
  "windows": [{"room": "string", "wall": "north|south|east|west", "width": number, "height": number, "position": number}],
  "doors": [{"from": "string", "to": "string", "width": number, "height": number}]
}"""

MERGE_TEMPERATURE = 0.2


def count_modalities(inputs: dict) -> int:
    """Number of non-text modalities supplied. Text never counts."""
    return sum(1 for key in NON_TEXT_MODALITIES if inputs.get(key))


def should_merge(inputs: dict) -> bool:
    return count_modalities(inputs) >= 2


@dataclass
class RetryPolicy:
    """
    Bounded retry with an amended prompt.

    ``attempt(prompt, temperature)`` produces a result; a result is accepted
    once ``predicate`` holds. Results that still fail the predicate are
    discarded in favor of the first one.
    """

    predicate: Callable[[Any], bool]
    amend: Callable[[str], str]
    max_attempts: int = 2
    temperature: float = MERGE_RETRY_TEMPERATURE

    async def run(self, attempt: Callable[[str, float], Awaitable[Any]],
                  prompt: str, first_result):
        if self.predicate(first_result):
            return first_result

        amended = prompt
        for n in range(2, self.max_attempts + 1):
            amended = self.amend(amended)
            logger.info(f"Retrying combined call (attempt {n}/{self.max_attempts})")
            try:
                result = await attempt(amended, self.temperature)
            except CadPipelineError as e:
                logger.warning(f"Retry attempt {n} failed: {e}")
                break
            if self.predicate(result):
                return result

        logger.info("Retry did not improve the result; keeping the first response")
        return first_result


def has_multiple_rooms(model) -> bool:
    rooms = model.get("rooms") if isinstance(model, dict) else None
    return isinstance(rooms, list) and len(rooms) > 1


def multiple_rooms_retry_policy(expected_rooms: int) -> RetryPolicy:
    """Retry once when sketch evidence shows several rooms but only one came back."""
    def amend(prompt: str) -> str:
        return (
            f"{prompt}\n\n"
            "ERROR: Your previous response only included a single room, but the sketch clearly "
            "shows multiple rooms or areas.\n"
            f"PLEASE CREATE MULTIPLE SEPARATE ROOMS in your response - at least {expected_rooms} rooms.\n"
            "The visualization needs separate room objects to display a proper multi-room floor plan."
        )

    return RetryPolicy(
        predicate=lambda result: has_multiple_rooms(result[0]),
        amend=amend,
    )


def build_merge_prompt(text: str, speech_text: str, sketch_analysis: Optional[dict],
                       photo_analysis: Optional[dict]) -> str:
    message = "Please analyze these inputs and create a detailed architectural specification:\n\n"
    if text:
        message += f"TEXT DESCRIPTION:\n{text}\n\n"
    if speech_text:
        message += f"VOICE INPUT:\n{speech_text}\n\n"
    if sketch_analysis:
        message += f"SKETCH ANALYSIS:\n{json.dumps(sketch_analysis, indent=2)}\n\n"
    if photo_analysis:
        message += f"PHOTO ANALYSIS:\n{json.dumps(photo_analysis, indent=2)}\n\n"
    return message + MERGE_OUTPUT_FORMAT


def _room_area(room: dict) -> float:
    footprint = box(room["x"], room["z"], room["x"] + room["width"], room["z"] + room["length"])
    return footprint.area


def contribution_weights(present: dict) -> dict:
    """Fixed priors, normalized over the modalities actually present."""
    weights = {key: (prior if present.get(key) else 0.0) for key, prior in MODALITY_PRIORS.items()}
    total = sum(weights.values())
    if total > 0:
        weights = {key: value / total for key, value in weights.items()}
    return weights


def compute_metadata(model: dict, present: dict, photo_analysis: Optional[dict] = None) -> dict:
    rooms = model.get("rooms") if isinstance(model.get("rooms"), list) else []
    windows = model.get("windows") if isinstance(model.get("windows"), list) else []
    doors = model.get("doors") if isinstance(model.get("doors"), list) else []

    largest = None
    total_area = 0.0
    for room in rooms:
        area = _room_area(room)
        total_area += area
        if largest is None or area > largest["area"]:
            largest = {"name": room["name"], "area": area}

    style = "modern"
    if photo_analysis:
        photo_style = (photo_analysis.get("architecturalFeatures") or {}).get("style", "unknown")
        if photo_style and photo_style != "unknown":
            style = photo_style

    return {
        "inputModalities": {key: bool(present.get(key)) for key in MODALITY_PRIORS},
        "modelStatistics": {
            "roomCount": len(rooms),
            "windowCount": len(windows),
            "doorCount": len(doors),
            "totalArea": total_area,
            "largestRoom": largest,
        },
        "suggestedStyle": style,
        "sourceContribution": contribution_weights(present),
    }


async def _skip():
    return None


class MultimodalProcessor:
    def __init__(self, llm, vision_analyzer):
        self.llm = llm
        self.vision_analyzer = vision_analyzer

    async def analyze_images(self, sketch: Optional[str], photo: Optional[str]):
        """Sketch and photo analysis, concurrently. A failed analysis yields None."""
        results = await asyncio.gather(
            self.vision_analyzer.analyze(sketch) if sketch else _skip(),
            self.vision_analyzer.analyze_photo(photo) if photo else _skip(),
            return_exceptions=True,
        )
        analyses = []
        for label, result in zip(("sketch", "photo"), results):
            if isinstance(result, AnalysisError):
                logger.warning(f"Error in {label} analysis, continuing without it: {result}")
                result = None
            elif isinstance(result, BaseException):
                raise result
            analyses.append(result)
        return analyses[0], analyses[1]

    async def _combined_call(self, prompt: str, temperature: float):
        """One combined generative call; returns (parsed_model, raw_content)."""
        try:
            content = await self.llm.complete(MERGE_SYSTEM_PROMPT, prompt, temperature)
        except RemoteCallError as e:
            raise MultimodalMergeError(f"Combined generative call failed: {e}") from e
        return extract_json_object(content), content

    async def merge(self, inputs: dict) -> dict:
        """
        Merge every supplied modality into one model.

        Returns {"modelData", "metadata", "rawResponse"}. When the reply holds
        no JSON, modelData is {"error", "rawContent"} so the caller can decide
        whether the raw text is still useful as a prompt. Raises
        MultimodalMergeError when the generative call itself fails.
        """
        logger.info("Processing multimodal input with Azure AI services")
        text = inputs.get("text") or ""
        speech_text = inputs.get("speech") or ""

        sketch_analysis, photo_analysis = await self.analyze_images(
            inputs.get("sketch"), inputs.get("photo"),
        )
        present = {
            "text": bool(text),
            "speech": bool(speech_text),
            "sketch": sketch_analysis is not None,
            "photo": photo_analysis is not None,
        }

        prompt = build_merge_prompt(text, speech_text, sketch_analysis, photo_analysis)
        try:
            model, content = await self._combined_call(prompt, MERGE_TEMPERATURE)
        except ParseError as e:
            logger.warning(f"Error extracting model data: {e}")
            return {
                "modelData": {"error": "Failed to parse model data", "rawContent": e.raw},
                "metadata": compute_metadata({}, present, photo_analysis),
                "rawResponse": e.raw,
            }

        expected_rooms = len((sketch_analysis or {}).get("potentialRooms") or [])
        if expected_rooms > 1:
            policy = multiple_rooms_retry_policy(expected_rooms)
            model, content = await policy.run(self._combined_call, prompt, (model, content))

        model = repair_model(model, preserve_structure=sketch_analysis is not None)
        return {
            "modelData": model,
            "metadata": compute_metadata(model, present, photo_analysis),
            "rawResponse": content,
        }
