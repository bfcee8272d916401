"""
Sketch and photo analysis.

Wraps the vision backend and turns its raw detections into spatial hints:
bounding-box edges as line segments, and candidate room rectangles.
"""

import logging
import math
from typing import List, Optional

from shapely.geometry import MultiLineString

from config import FALLBACK_ROOM_CONFIDENCE
from services.azure_clients import decode_data_url
from services.errors import AnalysisError

logger = logging.getLogger(__name__)

SKETCH_FEATURES = ["Objects", "Categories", "Tags", "Description"]
PHOTO_FEATURES = ["Objects", "Tags", "Categories", "Description"]

ROOM_SHAPE_CLASSES = {"rectangle", "square", "shape"}

ARCHITECTURAL_TAGS = {
    "building", "wall", "ceiling", "floor", "door", "window",
    "column", "arch", "stairs", "balcony", "facade",
}

# First match wins, so order matters
STYLE_KEYWORDS = {
    "modern": ["modern", "contemporary", "minimalist"],
    "classical": ["classical", "column", "symmetrical", "ornate"],
    "victorian": ["victorian", "ornate", "detailed"],
    "industrial": ["industrial", "exposed", "brick", "metal", "concrete"],
    "traditional": ["traditional", "conventional"],
}


def _number(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    return num if math.isfinite(num) else 0.0


def _rectangle(obj):
    """(x, y, w, h) of a detection's bounding box, or None when it has none."""
    rect = obj.get("rectangle") if isinstance(obj, dict) else None
    if not isinstance(rect, dict) or not rect:
        return None
    return tuple(_number(rect.get(k)) for k in ("x", "y", "w", "h"))


def extract_lines_from_objects(objects: list) -> List[dict]:
    """Turn each detected object's bounding rectangle into its four edges."""
    lines = []
    for obj in objects or []:
        rect = _rectangle(obj)
        if rect is None:
            continue
        x, y, w, h = rect
        common = {"confidence": obj.get("confidence"), "objectName": obj.get("object")}

        lines.append({"type": "horizontal", "x1": x, "y1": y, "x2": x + w, "y2": y, **common})
        lines.append({"type": "horizontal", "x1": x, "y1": y + h, "x2": x + w, "y2": y + h, **common})
        lines.append({"type": "vertical", "x1": x, "y1": y, "x2": x, "y2": y + h, **common})
        lines.append({"type": "vertical", "x1": x + w, "y1": y, "x2": x + w, "y2": y + h, **common})
    return lines


def _lines_bounds(lines: list):
    segments = [
        ((_number(l["x1"]), _number(l["y1"])), (_number(l["x2"]), _number(l["y2"])))
        for l in lines
        if isinstance(l, dict) and all(l.get(k) is not None for k in ("x1", "y1", "x2", "y2"))
    ]
    if not segments:
        return None
    return MultiLineString(segments).bounds


def detect_potential_rooms(objects: list, lines: Optional[list] = None) -> List[dict]:
    """
    Derive candidate room rectangles from detections.

    Rectangle/square/shape objects become rooms directly. When none exist but
    line segments do, the bounding box of every line becomes one ``mainRoom``:
    the sketch could not be segmented, so treat it as a single room.
    """
    rooms = []
    for obj in objects or []:
        if not isinstance(obj, dict) or obj.get("object") not in ROOM_SHAPE_CLASSES:
            continue
        rect = _rectangle(obj)
        if rect is None:
            continue
        x, y, w, h = rect
        rooms.append({
            "name": f"room{len(rooms) + 1}",
            "bounds": {"x": x, "y": y, "width": w, "height": h},
            "confidence": obj.get("confidence"),
        })

    if not rooms and lines:
        bounds = _lines_bounds(lines)
        if bounds is not None:
            min_x, min_y, max_x, max_y = bounds
            rooms.append({
                "name": "mainRoom",
                "bounds": {
                    "x": min_x,
                    "y": min_y,
                    "width": max_x - min_x,
                    "height": max_y - min_y,
                },
                "confidence": FALLBACK_ROOM_CONFIDENCE,
            })
    return rooms


def _caption(result: dict) -> str:
    captions = (result.get("description") or {}).get("captions") or []
    if captions and isinstance(captions[0], dict):
        return captions[0].get("text", "")
    return ""


def extract_architectural_features(result: dict) -> dict:
    """Building elements and a coarse style guess from photo tags."""
    tags = [t for t in result.get("tags") or [] if isinstance(t, dict) and t.get("name")]
    elements = [
        {"element": t["name"], "confidence": t.get("confidence")}
        for t in tags
        if t["name"].lower() in ARCHITECTURAL_TAGS
    ]

    style = "unknown"
    names = [t["name"].lower() for t in tags]
    for candidate, keywords in STYLE_KEYWORDS.items():
        if any(k in name for k in keywords for name in names):
            style = candidate
            break

    return {
        "buildingElements": elements,
        "estimatedDimensions": None,
        "style": style,
    }


def _sketch_analysis(result: dict) -> dict:
    objects = [o for o in result.get("objects") or [] if isinstance(o, dict)]
    explicit_lines = result.get("lines") or []
    derived_lines = extract_lines_from_objects(objects)
    return {
        "objects": objects,
        "tags": result.get("tags") or [],
        "categories": result.get("categories") or [],
        "description": _caption(result),
        "lines": explicit_lines,
        "derivedLines": derived_lines,
        "potentialRooms": detect_potential_rooms(objects, explicit_lines or derived_lines),
    }


def _photo_analysis(result: dict) -> dict:
    landmarks = [
        c for c in result.get("categories") or []
        if isinstance(c, dict) and ((c.get("detail") or {}).get("landmarks"))
    ]
    return {
        "description": _caption(result) or "No description available",
        "objects": result.get("objects") or [],
        "tags": result.get("tags") or [],
        "landmarks": landmarks,
        "architecturalFeatures": extract_architectural_features(result),
    }


class VisionAnalyzer:
    """Structured spatial hints from sketch and photo data URLs."""

    def __init__(self, vision_client):
        self.vision_client = vision_client

    async def analyze(self, image_data_url: str) -> dict:
        """
        Analyze a sketch.

        Raises AnalysisError when decoding, the remote call, or reading the
        returned detections fails.
        """
        image_bytes = decode_data_url(image_data_url)
        try:
            result = await self.vision_client.analyze_image(image_bytes, SKETCH_FEATURES)
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisError(f"Sketch analysis failed: {e}") from e

        try:
            analysis = _sketch_analysis(result)
        except (TypeError, ValueError, AttributeError) as e:
            raise AnalysisError(f"Malformed sketch analysis result: {e}") from e
        logger.info(
            f"Sketch analysis: {len(analysis['objects'])} objects, "
            f"{len(analysis['potentialRooms'])} potential rooms"
        )
        return analysis

    async def analyze_photo(self, image_data_url: str) -> dict:
        """Analyze a photo of a real building or space."""
        image_bytes = decode_data_url(image_data_url)
        try:
            result = await self.vision_client.analyze_image(
                image_bytes, PHOTO_FEATURES, details=["Landmarks"],
            )
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisError(f"Photo analysis failed: {e}") from e

        try:
            return _photo_analysis(result)
        except (TypeError, ValueError, AttributeError) as e:
            raise AnalysisError(f"Malformed photo analysis result: {e}") from e
