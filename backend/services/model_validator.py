"""
Model repair / validation.

Normalizes a raw rooms/windows/doors graph so the renderer never receives a
structurally broken model. Repair never rejects: every defect is replaced
with a sensible default, windows and doors pointing at unknown rooms are
dropped, and (unless the structure is preserved) doors implied by
``connected_to`` are synthesized.

The model is a plain dict and is mutated in place; the same dict is returned.
Running repair on its own output is a no-op.
"""

import logging
import math

from config import DEFAULT_ROOM_HEIGHT

logger = logging.getLogger(__name__)

WALLS = ("north", "south", "east", "west")

DEFAULT_ROOM_WIDTH = 4.0
DEFAULT_ROOM_LENGTH = 4.0
DEFAULT_WINDOW_WIDTH = 1.5
DEFAULT_WINDOW_HEIGHT = 1.2
DEFAULT_WINDOW_POSITION = 0.5
DEFAULT_DOOR_WIDTH = 1.0
DEFAULT_DOOR_HEIGHT = 2.1


def ensure_positive_number(value, default: float) -> float:
    """Parse ``value`` as a number; fall back to ``default`` unless finite and > 0."""
    if isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(num) or num <= 0:
        return default
    return num


def _coordinate(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    return num if math.isfinite(num) else 0.0


def _window_position(value) -> float:
    if value is None or isinstance(value, bool):
        return DEFAULT_WINDOW_POSITION
    try:
        num = float(value)
    except (TypeError, ValueError):
        return DEFAULT_WINDOW_POSITION
    if not math.isfinite(num):
        return DEFAULT_WINDOW_POSITION
    return min(1.0, max(0.0, num))


def _is_room_ref(value, room_names: set) -> bool:
    return isinstance(value, str) and value in room_names


def default_room() -> dict:
    return {
        "name": "defaultRoom",
        "width": 5.0,
        "length": 5.0,
        "height": DEFAULT_ROOM_HEIGHT,
        "x": 0.0,
        "y": 0.0,
        "z": 0.0,
        "connected_to": [],
    }


def door_exists(doors: list, a: str, b: str) -> bool:
    """True if any door joins ``a`` and ``b`` in either direction."""
    return any(
        (d.get("from") == a and d.get("to") == b) or (d.get("from") == b and d.get("to") == a)
        for d in doors
    )


def _repair_rooms(model: dict) -> None:
    rooms = model.get("rooms")
    if isinstance(rooms, list):
        rooms = [r for r in rooms if isinstance(r, dict)]
    if not rooms:
        logger.info("Model has no rooms, substituting default room")
        rooms = [default_room()]
    model["rooms"] = rooms

    for i, room in enumerate(rooms):
        room["name"] = str(room["name"]) if room.get("name") else f"room{i + 1}"
        room["width"] = ensure_positive_number(room.get("width"), DEFAULT_ROOM_WIDTH)
        room["length"] = ensure_positive_number(room.get("length"), DEFAULT_ROOM_LENGTH)
        room["height"] = ensure_positive_number(room.get("height"), DEFAULT_ROOM_HEIGHT)
        for axis in ("x", "y", "z"):
            room[axis] = _coordinate(room.get(axis))
        connections = room.get("connected_to")
        if not isinstance(connections, list):
            connections = []
        room["connected_to"] = [n for n in connections if isinstance(n, str) and n]


def _repair_windows(model: dict, room_names: set) -> None:
    windows = model.get("windows")
    if not isinstance(windows, list):
        windows = []

    kept = []
    for window in windows:
        if not isinstance(window, dict) or not _is_room_ref(window.get("room"), room_names):
            continue
        wall = window.get("wall")
        wall = wall.lower() if isinstance(wall, str) else ""
        window["wall"] = wall if wall in WALLS else "south"
        window["width"] = ensure_positive_number(window.get("width"), DEFAULT_WINDOW_WIDTH)
        window["height"] = ensure_positive_number(window.get("height"), DEFAULT_WINDOW_HEIGHT)
        window["position"] = _window_position(window.get("position"))
        kept.append(window)

    dropped = len(windows) - len(kept)
    if dropped:
        logger.info(f"Dropped {dropped} window(s) referencing unknown rooms")
    model["windows"] = kept


def _repair_doors(model: dict, room_names: set, preserve_structure: bool) -> None:
    doors = model.get("doors")
    if not isinstance(doors, list):
        doors = []
    doors = [
        d for d in doors
        if isinstance(d, dict)
        and _is_room_ref(d.get("from"), room_names)
        and _is_room_ref(d.get("to"), room_names)
    ]

    if not preserve_structure:
        synthesized = 0
        for room in model["rooms"]:
            for other in room["connected_to"]:
                if _is_room_ref(other, room_names) and not door_exists(doors, room["name"], other):
                    doors.append({
                        "from": room["name"],
                        "to": other,
                        "width": DEFAULT_DOOR_WIDTH,
                        "height": DEFAULT_DOOR_HEIGHT,
                    })
                    synthesized += 1
        if synthesized:
            logger.info(f"Synthesized {synthesized} door(s) from room connections")

    for door in doors:
        door["width"] = ensure_positive_number(door.get("width"), DEFAULT_DOOR_WIDTH)
        door["height"] = ensure_positive_number(door.get("height"), DEFAULT_DOOR_HEIGHT)
    model["doors"] = doors


def repair_model(model, preserve_structure: bool = False) -> dict:
    """
    Repair a raw model so it satisfies the floor-plan invariants.

    Args:
        model: Raw model dict (rooms/windows/doors); anything else is treated
            as an empty model.
        preserve_structure: When True (sketch-derived models) only missing
            fields are fixed; no doors are synthesized from connections.

    Returns:
        The repaired model dict.
    """
    if not isinstance(model, dict):
        model = {}

    _repair_rooms(model)
    room_names = {room["name"] for room in model["rooms"]}
    _repair_windows(model, room_names)
    _repair_doors(model, room_names, preserve_structure)
    return model
