"""
Fallback Generator: deterministic, network-free model construction.

Used whenever a remote call fails so the caller always gets something
renderable. Text prompts are mined for room counts and room-type keywords;
a supplied sketch yields a fixed seven-room sample layout instead.
"""

import logging
import random
import re
from typing import List, Optional, Tuple

from config import DEFAULT_ROOM_HEIGHT, MAX_FALLBACK_ROOMS
from services.agents.renderer_agent import build_stub_threejs_code
from services.model_validator import WALLS, repair_model
from services.sample_layouts import sketch_layout

logger = logging.getLogger(__name__)

ROOM_TYPES = [
    "bedroom", "bathroom", "kitchen", "living", "dining",
    "office", "study", "hallway", "entrance",
]

# (width, length) in meters
ROOM_DIMENSIONS = {
    "bedroom": (4, 4),
    "bathroom": (3, 2),
    "kitchen": (4, 4),
    "living": (5, 7),
    "dining": (4, 5),
    "office": (4, 4),
    "study": (3, 3),
    "hallway": (2, 5),
    "entrance": (3, 3),
}
DEFAULT_DIMENSIONS = (4, 4)

WINDOWLESS_TYPES = {"hallway", "entrance"}

ANCHOR_STRATEGIES = ("random", "latest")


def tokenize(prompt) -> List[str]:
    if not prompt:
        return []
    return re.findall(r'[a-z]+|\d+', str(prompt).lower())


def _match_room_type(word: str) -> Optional[str]:
    for rtype in ROOM_TYPES:
        if word in (rtype, rtype + "s", rtype + "room", rtype + "rooms"):
            return rtype
    return None


def _parse_count(token: str) -> int:
    # Absurdly long digit runs would only be clamped anyway
    if len(token) > 3:
        return MAX_FALLBACK_ROOMS
    return int(token)


def parse_room_plan(words: List[str]) -> Tuple[Optional[int], dict, List[str]]:
    """
    Scan tokens for room counts and room types.

    Returns (target_total, typed_counts, detected_types): ``3 rooms`` sets the
    total target, ``3 bedrooms`` sets a per-type count, and any keyword
    mention marks the type as detected.
    """
    target_total = None
    typed_counts = {}

    for number, word in zip(words, words[1:]):
        if not number.isdigit() or not (word.endswith("room") or word.endswith("rooms")):
            continue
        count = _parse_count(number)
        rtype = _match_room_type(word)
        if rtype:
            typed_counts.setdefault(rtype, count)
        elif word in ("room", "rooms") and target_total is None:
            target_total = count

    mentioned = {t for t in (_match_room_type(w) for w in words) if t}
    detected = [t for t in ROOM_TYPES if t in mentioned]
    return target_total, typed_counts, detected


def plan_room_names(words: List[str]) -> List[Tuple[str, Optional[str]]]:
    """(name, type) for every room to build, main room first, clamped to [1, MAX]."""
    target_total, typed_counts, detected = parse_room_plan(words)

    main_type = "living" if "living" in detected else None
    plan = [("living" if main_type else "mainRoom", main_type)]

    for rtype in detected:
        if rtype == main_type:
            continue
        count = typed_counts.get(rtype, 1)
        if count <= 0:
            continue
        if count == 1:
            plan.append((rtype, rtype))
        else:
            plan.extend((f"{rtype}{n}", rtype) for n in range(1, count + 1))
        if len(plan) >= MAX_FALLBACK_ROOMS:
            break

    if target_total:
        while len(plan) < min(target_total, MAX_FALLBACK_ROOMS):
            plan.append((f"room{len(plan) + 1}", None))

    return plan[:MAX_FALLBACK_ROOMS]


class FallbackGenerator:
    """
    Build a layout without any remote call.

    Args:
        rng: Random source for anchor and window-wall choices; seed it for
            reproducible layouts.
        anchor_strategy: "random" anchors each new room on a random placed
            room; "latest" always uses the most recently placed room.
    """

    def __init__(self, rng: Optional[random.Random] = None, anchor_strategy: str = "random"):
        if anchor_strategy not in ANCHOR_STRATEGIES:
            raise ValueError(f"Unknown anchor strategy: {anchor_strategy}")
        self.rng = rng or random.Random()
        self.anchor_strategy = anchor_strategy

    def _pick_anchor(self, rooms: list) -> dict:
        if self.anchor_strategy == "latest":
            return rooms[-1]
        return self.rng.choice(rooms)

    def build_text_layout(self, prompt) -> dict:
        plan = plan_room_names(tokenize(prompt))

        main_name, main_type = plan[0]
        main_w, main_l = ROOM_DIMENSIONS["living"]
        rooms = [{
            "name": main_name,
            "width": main_w,
            "length": main_l,
            "height": DEFAULT_ROOM_HEIGHT,
            "x": 0,
            "y": 0,
            "z": 0,
            "connected_to": [],
        }]
        windows = [{"room": main_name, "wall": "south", "width": 2, "height": 1.5, "position": 0.5}]
        doors = []

        for i, (name, rtype) in enumerate(plan[1:]):
            width, length = ROOM_DIMENSIONS.get(rtype, DEFAULT_DIMENSIONS)
            anchor = self._pick_anchor(rooms)
            x, z = anchor["x"], anchor["z"]

            placement = i % 4
            if placement == 0:      # right
                x = anchor["x"] + anchor["width"]
            elif placement == 1:    # bottom
                z = anchor["z"] + anchor["length"]
            elif placement == 2:    # left
                x = anchor["x"] - width
            else:                   # top
                z = anchor["z"] - length

            rooms.append({
                "name": name,
                "width": width,
                "length": length,
                "height": DEFAULT_ROOM_HEIGHT,
                "x": x,
                "y": 0,
                "z": z,
                "connected_to": [anchor["name"]],
            })
            anchor["connected_to"].append(name)
            doors.append({"from": anchor["name"], "to": name, "width": 1.0, "height": 2.1})

            if rtype not in WINDOWLESS_TYPES:
                windows.append({
                    "room": name,
                    "wall": self.rng.choice(WALLS),
                    "width": 1.5,
                    "height": 1.2,
                    "position": 0.5,
                })

        return {"rooms": rooms, "windows": windows, "doors": doors}

    def generate(self, prompt=None, sketch_data=None) -> dict:
        """Return {"modelData", "code"}; never raises."""
        prompt_text = prompt if isinstance(prompt, str) else ("" if prompt is None else str(prompt))
        has_sketch = bool(sketch_data)
        logger.info(
            f"Using fallback CAD model generation "
            f"({'sketch layout' if has_sketch else 'text layout'})"
        )

        if has_sketch:
            model = sketch_layout()
        else:
            model = self.build_text_layout(prompt_text)

        model = repair_model(model, preserve_structure=has_sketch)
        return {
            "modelData": model,
            "code": build_stub_threejs_code(model, prompt_text),
        }
