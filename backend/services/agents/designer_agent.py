"""
Designer agent.

Expands a requirements object into a full rooms/windows/doors model via a
generative call, then repairs it. Output without any rooms is replaced by the
canonical four-room layout: an opinionated default beats an empty building.
"""

import json
import logging

from services.agents.base_agent import BaseAgent
from services.errors import DesignerError, RemoteCallError
from services.model_validator import repair_model
from services.sample_layouts import canonical_layout

logger = logging.getLogger(__name__)

DESIGNER_SYSTEM_PROMPT = (
    "You are an Architectural Designer Agent. Your role is to create detailed "
    "architectural layouts based on requirements. You must follow building codes and "
    "design principles. Create layouts with proper dimensions and spatial relationships."
)

# Rooms whose names contain these need natural light
LIVING_SPACE_KEYWORDS = ("living", "bedroom", "kitchen", "dining")

DEFAULT_LIVING_WINDOW = {"wall": "south", "width": 1.2, "height": 1.0, "position": 0.5}


def build_designer_prompt(requirements: dict) -> str:
    return f"""Create a detailed architectural design based on these requirements:
{json.dumps(requirements, indent=2)}

Generate a complete 3D model with:
1. Multiple rooms with appropriate dimensions and positions
2. Proper connections between rooms (doors)
3. Windows placed appropriately on walls
4. Logical spatial relationships

Your response must be a valid JSON object with the following structure:
{{
  "rooms": [
    {{
      "name": "string",
      "width": number,
      "length": number,
      "height": number,
      "x": number,
      "y": number,
      "z": number,
      "connected_to": ["string"]
    }}
  ],
  "windows": [
    {{
      "room": "string",
      "wall": "north|south|east|west",
      "width": number,
      "height": number,
      "position": number (0-1 along wall)
    }}
  ],
  "doors": [
    {{
      "from": "string",
      "to": "string",
      "width": number,
      "height": number
    }}
  ]
}}

IMPORTANT:
- Ensure all measurements are in meters.
- Position rooms logically with proper spatial relationships.
- Include at least one window per living space.
- Ensure doors connect adjacent rooms correctly.
- Use standard dimensions (doors: ~0.9m width, windows: ~1.2m width).
- Make each room's dimensions appropriate for its function."""


def add_living_space_windows(model: dict) -> int:
    """Give every windowless living space a centered south window. Returns count added."""
    added = 0
    for room in model["rooms"]:
        name = room["name"].lower()
        if not any(k in name for k in LIVING_SPACE_KEYWORDS):
            continue
        if any(w["room"] == room["name"] for w in model["windows"]):
            continue
        model["windows"].append({"room": room["name"], **DEFAULT_LIVING_WINDOW})
        added += 1
    return added


def enhance_design(raw_design) -> dict:
    """Repair a raw generated design into a complete model."""
    rooms = raw_design.get("rooms") if isinstance(raw_design, dict) else None
    if not isinstance(rooms, list) or not rooms:
        logger.warning("Invalid design structure, using canonical fallback layout")
        raw_design = canonical_layout()

    design = repair_model(raw_design, preserve_structure=False)
    design.pop("error", None)
    design.pop("raw", None)

    added = add_living_space_windows(design)
    if added:
        logger.info(f"Added {added} default window(s) to living spaces")
    return design


class DesignerAgent(BaseAgent):
    name = "Designer"
    system_prompt = DESIGNER_SYSTEM_PROMPT
    default_temperature = 0.4

    async def design(self, requirements: dict) -> dict:
        """Generate and repair a model. Raises DesignerError if the call fails."""
        try:
            reply = await self.call_llm(build_designer_prompt(requirements))
        except RemoteCallError as e:
            raise DesignerError(f"Designer Agent failed: {e}") from e
        return enhance_design(self.safe_parse_json(reply))

    async def execute(self, requirements=None) -> dict:
        logger.info("Designer Agent processing requirements")
        try:
            design = await self.design(requirements)
        except DesignerError as e:
            return {
                "error": str(e),
                "requirements": requirements,
                "designCreated": False,
            }
        return {"requirements": requirements, "design": design}
