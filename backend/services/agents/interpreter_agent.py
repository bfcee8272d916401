"""
Requirement Interpreter agent.

Turns a text description, optionally enriched with a sketch analysis, into a
loose requirements object via one generative call.
"""

import json
import logging
from typing import Optional

from services.agents.base_agent import BaseAgent
from services.errors import AnalysisError, InterpreterError, RemoteCallError

logger = logging.getLogger(__name__)

INTERPRETER_SYSTEM_PROMPT = (
    "You are an Architectural Interpreter Agent. Your role is to analyze sketches and "
    "textual descriptions to extract precise architectural requirements. Extract room "
    "types, dimensions, relationships, and design preferences. Format your output as "
    "structured JSON."
)


def build_interpreter_prompt(text_prompt: str, sketch_analysis: Optional[dict]) -> str:
    prompt = "Extract architectural requirements from the following information:\n\n"

    if text_prompt:
        prompt += f"TEXT DESCRIPTION:\n{text_prompt}\n\n"

    if sketch_analysis:
        prompt += f"SKETCH ANALYSIS:\n{json.dumps(sketch_analysis, indent=2)}\n\n"

    prompt += """Based on the above, extract the following in JSON format:
1. Rooms: types, dimensions, and relationships
2. Design preferences: style, materials, etc.
3. Special features: windows, doors, etc.
4. Constraints: budget, accessibility, etc.

Format your response as a valid JSON object with these elements."""
    return prompt


class InterpreterAgent(BaseAgent):
    name = "Interpreter"
    system_prompt = INTERPRETER_SYSTEM_PROMPT

    def __init__(self, llm, vision_analyzer=None):
        super().__init__(llm)
        self.vision_analyzer = vision_analyzer

    async def interpret(self, text_prompt: str, sketch_analysis: Optional[dict] = None) -> dict:
        """
        Produce a requirements object.

        Malformed model output degrades to {"error", "raw"}; only a failing
        generative call raises InterpreterError.
        """
        prompt = build_interpreter_prompt(text_prompt, sketch_analysis)
        try:
            reply = await self.call_llm(prompt)
        except RemoteCallError as e:
            raise InterpreterError(f"Interpreter Agent failed: {e}") from e
        return self.safe_parse_json(reply)

    async def analyze_sketch(self, sketch_data: str) -> Optional[dict]:
        """Vision hints for the sketch, or None when analysis is unavailable."""
        if not sketch_data or self.vision_analyzer is None:
            return None
        try:
            return await self.vision_analyzer.analyze(sketch_data)
        except AnalysisError as e:
            logger.warning(f"Sketch analysis failed, continuing with prompt only: {e}")
            return None

    async def execute(self, prompt: str = "", sketch_data: Optional[str] = None) -> dict:
        logger.info(
            f"Interpreter Agent processing input with "
            f"{'text prompt' if prompt else 'no prompt'} and "
            f"{'sketch data' if sketch_data else 'no sketch data'}"
        )
        sketch_analysis = await self.analyze_sketch(sketch_data)

        try:
            requirements = await self.interpret(prompt, sketch_analysis)
        except InterpreterError as e:
            return {
                "error": str(e),
                "originalPrompt": prompt,
                "requirementsExtracted": False,
            }

        return {
            "originalPrompt": prompt,
            "sketchAnalysisAvailable": sketch_analysis is not None,
            "requirements": requirements,
        }
