"""
Agent Orchestrator.

Runs the three-stage pipeline Interpret → Design → Emit. A stage only runs
if the previous stage's result carries no ``error``; the first failing stage
is raised as a labeled PipelineStageError. Falling back is the caller's
decision, never the orchestrator's.
"""

import logging
import time
from enum import Enum
from typing import Optional

from services.agents import DesignerAgent, InterpreterAgent, RendererAgent
from services.errors import PipelineStageError
from services.vision_analyzer import VisionAnalyzer

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    INTERPRET = "Interpreter"
    DESIGN = "Designer"
    EMIT = "Code Emitter"


class AgentOrchestrator:
    def __init__(self, interpreter: InterpreterAgent, designer: DesignerAgent,
                 renderer: RendererAgent):
        self.interpreter = interpreter
        self.designer = designer
        self.renderer = renderer

    @classmethod
    def from_clients(cls, clients) -> "AgentOrchestrator":
        """Wire every agent to one shared set of backend clients."""
        return cls(
            interpreter=InterpreterAgent(clients.llm, VisionAnalyzer(clients.vision)),
            designer=DesignerAgent(clients.llm),
            renderer=RendererAgent(clients.llm),
        )

    async def _run_stage(self, stage: PipelineStage, coro) -> dict:
        logger.info(f"Stage {stage.value}: running")
        try:
            result = await coro
        except Exception as e:
            logger.exception(f"Stage {stage.value} raised unexpectedly")
            raise PipelineStageError(stage.value, e) from e

        if result.get("error"):
            logger.warning(f"Stage {stage.value} failed: {result['error']}")
            raise PipelineStageError(stage.value, result["error"])
        return result

    async def process_design_request(self, prompt: str,
                                     sketch_data: Optional[str] = None) -> dict:
        """Run all three stages and return the assembled result."""
        interpreted = await self._run_stage(
            PipelineStage.INTERPRET,
            self.interpreter.execute(prompt=prompt, sketch_data=sketch_data),
        )
        designed = await self._run_stage(
            PipelineStage.DESIGN,
            self.designer.execute(requirements=interpreted["requirements"]),
        )
        rendered = await self._run_stage(
            PipelineStage.EMIT,
            self.renderer.execute(design=designed["design"], original_prompt=prompt),
        )

        return {
            "requirements": interpreted["requirements"],
            "modelData": designed["design"],
            "code": rendered["code"],
            "originalPrompt": prompt,
            "sketchAnalysisPerformed": bool(sketch_data),
        }

    async def process_design_request_with_tracing(self, prompt: str,
                                                  sketch_data: Optional[str] = None) -> dict:
        """Same as process_design_request, plus elapsed ``processingTimeMs``."""
        logger.info("Starting traced agent workflow")
        start = time.perf_counter()
        try:
            result = await self.process_design_request(prompt, sketch_data)
        except Exception:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"Agent workflow failed after {elapsed_ms}ms")
            raise

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"Agent workflow completed in {elapsed_ms}ms")
        return {**result, "processingTimeMs": elapsed_ms}
