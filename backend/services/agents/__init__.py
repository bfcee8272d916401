"""
Generative-model agents for the three-stage design pipeline.

Interpreter → Designer → Code Emitter, each wrapping one Azure OpenAI call.
"""

from .base_agent import BaseAgent
from .interpreter_agent import InterpreterAgent
from .designer_agent import DesignerAgent
from .renderer_agent import RendererAgent, build_stub_threejs_code

__all__ = [
    "BaseAgent",
    "InterpreterAgent",
    "DesignerAgent",
    "RendererAgent",
    "build_stub_threejs_code",
]
