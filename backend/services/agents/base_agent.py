"""Shared plumbing for the generative-model agents."""

import logging

from services.errors import ParseError, RemoteCallError
from services.json_extract import extract_json_object

logger = logging.getLogger(__name__)

PARSE_FAILURE = "Failed to parse response"


class BaseAgent:
    """
    An agent owns one system prompt and talks to the injected text backend.

    Subclasses implement ``execute`` and return a result dict; a result that
    carries an ``error`` key means the stage failed.
    """

    name = "Agent"
    system_prompt = ""
    default_temperature = 0.2

    def __init__(self, llm):
        self.llm = llm

    async def execute(self, **kwargs) -> dict:
        raise NotImplementedError

    async def call_llm(self, prompt: str, temperature=None) -> str:
        if temperature is None:
            temperature = self.default_temperature
        try:
            return await self.llm.complete(self.system_prompt, prompt, temperature)
        except RemoteCallError as e:
            logger.warning(f"{self.name} agent LLM call failed: {e}")
            raise

    def safe_parse_json(self, text: str) -> dict:
        """Parse a JSON object from the reply, or return {"error", "raw"}."""
        try:
            return extract_json_object(text)
        except ParseError as e:
            logger.warning(f"{self.name} agent could not parse the reply: {e}")
            logger.debug(f"Raw reply: {text!r}")
            return {"error": PARSE_FAILURE, "raw": e.raw}
