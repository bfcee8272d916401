"""Pull a JSON object out of free-form generative model output."""

import json
import re

from services.errors import ParseError

_FENCED_JSON = re.compile(r'```(?:json)?\s*(.*?)\s*```', re.DOTALL)
_decoder = json.JSONDecoder()


def _decode_first_object(text: str):
    """Decode the first balanced {...} value found in ``text``, or None."""
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
            if isinstance(value, dict):
                return value
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)
    return None


def extract_json_object(text) -> dict:
    """
    Extract the first JSON object from AI response text.

    Fenced ```json blocks win over inline objects. Raises ParseError when no
    JSON object can be decoded.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Empty response", raw=text or "")

    for block in _FENCED_JSON.findall(text):
        value = _decode_first_object(block)
        if value is not None:
            return value

    value = _decode_first_object(text)
    if value is not None:
        return value

    raise ParseError("No valid JSON object found in response", raw=text)

