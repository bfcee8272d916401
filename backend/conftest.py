"""
Shared fakes for the test suite.

No test talks to Azure: the text, vision and speech backends are replaced by
scripted in-memory clients injected through ServiceClients.
"""
import base64
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(__file__))

from services.azure_clients import ServiceClients
from services.errors import AnalysisError, RemoteCallError, SpeechRecognitionError

# A designer reply: two connected rooms without a door, one windowless
DESIGN_REPLY = json.dumps({
    "rooms": [
        {"name": "Living Room", "width": 6, "length": 5, "height": 3, "x": 0, "y": 0, "z": 0,
         "connected_to": ["Kitchen"]},
        {"name": "Kitchen", "width": 3, "length": 4, "height": 3, "x": 6, "y": 0, "z": 0,
         "connected_to": ["Living Room"]},
        {"name": "Storage", "width": 2, "length": 2, "height": 3, "x": 9, "y": 0, "z": 0},
    ],
    "windows": [{"room": "Kitchen", "wall": "east", "width": 1.2, "height": 1, "position": 0.5}],
    "doors": [],
})

ONE_ROOM = json.dumps({"rooms": [{"name": "studio", "width": 6, "length": 6, "height": 3,
                                  "connected_to": []}]})
TWO_ROOMS = json.dumps({"rooms": [
    {"name": "a", "width": 4, "length": 5, "height": 3, "x": 0, "z": 0, "connected_to": ["b"]},
    {"name": "b", "width": 3, "length": 3, "height": 3, "x": 4, "z": 0},
]})

# Vision result for a sketch showing two rooms
TWO_RECTANGLES = {"objects": [
    {"object": "rectangle", "confidence": 0.8, "rectangle": {"x": 0, "y": 0, "w": 50, "h": 50}},
    {"object": "rectangle", "confidence": 0.7, "rectangle": {"x": 50, "y": 0, "w": 30, "h": 50}},
]}


def data_url(payload: bytes = b"fake-image", mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode()}"


class FakeLLM:
    """
    Scripted text backend.

    ``replies`` are returned in order (the last one repeats); an Exception
    instance in the list is raised instead. Every call is recorded.
    """

    def __init__(self, *replies):
        self.replies = list(replies) or [RemoteCallError("no reply scripted")]
        self.calls = []

    async def complete(self, system_prompt, user_prompt, temperature=0.2, max_tokens=4000):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
        })
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeVision:
    """Returns ``result`` for every image, or raises ``error``."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {}
        self.error = error
        self.calls = []

    async def analyze_image(self, image_bytes, features, details=None):
        self.calls.append({"bytes": image_bytes, "features": features, "details": details})
        if self.error is not None:
            raise self.error
        return self.result


class FakeSpeech:
    def __init__(self, text="a two bedroom house", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def recognize(self, audio_bytes, content_type="audio/wav"):
        self.calls.append({"bytes": audio_bytes, "content_type": content_type})
        if self.error is not None:
            raise self.error
        return self.text


def make_clients(llm=None, vision=None, speech=None) -> ServiceClients:
    return ServiceClients(
        llm=llm or FakeLLM(),
        vision=vision or FakeVision(error=AnalysisError("vision offline")),
        speech=speech or FakeSpeech(error=SpeechRecognitionError("speech offline")),
    )


@pytest.fixture
def offline_clients():
    """Every backend fails, as with no Azure keys configured."""
    return make_clients()
