"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# ---------- Model data ----------
class RoomOut(BaseModel):
    name: str
    width: float
    length: float
    height: float
    x: float = 0
    y: float = 0
    z: float = 0
    connected_to: list[str] = []


class WindowOut(BaseModel):
    room: str
    wall: str = "south"
    width: float
    height: float
    position: float = 0.5


class DoorOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_room: str = Field(..., alias="from")
    to: str
    width: float
    height: float


class ModelData(BaseModel):
    rooms: list[RoomOut]
    windows: list[WindowOut] = []
    doors: list[DoorOut] = []


# ---------- CAD generation ----------
class CadGenerateRequest(BaseModel):
    prompt: Optional[str] = None
    sketchData: Optional[str] = Field(None, description="Sketch as a base64 data URL")
    speechData: Optional[str] = Field(None, description="Transcript or audio data URL")
    photoData: Optional[str] = Field(None, description="Photo as a base64 data URL")

    def to_inputs(self) -> dict:
        return {
            "text": self.prompt,
            "sketch": self.sketchData,
            "speech": self.speechData,
            "photo": self.photoData,
        }


class MultimodalRequest(BaseModel):
    text: Optional[str] = None
    sketch: Optional[str] = None
    speech: Optional[str] = None
    photo: Optional[str] = None

    def to_inputs(self) -> dict:
        return {
            "text": self.text,
            "sketch": self.sketch,
            "speech": self.speech,
            "photo": self.photo,
        }


class CadGenerateResponse(BaseModel):
    modelData: ModelData
    code: str
    metadata: Optional[dict] = None
    fallbackUsed: bool = False
    message: str = ""
    processingTimeMs: Optional[int] = None


# ---------- Speech ----------
class SpeechResponse(BaseModel):
    text: str
