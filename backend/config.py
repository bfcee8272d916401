"""Application configuration via environment variables."""

import os
from dotenv import load_dotenv

load_dotenv()

# Azure OpenAI (generative text backend)
AZURE_OPENAI_KEY = os.getenv("AZURE_OPENAI_KEY", "")
AZURE_OPENAI_ENDPOINT = os.getenv("AZURE_OPENAI_ENDPOINT", "")
AZURE_OPENAI_DEPLOYMENT = os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4")
AZURE_OPENAI_API_VERSION = os.getenv("AZURE_OPENAI_API_VERSION", "2023-12-01-preview")

# Azure Computer Vision
AZURE_VISION_KEY = os.getenv("AZURE_VISION_KEY", "")
AZURE_VISION_ENDPOINT = os.getenv("AZURE_VISION_ENDPOINT", "")

# Azure Speech
AZURE_SPEECH_KEY = os.getenv("AZURE_SPEECH_KEY", "")
AZURE_SPEECH_REGION = os.getenv("AZURE_SPEECH_REGION", "eastus")
AZURE_SPEECH_LANGUAGE = os.getenv("AZURE_SPEECH_LANGUAGE", "en-US")

# Seconds, applied to every outbound Azure call
AZURE_REQUEST_TIMEOUT = float(os.getenv("AZURE_REQUEST_TIMEOUT", "60"))

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

# Fallback layouts are random unless a seed is pinned
_seed = os.getenv("FALLBACK_SEED", "")
FALLBACK_SEED = int(_seed) if _seed.strip() else None

# ---------- Design tunables ----------
DEFAULT_ROOM_HEIGHT = 3.0

# Confidence given to the whole-sketch room when no shapes could be segmented
FALLBACK_ROOM_CONFIDENCE = 0.8

# Contribution priors, normalized over the modalities actually present
MODALITY_PRIORS = {
    "text": 0.4,
    "sketch": 0.3,
    "speech": 0.2,
    "photo": 0.1,
}

MAX_FALLBACK_ROOMS = 8
MERGE_RETRY_TEMPERATURE = 0.8
