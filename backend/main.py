"""
Multimodal CAD Design Backend – FastAPI

Main entry point. Sets up logging and CORS, includes all routes.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from config import CORS_ORIGINS, LOG_LEVEL

# Import route modules
from routes.cad_generator import router as cad_generator_router
from routes.multimodal import router as multimodal_router
from routes.speech import router as speech_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Multimodal CAD Generator",
    description="Generate floor-plan models and Three.js code from text, sketch, speech and photo",
    version="2.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cad_generator_router)
app.include_router(multimodal_router)
app.include_router(speech_router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": "2.0.0"}


if __name__ == "__main__":
    import uvicorn
    from config import HOST, PORT
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
