"""
CAD generation route: any mix of prompt, sketch, speech and photo in, a
repaired model plus Three.js code out.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from schemas import CadGenerateRequest, CadGenerateResponse
from services.azure_clients import ServiceClients, get_service_clients
from services.cad_generator import generate_cad_model, has_any_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cad-generator"])


@router.post("/cad-generator", response_model=CadGenerateResponse)
async def cad_generator(data: CadGenerateRequest,
                        clients: ServiceClients = Depends(get_service_clients)):
    """
    Generate a CAD model from a text prompt and/or sketch, speech and photo.

    When the cloud pipeline is unavailable the response still carries a
    sample model, flagged with ``fallbackUsed``.
    """
    inputs = data.to_inputs()
    if not has_any_input(inputs):
        return JSONResponse(
            status_code=400,
            content={"error": "At least one input (prompt, sketch, speech or photo) is required"},
        )

    try:
        result = await generate_cad_model(inputs, clients)
        return CadGenerateResponse.model_validate(result)
    except Exception as e:
        logger.exception("CAD generation failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate CAD model", "details": str(e)},
        )
