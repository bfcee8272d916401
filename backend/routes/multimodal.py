"""Multimodal processing route: text, sketch, speech and photo in one request."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from schemas import CadGenerateResponse, MultimodalRequest
from services.azure_clients import ServiceClients, get_service_clients
from services.cad_generator import generate_cad_model, has_any_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["multimodal"])


@router.post("/multimodal-processor", response_model=CadGenerateResponse)
async def multimodal_processor(data: MultimodalRequest,
                               clients: ServiceClients = Depends(get_service_clients)):
    """Merge every supplied modality into one model (falls back like /cad-generator)."""
    inputs = data.to_inputs()
    if not has_any_input(inputs):
        return JSONResponse(status_code=400, content={"error": "No input data provided"})

    try:
        result = await generate_cad_model(inputs, clients)
        return CadGenerateResponse.model_validate(result)
    except Exception as e:
        logger.exception("Multimodal processing failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process multimodal input", "details": str(e)},
        )
