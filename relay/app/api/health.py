from fastapi import APIRouter
from typing import Dict
from shared.schemas.chat import StatusResponse
from relay.app.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/api/status", response_model=StatusResponse)
async def status() -> StatusResponse:
    """Report whether the relay can reach a model (token configured)."""
    return StatusResponse(ai_enabled=bool(settings.hf_token))
