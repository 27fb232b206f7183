from fastapi import APIRouter
from typing import Dict
from relay.app.core.config import settings
from relay.app.core.metrics import metrics

router = APIRouter()


@router.get("/metrics")
async def get_metrics() -> Dict:
    """Relay counters plus the limits they are measured against."""
    result = metrics.get_metrics()
    result["limits"] = {
        "model": settings.hf_model,
        "rate_limit_max": settings.rate_limit_max,
        "rate_limit_window_ms": settings.rate_limit_window_ms,
        "upstream_timeout_ms": settings.upstream_timeout_ms,
    }
    return result
