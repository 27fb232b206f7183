from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from relay.app.core.config import settings
from relay.app.core.observability import ObservabilityMiddleware
from relay.app.api import chat, health, metrics
import logging
import sys

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(ObservabilityMiddleware)

app.include_router(health.router)
app.include_router(chat.router)
app.include_router(metrics.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.on_event("startup")
async def startup_event() -> None:
    logger.info("Starting Chat Relay")
    logger.info(f"Model: {settings.hf_model}")
    logger.info(f"Upstream configured: {bool(settings.hf_token)}")
    logger.info(
        f"Rate limit: {settings.rate_limit_max} req / {settings.rate_limit_window_ms}ms"
    )
    logger.info(f"Upstream timeout: {settings.upstream_timeout_ms}ms")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("Shutting down Chat Relay")
