import json
import logging
from fastapi import APIRouter, HTTPException, Request
from shared.schemas.chat import ChatResponse, ErrorResponse
from relay.app.core.errors import RelayError
from relay.app.core.pipeline import chat_relay
from relay.app.core.sanitizer import get_caller_identity

logger = logging.getLogger(__name__)
router = APIRouter()


async def _read_body(http_request: Request) -> dict:
    """Decode the JSON body, treating anything unreadable as empty."""
    raw = await http_request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (ValueError, RecursionError):
        logger.warning("Request body is not valid JSON")
        return {}
    return body if isinstance(body, dict) else {}


@router.post(
    "/api/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def chat(http_request: Request) -> ChatResponse:
    """Relay one user message to the model and return its reply."""
    identity = get_caller_identity(
        http_request.headers.get("X-Forwarded-For"),
        http_request.client.host if http_request.client else None,
    )
    body = await _read_body(http_request)

    try:
        reply = await chat_relay.handle(body, identity)
        return ChatResponse(reply=reply)
    except RelayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Chat relay failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error")
