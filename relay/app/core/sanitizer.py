import logging
from typing import Any, Optional
from relay.app.core.config import settings
from relay.app.core.errors import EmptyMessageError

logger = logging.getLogger(__name__)

ANONYMOUS_IDENTITY = "anon"


def get_caller_identity(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """Derive the rate-limit key for a caller.

    Uses the first address of X-Forwarded-For, then the transport peer,
    then a fixed placeholder.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if peer_host and peer_host.strip():
        return peer_host.strip()
    return ANONYMOUS_IDENTITY


def extract_message(body: Any) -> str:
    """Pull the user message out of a decoded request body.

    Accepts ``{"message": "..."}`` or ``{"messages": [{"content": "..."}, ...]}``;
    for a message list only the last entry is used.
    """
    if not isinstance(body, dict):
        return ""

    message = body.get("message")
    if isinstance(message, str):
        return message

    messages = body.get("messages")
    if isinstance(messages, list) and messages:
        last = messages[-1]
        content = last.get("content") if isinstance(last, dict) else None
        return str(content or "")

    return ""


def sanitize_message(body: Any, max_chars: Optional[int] = None) -> str:
    """Extract, trim and bound the user message.

    Raises EmptyMessageError when nothing is left after trimming. Messages
    longer than ``max_chars`` keep their trailing part.
    """
    if max_chars is None:
        max_chars = settings.max_input_chars

    message = extract_message(body).strip()
    if not message:
        raise EmptyMessageError()

    if len(message) > max_chars:
        logger.info(f"Truncating message from {len(message)} to last {max_chars} chars")
        message = message[-max_chars:]
    return message
