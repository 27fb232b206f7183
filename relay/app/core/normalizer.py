"""Turns the many payload shapes of the inference endpoint into one reply.

Shapes are tried in a fixed order and the first matcher that recognizes
the payload wins:

1. ``[{"generated_text": "..."}, ...]``
2. ``{"generated_text": "..."}``
3. ``{"output": "..."}`` (older endpoints)
4. ``{"error": ...}``
5. anything else
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple
from relay.app.core.config import settings

logger = logging.getLogger(__name__)

NO_RESPONSE_REPLY = "No response from model."
TRUNCATION_MARKER = "..."


class ReplyKind(str, Enum):
    GENERATED_LIST = "generated_list"
    GENERATED = "generated"
    OUTPUT = "output"
    MODEL_ERROR = "model_error"
    EMPTY = "empty"


@dataclass(frozen=True)
class NormalizedReply:
    kind: ReplyKind
    text: str

    @property
    def is_generated(self) -> bool:
        return self.kind in (ReplyKind.GENERATED_LIST, ReplyKind.GENERATED, ReplyKind.OUTPUT)


def _match_generated_list(data: Any) -> Optional[Any]:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        text = data[0].get("generated_text")
        if isinstance(text, str):
            return text
    return None


def _match_generated(data: Any) -> Optional[Any]:
    if isinstance(data, dict) and isinstance(data.get("generated_text"), str):
        return data["generated_text"]
    return None


def _match_output(data: Any) -> Optional[Any]:
    if isinstance(data, dict) and isinstance(data.get("output"), str):
        return data["output"]
    return None


def _match_error(data: Any) -> Optional[Any]:
    if isinstance(data, dict) and data.get("error"):
        return data["error"]
    return None


MATCHERS: List[Tuple[ReplyKind, Callable[[Any], Optional[Any]]]] = [
    (ReplyKind.GENERATED_LIST, _match_generated_list),
    (ReplyKind.GENERATED, _match_generated),
    (ReplyKind.OUTPUT, _match_output),
    (ReplyKind.MODEL_ERROR, _match_error),
]


def clean_reply(reply: Any, max_chars: Optional[int] = None) -> str:
    """Trim a generated reply and cap its length."""
    if max_chars is None:
        max_chars = settings.max_reply_chars
    if not isinstance(reply, str):
        return str(reply)
    reply = reply.strip()
    if len(reply) > max_chars:
        reply = reply[:max_chars] + TRUNCATION_MARKER
    return reply


def normalize_response(data: Any, max_chars: Optional[int] = None) -> NormalizedReply:
    for kind, matcher in MATCHERS:
        value = matcher(data)
        if value is None:
            continue
        if kind == ReplyKind.MODEL_ERROR:
            logger.warning(f"Upstream model error: {value}")
            return NormalizedReply(kind, f"Model error: {value}")
        return NormalizedReply(kind, clean_reply(value, max_chars))

    logger.warning(f"Unexpected upstream response shape: {type(data).__name__}")
    return NormalizedReply(ReplyKind.EMPTY, NO_RESPONSE_REPLY)
