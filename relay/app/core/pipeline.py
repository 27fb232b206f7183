import logging
from typing import Any
from relay.app.core.config import settings
from relay.app.core.errors import ConfigurationError
from relay.app.core.metrics import metrics
from relay.app.core.normalizer import ReplyKind, normalize_response
from relay.app.core.rate_limit import RateLimiter, rate_limiter
from relay.app.core.safety import INPUT_REFUSAL, OUTPUT_REFUSAL, classify
from relay.app.core.sanitizer import sanitize_message
from relay.app.core.upstream import InferenceClient, inference_client

logger = logging.getLogger(__name__)


class ChatRelay:
    """Runs one chat message through the guard, upstream and reply stages."""

    def __init__(self, limiter: RateLimiter, client: InferenceClient) -> None:
        self._limiter = limiter
        self._client = client

    async def handle(self, body: Any, identity: str) -> str:
        """Return the reply text for a decoded request body.

        Raises a RelayError subclass for configuration, rate limit, empty
        input and upstream failures. Safety refusals are returned as
        ordinary replies.
        """
        if not settings.hf_token:
            logger.error("HF_TOKEN is not configured")
            raise ConfigurationError()

        await self._limiter.check(identity)

        message = sanitize_message(body)

        verdict = classify(message)
        if not verdict.clean:
            metrics.record_safety_refusal("input")
            logger.info(f"Input refused by safety filter (reason={verdict.reason})")
            return INPUT_REFUSAL

        data = await self._client.generate(message)
        reply = normalize_response(data)

        if reply.kind == ReplyKind.EMPTY:
            return reply.text

        # Model error text comes from upstream, so it is screened along with generated text
        verdict = classify(reply.text)
        if not verdict.clean:
            metrics.record_safety_refusal("output")
            logger.info(f"Reply refused by safety filter (reason={verdict.reason})")
            return OUTPUT_REFUSAL

        return reply.text


chat_relay = ChatRelay(rate_limiter, inference_client)
