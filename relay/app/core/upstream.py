import asyncio
import httpx
import logging
import time
from typing import Any, Optional
from relay.app.core.config import settings
from relay.app.core.errors import ConfigurationError, UpstreamMalformedResponse, UpstreamTimeout
from relay.app.core.metrics import metrics
from shared.schemas.chat import GenerationParameters, InferenceRequest

logger = logging.getLogger(__name__)


class InferenceClient:
    """Calls the hosted text-generation endpoint with a hard deadline.

    The request is raced against ``timeout_ms``; expiry of either the
    deadline or the httpx transport timeout surfaces as UpstreamTimeout.
    A body that does not decode as JSON surfaces as
    UpstreamMalformedResponse. Other transport errors propagate unchanged.
    """

    def __init__(self, timeout_ms: Optional[int] = None) -> None:
        self._timeout_ms = timeout_ms

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms if self._timeout_ms is not None else settings.upstream_timeout_ms

    def build_request(self, inputs: str) -> InferenceRequest:
        return InferenceRequest(
            inputs=inputs,
            parameters=GenerationParameters(**settings.get_generation_parameters()),
        )

    async def generate(self, inputs: str) -> Any:
        """Send ``inputs`` upstream and return the decoded JSON payload."""
        token = settings.hf_token
        if not token:
            raise ConfigurationError()

        url = settings.get_model_url()
        payload = self.build_request(inputs)
        timeout_sec = self.timeout_ms / 1000.0
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        start_time = time.time()

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec)) as client:
                response = await asyncio.wait_for(
                    client.post(url, json=payload.model_dump(exclude_none=True), headers=headers),
                    timeout=timeout_sec,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            metrics.record_upstream_timeout()
            logger.error(f"Upstream request to {settings.hf_model} timed out after {self.timeout_ms}ms")
            raise UpstreamTimeout()

        elapsed = time.time() - start_time
        logger.info(
            f"Upstream responded {response.status_code} (elapsed={elapsed:.3f}s)"
        )

        try:
            return response.json()
        except (ValueError, RecursionError) as e:
            metrics.record_upstream_malformed()
            logger.error(f"Upstream returned non-JSON response: {e}")
            raise UpstreamMalformedResponse()


inference_client = InferenceClient()
