import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from typing import Callable, Awaitable
import logging
from relay.app.core.metrics import metrics

logger = logging.getLogger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request ID propagation, latency tracking and request logging."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        endpoint = request.url.path

        # Bodies are never logged
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "endpoint": endpoint,
        }
        logger.info(f"Request started: {log_data}")

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.time() - start_time
            metrics.record_request(endpoint, 500, elapsed)
            log_data.update({
                "status_code": 500,
                "elapsed_seconds": round(elapsed, 3),
                "error": str(e),
            })
            logger.error(f"Request failed: {log_data}", exc_info=True)
            raise

        elapsed = time.time() - start_time
        metrics.record_request(endpoint, response.status_code, elapsed)
        response.headers["X-Request-ID"] = request_id

        log_data.update({
            "status_code": response.status_code,
            "elapsed_seconds": round(elapsed, 3),
        })
        logger.info(f"Request completed: {log_data}")
        return response
