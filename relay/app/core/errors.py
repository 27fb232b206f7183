from fastapi import status
from typing import Optional


class RelayError(Exception):
    """Base class for failures that map onto a specific HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Server error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class ConfigurationError(RelayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "HF_TOKEN not configured in environment"


class EmptyMessageError(RelayError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Empty message"


class RateLimitExceeded(RelayError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Rate limit exceeded. Try again shortly."


class UpstreamTimeout(RelayError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    message = "Model request timed out"


class UpstreamMalformedResponse(RelayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Model returned non-JSON response"
