import requests
from typing import Optional
from shared.schemas.chat import ChatRequest, ChatResponse, StatusResponse


class RelayRequestError(Exception):
    """The relay answered with an ``{"error": ...}`` body."""

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(f"{status_code}: {error}")
        self.status_code = status_code
        self.error = error


class ChatRelayClient:
    def __init__(self, base_url: str, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def health_check(self) -> bool:
        try:
            response = self.session.get(
                f"{self.base_url}/health",
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json().get("status") == "ok"
        except Exception:
            return False

    def status(self) -> StatusResponse:
        response = self._request("GET", "/api/status")
        return StatusResponse(**response.json())

    def send(self, message: str, history: Optional[list] = None) -> ChatResponse:
        """Send one message (optionally after prior turns) and return the reply."""
        if history:
            messages = list(history) + [{"role": "user", "content": message}]
            request_data = ChatRequest(messages=messages)
        else:
            request_data = ChatRequest(message=message)

        response = self._request(
            "POST", "/api/chat", json=request_data.model_dump(exclude_none=True)
        )
        return ChatResponse(**response.json())

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout:
            raise TimeoutError(f"Request timed out after {self.timeout} seconds")
        except requests.exceptions.RequestException as e:
            raise ConnectionError(f"Request failed: {str(e)}")

        if response.status_code >= 400:
            try:
                error = response.json().get("error", response.text)
            except ValueError:
                error = response.text
            raise RelayRequestError(response.status_code, error)
        return response
