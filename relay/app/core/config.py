from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    app_name: str = "Chat Relay"
    host: str = "0.0.0.0"
    port: int = 8002
    log_level: str = "INFO"

    # Upstream inference endpoint
    hf_token: Optional[str] = None
    hf_model: str = "mistralai/Mistral-7B-Instruct-v0.2"
    hf_base_url: str = "https://router.huggingface.co/models"
    upstream_timeout_ms: int = 24000
    max_new_tokens: int = 400
    temperature: float = 0.7
    return_full_text: Optional[bool] = None

    # Request guards
    rate_limit_window_ms: int = 60000
    rate_limit_max: int = 30
    max_input_chars: int = 4000
    max_reply_chars: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False
        env_ignore_empty = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # A whitespace-only token counts as missing
        if self.hf_token is not None and not self.hf_token.strip():
            object.__setattr__(self, "hf_token", None)

    def get_model_url(self) -> str:
        """Full URL of the text-generation endpoint for the configured model."""
        return f"{self.hf_base_url.rstrip('/')}/{self.hf_model}"

    def get_generation_parameters(self) -> dict:
        parameters: dict = {
            "max_new_tokens": self.max_new_tokens,
            "temperature": self.temperature,
        }
        if self.return_full_text is not None:
            parameters["return_full_text"] = self.return_full_text
        return parameters


settings = Settings()
