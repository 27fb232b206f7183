from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Optional[str] = Field(default=None, description="Message author role")
    content: str = Field(..., description="Message text")


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = Field(default=None, description="Single user message")
    messages: Optional[List[ChatMessage]] = Field(
        default=None, description="Conversation history; only the last entry is relayed"
    )


class ChatResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    reply: str = Field(..., description="Model reply or safe refusal")


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    error: str = Field(..., description="Error description")


class StatusResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    ai_enabled: bool = Field(..., description="Whether an upstream token is configured")


class GenerationParameters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_new_tokens: int = Field(default=400, description="Maximum tokens to generate")
    temperature: Optional[float] = Field(default=0.7, description="Sampling temperature")
    return_full_text: Optional[bool] = Field(
        default=None, description="Echo the prompt in generated_text"
    )


class InferenceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inputs: str = Field(..., description="Prompt text sent to the model")
    parameters: GenerationParameters = Field(default_factory=GenerationParameters)
