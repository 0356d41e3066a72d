"""Message, response and error types shared by every model call site."""

from typing import Any, Literal

from pydantic import BaseModel, Field

MessageRole = Literal["system", "user", "assistant"]


class LLMMessage(BaseModel):
    role: MessageRole
    content: str


class TokenUsage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMResponse(BaseModel):
    """Text produced by one model, with accounting data."""

    content: str
    model: str = Field(..., description="Model string that produced the content")
    usage: TokenUsage | None = None
    latency_ms: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProviderError(Exception):
    """A model call failed or returned unusable output.

    Attributes:
        model: Model string of the failing call, when known
        outcome: Metric label for the failure kind
    """

    outcome = "error"

    def __init__(self, message: str, model: str | None = None) -> None:
        super().__init__(message)
        self.model = model


class RateLimitError(ProviderError):
    """The provider throttled the call."""

    outcome = "rate_limited"


class ProviderTimeoutError(ProviderError):
    """The call exceeded the configured timeout."""

    outcome = "timeout"


class StructuredOutputError(ProviderError):
    """The response could not be parsed into the requested schema."""

    outcome = "invalid_output"
