"""External model configuration for summarization and classification."""

from pydantic import BaseModel, Field


class ModelStepConfig(BaseModel):
    """Model routing for a single external model call site.

    Model strings use the executor's prefix convention, e.g.
    'anthropic/claude-3-5-haiku-latest' or 'openai/gpt-4o-mini'.
    """

    model: str = Field(
        default="anthropic/claude-3-5-haiku-latest",
        description="Full model identifier",
    )
    fallback_models: list[str] = Field(
        default_factory=list,
        description="Fallback models if primary fails",
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens to generate",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout in seconds",
    )


class ProvidersConfig(BaseModel):
    """Model configuration per call site."""

    generator: ModelStepConfig = Field(
        default_factory=lambda: ModelStepConfig(temperature=0.7, max_tokens=300),
        description="Default reply generator used by the inbound pipeline",
    )
    summarizer: ModelStepConfig = Field(
        default_factory=ModelStepConfig,
        description="Conversation state summarizer",
    )
    classifier: ModelStepConfig = Field(
        default_factory=lambda: ModelStepConfig(max_tokens=100),
        description="Outcome classifier",
    )
