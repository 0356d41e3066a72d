"""Model access for the reply generator, summarizer and classifier."""

from closer.providers.llm.base import (
    LLMMessage,
    LLMResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    StructuredOutputError,
    TokenUsage,
)
from closer.providers.llm.executor import LLMExecutor, create_executor_from_step_config

__all__ = [
    "LLMExecutor",
    "LLMMessage",
    "LLMResponse",
    "ProviderError",
    "ProviderTimeoutError",
    "RateLimitError",
    "StructuredOutputError",
    "TokenUsage",
    "create_executor_from_step_config",
]
