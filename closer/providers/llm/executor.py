"""Model calls for the reply generator, summarizer and classifier.

Each call site owns an LLMExecutor configured from its providers.* section.
Model strings carry the provider as a prefix and are served through Agno:

    anthropic/claude-3-5-haiku-latest  ->  agno.models.anthropic.Claude
    openai/gpt-4o-mini                 ->  agno.models.openai.OpenAIChat
    groq/llama-3.1-70b-versatile       ->  agno.models.groq.Groq
    mock/anything                      ->  canned text, no network

Models are tried in order (primary, then fallbacks); the first success wins.
"""

import asyncio
import importlib
import json
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from closer.config.models.providers import ModelStepConfig
from closer.observability.logging import get_logger
from closer.observability.metrics import LLM_CALLS, LLM_TOKENS
from closer.providers.llm.base import (
    LLMMessage,
    LLMResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    StructuredOutputError,
    TokenUsage,
)

logger = get_logger(__name__)

T = TypeVar("T")
SchemaT = TypeVar("SchemaT", bound=BaseModel)

MOCK_PROVIDER = "mock"

# provider prefix -> (module, class) of the Agno model
AGNO_MODELS: dict[str, tuple[str, str]] = {
    "anthropic": ("agno.models.anthropic", "Claude"),
    "openai": ("agno.models.openai", "OpenAIChat"),
    "groq": ("agno.models.groq", "Groq"),
}

ROLE_LABELS = {"user": "User", "assistant": "Assistant"}

STRUCTURED_SUFFIX = """

Responde solo con JSON válido que cumpla este esquema, sin texto adicional:
{schema}"""

_JSON_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def split_model(model: str) -> tuple[str, str]:
    """'openai/gpt-4o-mini' -> ('openai', 'gpt-4o-mini'). A bare name is a mock."""
    provider, sep, name = model.partition("/")
    if not sep:
        return MOCK_PROVIDER, model
    return provider, name


def render_turns(messages: list[LLMMessage]) -> str:
    """Agno takes one input string; system messages travel as instructions."""
    turns = [m for m in messages if m.role != "system"]
    if len(turns) == 1:
        return turns[0].content
    return "\n\n".join(f"{ROLE_LABELS[m.role]}: {m.content}" for m in turns)


def extract_json(text: str) -> str:
    """JSON payload of a reply, unwrapping a code fence if there is one."""
    match = _JSON_FENCE.search(text)
    return (match.group(1) if match else text).strip()


def _usage_of(run: Any) -> TokenUsage | None:
    metrics = getattr(run, "metrics", None)
    prompt = getattr(metrics, "input_tokens", None)
    completion = getattr(metrics, "output_tokens", None)
    if not isinstance(prompt, int) or not isinstance(completion, int):
        return None
    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion)


class LLMExecutor:
    """Runs one call site's model calls with fallback.

    Example:
        executor = LLMExecutor(
            "anthropic/claude-3-5-haiku-latest",
            ["openai/gpt-4o-mini"],
            step_name="classifier",
        )
        output, response = await executor.generate_structured(prompt, ClassificationOutput)
    """

    def __init__(
        self,
        model: str,
        fallback_models: list[str] | None = None,
        *,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        timeout: float = 30.0,
        step_name: str | None = None,
        mock_response: str | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            model: Primary model string
            fallback_models: Tried in order after the primary fails
            temperature: Sampling temperature
            max_tokens: Completion token cap
            timeout: Per-call timeout in seconds
            step_name: Call site name for logs and metrics
            mock_response: Content returned by mock/* models
        """
        self._model = model
        self._fallback_models = fallback_models or []
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._step_name = step_name
        self._mock_response = mock_response
        self._agno_models: dict[str, Any] = {}

    @property
    def model(self) -> str:
        return self._model

    @property
    def step_name(self) -> str | None:
        return self._step_name

    @property
    def models(self) -> list[str]:
        return [self._model, *self._fallback_models]

    async def generate(self, messages: list[LLMMessage]) -> LLMResponse:
        """Generate text.

        Raises:
            ProviderError: If every model failed
        """
        return await self._first_success(lambda model: self._call(model, messages))

    async def generate_structured(
        self,
        prompt: str,
        schema: type[SchemaT],
        *,
        system_prompt: str | None = None,
    ) -> tuple[SchemaT, LLMResponse]:
        """Generate output parsed into schema.

        A model whose reply does not validate counts as failed, so the next
        fallback is tried.

        Raises:
            ProviderError: If no model produced a valid reply
        """
        schema_json = json.dumps(schema.model_json_schema(), ensure_ascii=False)
        messages = [LLMMessage(role="system", content=system_prompt)] if system_prompt else []
        messages.append(
            LLMMessage(role="user", content=prompt + STRUCTURED_SUFFIX.format(schema=schema_json))
        )

        async def attempt(model: str) -> tuple[SchemaT, LLMResponse]:
            response = await self._call(model, messages)
            return self._parse(schema, response), response

        return await self._first_success(attempt)

    async def _first_success(self, attempt: Callable[[str], Awaitable[T]]) -> T:
        failures: list[str] = []
        step = self._step_name or "unknown"
        for model in self.models:
            try:
                result = await attempt(model)
            except ProviderError as e:
                LLM_CALLS.labels(model=model, step=step, outcome=e.outcome).inc()
                logger.warning(
                    "llm_call_failed",
                    model=model,
                    step=self._step_name,
                    outcome=e.outcome,
                    error=str(e),
                )
                failures.append(f"{model}: {e}")
                continue
            LLM_CALLS.labels(model=model, step=step, outcome="success").inc()
            return result

        raise ProviderError(
            f"All models failed for step {self._step_name}: {'; '.join(failures)}"
        )

    async def _call(self, model: str, messages: list[LLMMessage]) -> LLMResponse:
        provider, _ = split_model(model)
        if provider == MOCK_PROVIDER:
            return LLMResponse(
                content=self._mock_response or f"Mock response for {model}",
                model=model,
                usage=TokenUsage(prompt_tokens=10, completion_tokens=5),
            )

        from agno.agent import Agent

        # One Agent per call: instructions differ between concurrent conversations
        agent = Agent(
            model=self._agno_model(model),
            instructions=[m.content for m in messages if m.role == "system"] or None,
            markdown=False,
        )

        start = time.perf_counter()
        try:
            run = await asyncio.wait_for(agent.arun(render_turns(messages)), timeout=self._timeout)
        except TimeoutError as e:
            raise ProviderTimeoutError(f"{model} timed out after {self._timeout}s", model) from e
        except Exception as e:
            # Agno surfaces the provider SDK exceptions unchanged
            text = str(e).lower()
            if "rate" in text and "limit" in text:
                raise RateLimitError(f"{model} rate limited: {e}", model) from e
            raise ProviderError(f"{model} failed: {e}", model) from e
        latency_ms = (time.perf_counter() - start) * 1000

        usage = _usage_of(run)
        if usage is not None:
            LLM_TOKENS.labels(model=model, direction="input").inc(usage.prompt_tokens)
            LLM_TOKENS.labels(model=model, direction="output").inc(usage.completion_tokens)

        content = str(run.content or "")
        logger.debug(
            "llm_call_complete",
            model=model,
            step=self._step_name,
            latency_ms=round(latency_ms, 1),
            content_length=len(content),
        )
        return LLMResponse(
            content=content,
            model=model,
            usage=usage,
            latency_ms=latency_ms,
            metadata={"provider": provider},
        )

    def _agno_model(self, model: str) -> Any:
        if model not in self._agno_models:
            provider, name = split_model(model)
            if provider not in AGNO_MODELS:
                raise ProviderError(f"Unsupported model provider: {provider}", model)
            module_name, class_name = AGNO_MODELS[provider]
            model_cls = getattr(importlib.import_module(module_name), class_name)
            self._agno_models[model] = model_cls(
                id=name,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        return self._agno_models[model]

    @staticmethod
    def _parse(schema: type[SchemaT], response: LLMResponse) -> SchemaT:
        payload = extract_json(response.content)
        try:
            return schema.model_validate_json(payload)
        except ValidationError as e:
            logger.warning(
                "structured_output_invalid",
                model=response.model,
                schema=schema.__name__,
                preview=payload[:200],
            )
            raise StructuredOutputError(
                f"{response.model} returned invalid {schema.__name__}: {e}", response.model
            ) from e


def create_executor_from_step_config(
    step_config: ModelStepConfig,
    step_name: str,
) -> LLMExecutor:
    """Build the executor of one call site from its providers.* section."""
    return LLMExecutor(
        model=step_config.model,
        fallback_models=step_config.fallback_models,
        temperature=step_config.temperature,
        max_tokens=step_config.max_tokens,
        timeout=step_config.timeout,
        step_name=step_name,
    )
