"""Tests for LLMExecutor."""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import BaseModel

from closer.config.models.providers import ModelStepConfig
from closer.providers.llm import (
    LLMExecutor,
    LLMMessage,
    LLMResponse,
    ProviderError,
    RateLimitError,
    StructuredOutputError,
    create_executor_from_step_config,
)
from closer.providers.llm.executor import extract_json, render_turns, split_model


class Verdict(BaseModel):
    label: str
    score: int


class TestLLMExecutor:
    @pytest.mark.asyncio
    async def test_mock_model_returns_canned_text(self) -> None:
        executor = LLMExecutor("mock/test")

        response = await executor.generate([LLMMessage(role="user", content="hola")])

        assert response.content == "Mock response for mock/test"
        assert response.model == "mock/test"
        assert response.usage is not None

    @pytest.mark.asyncio
    async def test_structured_output(self) -> None:
        executor = LLMExecutor("mock/test", mock_response='{"label": "hot", "score": 9}')

        parsed, response = await executor.generate_structured("Classify", Verdict)

        assert parsed == Verdict(label="hot", score=9)
        assert response.model == "mock/test"

    @pytest.mark.asyncio
    async def test_structured_output_in_code_fence(self) -> None:
        executor = LLMExecutor(
            "mock/test",
            mock_response='Aquí está:\n```json\n{"label": "cold", "score": 1}\n```',
        )

        parsed, _ = await executor.generate_structured("Classify", Verdict)

        assert parsed.label == "cold"

    @pytest.mark.asyncio
    async def test_unparseable_structured_output_raises(self) -> None:
        executor = LLMExecutor("mock/test")

        with pytest.raises(ProviderError, match="All models failed"):
            await executor.generate_structured("Classify", Verdict)

    @pytest.mark.asyncio
    async def test_falls_back_after_failure(self) -> None:
        executor = LLMExecutor("anthropic/claude-3-5-haiku-latest", ["mock/backup"])
        ok = LLMResponse(content="fallback", model="mock/backup")

        with patch.object(
            executor,
            "_call",
            AsyncMock(side_effect=[RateLimitError("rate limit"), ok]),
        ) as generate:
            response = await executor.generate([LLMMessage(role="user", content="hola")])

        assert response.content == "fallback"
        assert [c.args[0] for c in generate.await_args_list] == [
            "anthropic/claude-3-5-haiku-latest",
            "mock/backup",
        ]

    @pytest.mark.asyncio
    async def test_all_models_failing_raises(self) -> None:
        executor = LLMExecutor("openai/gpt-4o-mini", step_name="generator")

        with patch.object(
            executor,
            "_call",
            AsyncMock(side_effect=ProviderError("down")),
        ):
            with pytest.raises(ProviderError, match="All models failed for step generator"):
                await executor.generate([LLMMessage(role="user", content="hola")])

    def test_parse_model(self) -> None:
        assert split_model("openai/gpt-4o-mini") == ("openai", "gpt-4o-mini")
        assert split_model("bare-name") == ("mock", "bare-name")

    def test_unsupported_provider(self) -> None:
        executor = LLMExecutor("acme/model-1")

        with pytest.raises(ProviderError, match="Unsupported model provider"):
            executor._agno_model("acme/model-1")

    def test_format_input_flattens_turns(self) -> None:
        messages = [
            LLMMessage(role="system", content="sys"),
            LLMMessage(role="user", content="hola"),
            LLMMessage(role="assistant", content="¿en qué te ayudo?"),
            LLMMessage(role="user", content="precios"),
        ]

        assert render_turns(messages) == (
            "User: hola\n\nAssistant: ¿en qué te ayudo?\n\nUser: precios"
        )
        assert render_turns(messages[:2]) == "hola"


def test_create_executor_from_step_config() -> None:
    config = ModelStepConfig(
        model="mock/classifier",
        fallback_models=["mock/other"],
        temperature=0.1,
        max_tokens=100,
    )

    executor = create_executor_from_step_config(config, "classifier")

    assert executor.model == "mock/classifier"
    assert executor.step_name == "classifier"


class TestExtractJson:
    def test_plain_json(self) -> None:
        assert extract_json('  {"a": 1} ') == '{"a": 1}'

    def test_fenced_json(self) -> None:
        assert extract_json('Listo:\n```json\n{"a": 1}\n```\n') == '{"a": 1}'


@pytest.mark.asyncio
async def test_invalid_output_tries_next_model() -> None:
    executor = LLMExecutor("mock/first", ["mock/second"], step_name="classifier")
    bad = LLMResponse(content="no json here", model="mock/first")
    good = LLMResponse(content='{"label": "warm", "score": 5}', model="mock/second")

    with patch.object(executor, "_call", AsyncMock(side_effect=[bad, good])):
        parsed, response = await executor.generate_structured("Classify", Verdict)

    assert parsed.label == "warm"
    assert response.model == "mock/second"


def test_structured_output_error_is_a_provider_error() -> None:
    error = StructuredOutputError("bad", "mock/x")

    assert isinstance(error, ProviderError)
    assert error.model == "mock/x"
    assert error.outcome == "invalid_output"
