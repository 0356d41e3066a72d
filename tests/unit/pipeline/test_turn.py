"""Tests for the turn control plane."""

from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from closer.cache.stores import InMemoryCacheStore
from closer.config.models.control import RateLimitConfig, RateLimitTierConfig
from closer.control import BotControl, ConversationLock, MessageDeduplicator
from closer.conversation import InMemoryConversationStore
from closer.conversation.models import Message, Role, SentBy
from closer.pipeline import (
    GenerationRequest,
    InboundMessage,
    LLMReplyGenerator,
    TurnControlPlane,
    TurnStatus,
)
from closer.providers.llm import LLMExecutor, ProviderError
from closer.ratelimit import InMemorySlidingWindow, MessageRateLimiter, RateLimitReason
from closer.state import StateBridge

PHONE = "+5215512345678"


def rate_config(minute: int = 20) -> RateLimitConfig:
    return RateLimitConfig(
        actor_minute=RateLimitTierConfig(limit=minute, window_seconds=60),
        actor_hour=RateLimitTierConfig(limit=100, window_seconds=3600),
        global_minute=RateLimitTierConfig(limit=1000, window_seconds=60),
    )


@pytest.fixture
def conversations() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def control(bridge: StateBridge) -> BotControl:
    return BotControl(bridge)


@pytest.fixture
def lock(cache_store: InMemoryCacheStore) -> ConversationLock:
    return ConversationLock(cache_store, wait_seconds=0, poll_interval_seconds=0.01)


@pytest.fixture
def generator() -> AsyncMock:
    return AsyncMock(return_value="Claro, te cuento. ¿Cuántos clientes atiendes?")


@pytest.fixture
def pipeline(control, lock, conversations, generator, cache_store) -> TurnControlPlane:
    return TurnControlPlane(
        control=control,
        rate_limiter=MessageRateLimiter(InMemorySlidingWindow(), rate_config()),
        lock=lock,
        conversations=conversations,
        generator=generator,
        deduplicator=MessageDeduplicator(cache_store),
    )


def inbound(tenant_id: UUID, conversation_id: UUID, text: str, **kwargs) -> InboundMessage:
    return InboundMessage(
        tenant_id=tenant_id,
        conversation_id=conversation_id,
        actor_phone=PHONE,
        text=text,
        **kwargs,
    )


async def seed_history(conversations, conversation_id: UUID) -> None:
    for role, text in [
        (Role.ASSISTANT, "Hola, soy Sofía de Acme."),
        (Role.USER, "Hola"),
    ]:
        await conversations.add_message(
            Message(conversation_id=conversation_id, role=role, content=text)
        )


class TestTurnControlPlane:
    @pytest.mark.asyncio
    async def test_replies_and_persists_both_messages(
        self, pipeline, conversations, generator, tenant_id, conversation_id
    ) -> None:
        outcome = await pipeline.process(inbound(tenant_id, conversation_id, "¿Qué ofrecen?"))
        await pipeline.tasks.wait()

        assert outcome.status == TurnStatus.REPLIED
        assert outcome.response == "Claro, te cuento. ¿Cuántos clientes atiendes?"
        assert outcome.was_guarded is False

        conversation = await conversations.get(conversation_id)
        assert conversation is not None
        assert conversation.actor_phone == PHONE

        messages = await conversations.list_messages(conversation_id)
        assert [(m.role, m.sent_by) for m in messages] == [
            (Role.USER, SentBy.LEAD),
            (Role.ASSISTANT, SentBy.BOT),
        ]

        request: GenerationRequest = generator.await_args.args[0]
        assert request.message == "¿Qué ofrecen?"
        assert request.history == []

    @pytest.mark.asyncio
    async def test_reply_is_guarded(
        self, pipeline, generator, tenant_id, conversation_id
    ) -> None:
        generator.return_value = "**Hola.** Uno. Dos. Tres. ¿Te interesa?"

        outcome = await pipeline.process(inbound(tenant_id, conversation_id, "hola"))

        assert outcome.status == TurnStatus.REPLIED
        assert outcome.response == "Hola. Uno. ¿Te interesa?"
        assert outcome.was_guarded is True
        assert "stripped markdown" in outcome.guard_reason

    @pytest.mark.asyncio
    async def test_paused_conversation_gets_no_reply(
        self, pipeline, control, conversations, generator, tenant_id, conversation_id
    ) -> None:
        await seed_history(conversations, conversation_id)
        await control.pause(conversation_id, actor="ana")

        outcome = await pipeline.process(inbound(tenant_id, conversation_id, "¿Sigues ahí?"))
        await pipeline.tasks.wait()

        assert outcome.status == TurnStatus.BOT_PAUSED
        assert outcome.response is None
        generator.assert_not_awaited()
        messages = await conversations.list_messages(conversation_id)
        assert messages[-1].content == "¿Sigues ahí?"

    @pytest.mark.asyncio
    async def test_suppressed_conversation_gets_no_reply(
        self, pipeline, control, conversations, generator, tenant_id, conversation_id
    ) -> None:
        await seed_history(conversations, conversation_id)
        await control.suppress_for_campaign(conversation_id, "promo-octubre")

        outcome = await pipeline.process(inbound(tenant_id, conversation_id, "Gracias"))

        assert outcome.status == TurnStatus.BOT_SUPPRESSED
        generator.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_autoresponder_on_first_interaction(
        self, pipeline, generator, tenant_id, conversation_id
    ) -> None:
        text = (
            "Gracias por comunicarte con Ferretería López. "
            "Nuestro horario de atención es de lunes a viernes."
        )

        outcome = await pipeline.process(inbound(tenant_id, conversation_id, text))

        assert outcome.status == TurnStatus.AUTORESPONDER_DETECTED
        generator.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_autoresponder_text_later_in_conversation_gets_reply(
        self, pipeline, conversations, tenant_id, conversation_id
    ) -> None:
        await seed_history(conversations, conversation_id)
        await conversations.add_message(
            Message(conversation_id=conversation_id, role=Role.ASSISTANT, content="¿Te interesa?")
        )
        text = (
            "Gracias por comunicarte con Ferretería López. "
            "Nuestro horario de atención es de lunes a viernes."
        )

        outcome = await pipeline.process(inbound(tenant_id, conversation_id, text))

        assert outcome.status == TurnStatus.REPLIED

    @pytest.mark.asyncio
    async def test_locked_conversation(
        self, pipeline, lock, conversations, generator, tenant_id, conversation_id
    ) -> None:
        await lock.acquire(tenant_id, PHONE)

        outcome = await pipeline.process(inbound(tenant_id, conversation_id, "hola"))
        await pipeline.tasks.wait()

        assert outcome.status == TurnStatus.LOCKED
        generator.assert_not_awaited()
        assert len(await conversations.list_messages(conversation_id)) == 1

    @pytest.mark.asyncio
    async def test_duplicate_message_id(
        self, pipeline, generator, tenant_id, conversation_id
    ) -> None:
        first = await pipeline.process(
            inbound(tenant_id, conversation_id, "hola", message_id="wamid.1")
        )
        second = await pipeline.process(
            inbound(tenant_id, conversation_id, "hola", message_id="wamid.1")
        )

        assert first.status == TurnStatus.REPLIED
        assert second.status == TurnStatus.DUPLICATE
        assert generator.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limited(
        self, control, lock, conversations, generator, tenant_id, conversation_id
    ) -> None:
        pipeline = TurnControlPlane(
            control=control,
            rate_limiter=MessageRateLimiter(InMemorySlidingWindow(), rate_config(minute=1)),
            lock=lock,
            conversations=conversations,
            generator=generator,
        )

        await pipeline.process(inbound(tenant_id, conversation_id, "uno"))
        outcome = await pipeline.process(inbound(tenant_id, conversation_id, "dos"))

        assert outcome.status == TurnStatus.RATE_LIMITED
        assert outcome.rate_limit is not None
        assert outcome.rate_limit.reason == RateLimitReason.MINUTE_LIMIT
        assert generator.await_count == 1

    @pytest.mark.asyncio
    async def test_generator_failure_releases_lock(
        self, pipeline, lock, generator, tenant_id, conversation_id
    ) -> None:
        generator.side_effect = ProviderError("all models failed")

        with pytest.raises(ProviderError):
            await pipeline.process(inbound(tenant_id, conversation_id, "hola"))

        assert await lock.acquire(tenant_id, PHONE) is True

    @pytest.mark.asyncio
    async def test_progress_instruction_reaches_generator(
        self, pipeline, conversations, generator, tenant_id, conversation_id
    ) -> None:
        for i in range(3):
            await conversations.add_message(
                Message(conversation_id=conversation_id, role=Role.USER, content=f"mensaje {i}")
            )
            await conversations.add_message(
                Message(conversation_id=conversation_id, role=Role.ASSISTANT, content=f"resp {i}")
            )

        await pipeline.process(inbound(tenant_id, conversation_id, "cuéntame más"))

        request: GenerationRequest = generator.await_args.args[0]
        assert len(request.history) == 6
        assert request.progress_instruction.startswith("Llevas 4 turnos.")

    @pytest.mark.asyncio
    async def test_operator_reply_pauses_bot(
        self, pipeline, control, conversations, conversation_id
    ) -> None:
        message = await pipeline.operator_reply(conversation_id, "Te llamo en 5 min", "ana")
        await pipeline.tasks.wait()

        assert message.sent_by == SentBy.OPERATOR
        assert message.role == Role.ASSISTANT
        assert await control.is_paused(conversation_id) is True
        pause = await control.get_pause_state(conversation_id)
        assert pause is not None
        assert pause.paused_by == "ana"
        assert (await conversations.list_messages(conversation_id))[0].id == message.id


class TestLLMReplyGenerator:
    @pytest.mark.asyncio
    async def test_builds_messages_from_request(self) -> None:
        executor = LLMExecutor("mock/generator", mock_response="Hola, ¿en qué te ayudo?")
        executor.generate = AsyncMock(wraps=executor.generate)
        request = GenerationRequest(
            message="hola",
            state_block="# ESTADO",
            pivot_instruction="Cambia de tema.",
        )

        reply = await LLMReplyGenerator(executor)(request)

        assert reply == "Hola, ¿en qué te ayudo?"
        messages = executor.generate.await_args.args[0]
        assert messages[0].role == "system"
        assert messages[0].content.endswith("# ESTADO\n\nCambia de tema.")
        assert messages[-1].content == "hola"

    def test_instructions_skip_empty_blocks(self) -> None:
        request = GenerationRequest(message="x", system_instruction="Base")
        assert request.instructions() == "Base"
