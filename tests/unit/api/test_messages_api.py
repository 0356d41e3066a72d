"""Unit tests for the inbound message endpoint."""

from collections.abc import Iterator
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from closer.api.app import register_exception_handlers
from closer.api.dependencies import get_turn_pipeline, reset_dependencies
from closer.api.routes.messages import router
from closer.cache.stores import InMemoryCacheStore
from closer.config.models.control import RateLimitConfig, RateLimitTierConfig
from closer.control import BotControl, ConversationLock
from closer.conversation import InMemoryConversationStore
from closer.pipeline import TurnControlPlane
from closer.providers.llm import ProviderError
from closer.ratelimit import InMemorySlidingWindow, MessageRateLimiter
from closer.state import StateBridge


@pytest.fixture
def conversations() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def control(bridge: StateBridge) -> BotControl:
    return BotControl(bridge)


@pytest.fixture
def generator() -> AsyncMock:
    return AsyncMock(return_value="¡Hola! ¿A qué se dedica tu negocio?")


@pytest.fixture
def pipeline(
    cache_store: InMemoryCacheStore,
    control: BotControl,
    conversations: InMemoryConversationStore,
    generator: AsyncMock,
) -> TurnControlPlane:
    config = RateLimitConfig(
        actor_minute=RateLimitTierConfig(limit=2, window_seconds=60),
        actor_hour=RateLimitTierConfig(limit=100, window_seconds=3600),
        global_minute=RateLimitTierConfig(limit=1000, window_seconds=60),
    )
    return TurnControlPlane(
        control=control,
        rate_limiter=MessageRateLimiter(InMemorySlidingWindow(), config),
        lock=ConversationLock(cache_store, wait_seconds=0),
        conversations=conversations,
        generator=generator,
    )


@pytest.fixture
async def app(pipeline: TurnControlPlane) -> FastAPI:
    """Create test FastAPI app."""
    await reset_dependencies()

    app = FastAPI()
    app.include_router(router)
    register_exception_handlers(app)
    app.dependency_overrides[get_turn_pipeline] = lambda: pipeline

    return app


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


def body(tenant_id: UUID, conversation_id: UUID, text: str = "Hola, vi su anuncio") -> dict:
    return {
        "tenant_id": str(tenant_id),
        "conversation_id": str(conversation_id),
        "actor_phone": "+5215512345678",
        "text": text,
    }


class TestReceiveInbound:
    """Tests for POST /messages/inbound."""

    def test_reply(
        self,
        client: TestClient,
        conversations: InMemoryConversationStore,
        tenant_id: UUID,
        conversation_id: UUID,
    ) -> None:
        response = client.post("/messages/inbound", json=body(tenant_id, conversation_id))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "replied"
        assert data["response"] == "¡Hola! ¿A qué se dedica tu negocio?"
        assert data["was_guarded"] is False
        assert client.portal.call(conversations.list_messages, conversation_id)

    def test_paused_conversation(
        self,
        client: TestClient,
        control: BotControl,
        generator: AsyncMock,
        tenant_id: UUID,
        conversation_id: UUID,
    ) -> None:
        client.portal.call(control.pause, conversation_id)

        response = client.post("/messages/inbound", json=body(tenant_id, conversation_id))

        assert response.status_code == 200
        assert response.json()["status"] == "bot_paused"
        assert response.json()["response"] is None
        generator.assert_not_awaited()

    def test_rate_limited(
        self, client: TestClient, tenant_id: UUID, conversation_id: UUID
    ) -> None:
        for _ in range(2):
            client.post("/messages/inbound", json=body(tenant_id, conversation_id))

        response = client.post("/messages/inbound", json=body(tenant_id, conversation_id))

        assert response.status_code == 429
        error = response.json()["error"]
        assert error["code"] == "RATE_LIMIT_EXCEEDED"
        assert error["reason"] == "minute_limit"
        assert error["remaining"] == 0

    def test_generator_failure(
        self,
        client: TestClient,
        generator: AsyncMock,
        tenant_id: UUID,
        conversation_id: UUID,
    ) -> None:
        generator.side_effect = ProviderError("all models failed")

        response = client.post("/messages/inbound", json=body(tenant_id, conversation_id))

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "LLM_ERROR"

    def test_invalid_body(self, client: TestClient, tenant_id: UUID) -> None:
        response = client.post(
            "/messages/inbound",
            json={"tenant_id": str(tenant_id), "text": "hola"},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_REQUEST"
        fields = {d["field"] for d in error["details"]}
        assert "body.conversation_id" in fields
        assert "body.actor_phone" in fields
