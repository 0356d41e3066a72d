"""PostgreSQL implementations of ConversationStore and LeadStore."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from closer.conversation.models import (
    Classification,
    Conversation,
    ConversationState,
    Lead,
    Message,
    Priority,
    Role,
    SentBy,
    load_conversation_state,
)
from closer.conversation.store import ConversationStore, LeadStore
from closer.db.errors import NotFoundError
from closer.db.pool import PostgresPool
from closer.observability.logging import get_logger

logger = get_logger(__name__)


def _decode_json(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


class PostgresConversationStore(ConversationStore):
    """PostgreSQL-backed conversations, messages and conversation state."""

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    @staticmethod
    def _row_to_conversation(row: Any) -> Conversation:
        return Conversation(
            id=row["id"],
            tenant_id=row["tenant_id"],
            lead_id=row["lead_id"],
            actor_phone=row["actor_phone"],
            state=_decode_json(row["state"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def get(self, conversation_id: UUID) -> Conversation | None:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, tenant_id, lead_id, actor_phone, state, created_at, updated_at
                FROM conversations WHERE id = $1
                """,
                conversation_id,
            )
        return self._row_to_conversation(row) if row else None

    async def save(self, conversation: Conversation) -> UUID:
        state = json.dumps(conversation.state) if conversation.state is not None else None
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO conversations
                    (id, tenant_id, lead_id, actor_phone, state, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5::jsonb, $6, NOW())
                ON CONFLICT (id) DO UPDATE SET
                    lead_id = EXCLUDED.lead_id,
                    actor_phone = EXCLUDED.actor_phone,
                    state = EXCLUDED.state,
                    updated_at = NOW()
                """,
                conversation.id,
                conversation.tenant_id,
                conversation.lead_id,
                conversation.actor_phone,
                state,
                conversation.created_at,
            )
        return conversation.id

    async def get_latest_for_lead(self, lead_id: UUID) -> Conversation | None:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, tenant_id, lead_id, actor_phone, state, created_at, updated_at
                FROM conversations WHERE lead_id = $1
                ORDER BY created_at DESC LIMIT 1
                """,
                lead_id,
            )
        return self._row_to_conversation(row) if row else None

    async def add_message(self, message: Message) -> UUID:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO messages (id, conversation_id, role, content, sent_by, created_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                """,
                message.id,
                message.conversation_id,
                message.role.value,
                message.content,
                message.sent_by.value,
                message.created_at,
            )
            await conn.execute(
                "UPDATE conversations SET updated_at = NOW() WHERE id = $1",
                message.conversation_id,
            )
        return message.id

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        limit: int | None = None,
    ) -> list[Message]:
        async with self._pool.acquire() as conn:
            if limit is None:
                rows = await conn.fetch(
                    """
                    SELECT id, conversation_id, role, content, sent_by, created_at
                    FROM messages WHERE conversation_id = $1
                    ORDER BY created_at ASC
                    """,
                    conversation_id,
                )
            else:
                rows = await conn.fetch(
                    """
                    SELECT * FROM (
                        SELECT id, conversation_id, role, content, sent_by, created_at
                        FROM messages WHERE conversation_id = $1
                        ORDER BY created_at DESC LIMIT $2
                    ) recent ORDER BY created_at ASC
                    """,
                    conversation_id,
                    limit,
                )
        return [
            Message(
                id=row["id"],
                conversation_id=row["conversation_id"],
                role=Role(row["role"]),
                content=row["content"],
                sent_by=SentBy(row["sent_by"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def get_state(self, conversation_id: UUID) -> ConversationState | None:
        async with self._pool.acquire() as conn:
            value = await conn.fetchval(
                "SELECT state FROM conversations WHERE id = $1",
                conversation_id,
            )
        return load_conversation_state(_decode_json(value))

    async def save_state(self, conversation_id: UUID, state: ConversationState) -> None:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE conversations SET state = $2::jsonb, updated_at = NOW()
                WHERE id = $1
                """,
                conversation_id,
                state.model_dump_json(),
            )
        if result.endswith(" 0"):
            raise NotFoundError(f"Conversation {conversation_id} not found")
        logger.debug("conversation_state_saved", conversation_id=str(conversation_id))


class PostgresLeadStore(LeadStore):
    """PostgreSQL-backed LeadStore."""

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    @staticmethod
    def _row_to_lead(row: Any) -> Lead:
        return Lead(
            id=row["id"],
            tenant_id=row["tenant_id"],
            name=row["name"],
            phone=row["phone"],
            stage=row["stage"],
            priority=row["priority"],
            broadcast_classification=row["broadcast_classification"],
            last_activity_at=row["last_activity_at"],
            created_at=row["created_at"],
        )

    async def get(self, lead_id: UUID) -> Lead | None:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM leads WHERE id = $1", lead_id)
        return self._row_to_lead(row) if row else None

    async def save(self, lead: Lead) -> UUID:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO leads (
                    id, tenant_id, name, phone, stage, priority,
                    broadcast_classification, last_activity_at, created_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                ON CONFLICT (id) DO UPDATE SET
                    name = EXCLUDED.name,
                    phone = EXCLUDED.phone,
                    stage = EXCLUDED.stage,
                    priority = EXCLUDED.priority,
                    broadcast_classification = EXCLUDED.broadcast_classification,
                    last_activity_at = EXCLUDED.last_activity_at
                """,
                lead.id,
                lead.tenant_id,
                lead.name,
                lead.phone,
                lead.stage,
                lead.priority.value if lead.priority else None,
                lead.broadcast_classification.value if lead.broadcast_classification else None,
                lead.last_activity_at,
                lead.created_at,
            )
        return lead.id

    async def update_classification(
        self,
        lead_id: UUID,
        *,
        classification: Classification,
        last_activity_at: datetime,
        stage: str | None = None,
        priority: Priority | None = None,
    ) -> None:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE leads SET
                    broadcast_classification = $2,
                    last_activity_at = $3,
                    stage = COALESCE($4, stage),
                    priority = COALESCE($5, priority)
                WHERE id = $1
                """,
                lead_id,
                classification.value,
                last_activity_at,
                stage,
                priority.value if priority else None,
            )
        if result.endswith(" 0"):
            raise NotFoundError(f"Lead {lead_id} not found")

    async def list_unclassified(self, tenant_id: UUID) -> list[Lead]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM leads
                WHERE tenant_id = $1 AND broadcast_classification IS NULL
                ORDER BY created_at ASC
                """,
                tenant_id,
            )
        return [self._row_to_lead(row) for row in rows]
