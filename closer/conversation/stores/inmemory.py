"""In-memory implementations of ConversationStore and LeadStore."""

from datetime import datetime
from uuid import UUID

from closer.conversation.models import (
    Classification,
    Conversation,
    ConversationState,
    Lead,
    Message,
    Priority,
    load_conversation_state,
    utc_now,
)
from closer.conversation.store import ConversationStore, LeadStore
from closer.db.errors import NotFoundError


class InMemoryConversationStore(ConversationStore):
    """In-memory implementation of ConversationStore for testing and development."""

    def __init__(self) -> None:
        self._conversations: dict[UUID, Conversation] = {}
        self._messages: dict[UUID, list[Message]] = {}

    async def get(self, conversation_id: UUID) -> Conversation | None:
        return self._conversations.get(conversation_id)

    async def save(self, conversation: Conversation) -> UUID:
        conversation.updated_at = utc_now()
        self._conversations[conversation.id] = conversation
        return conversation.id

    async def get_latest_for_lead(self, lead_id: UUID) -> Conversation | None:
        candidates = [c for c in self._conversations.values() if c.lead_id == lead_id]
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.created_at)

    async def add_message(self, message: Message) -> UUID:
        self._messages.setdefault(message.conversation_id, []).append(message)
        return message.id

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        limit: int | None = None,
    ) -> list[Message]:
        messages = sorted(
            self._messages.get(conversation_id, []),
            key=lambda m: m.created_at,
        )
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    async def get_state(self, conversation_id: UUID) -> ConversationState | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        return load_conversation_state(conversation.state)

    async def save_state(self, conversation_id: UUID, state: ConversationState) -> None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        conversation.state = state.model_dump(mode="json")
        conversation.updated_at = utc_now()

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._conversations.clear()
        self._messages.clear()


class InMemoryLeadStore(LeadStore):
    """In-memory implementation of LeadStore for testing and development."""

    def __init__(self) -> None:
        self._leads: dict[UUID, Lead] = {}

    async def get(self, lead_id: UUID) -> Lead | None:
        return self._leads.get(lead_id)

    async def save(self, lead: Lead) -> UUID:
        self._leads[lead.id] = lead
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
        lead = self._leads.get(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found")
        lead.broadcast_classification = classification
        lead.last_activity_at = last_activity_at
        if stage is not None:
            lead.stage = stage
        if priority is not None:
            lead.priority = priority

    async def list_unclassified(self, tenant_id: UUID) -> list[Lead]:
        return [
            lead
            for lead in self._leads.values()
            if lead.tenant_id == tenant_id and lead.broadcast_classification is None
        ]

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._leads.clear()
