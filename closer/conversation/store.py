"""ConversationStore and LeadStore abstract interfaces."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from closer.conversation.models import (
    Classification,
    Conversation,
    ConversationState,
    Lead,
    Message,
    Priority,
)


class ConversationStore(ABC):
    """Abstract interface for conversations, their messages and state."""

    @abstractmethod
    async def get(self, conversation_id: UUID) -> Conversation | None:
        """Get a conversation by ID."""
        pass

    @abstractmethod
    async def save(self, conversation: Conversation) -> UUID:
        """Insert or update a conversation, returning its ID."""
        pass

    @abstractmethod
    async def get_latest_for_lead(self, lead_id: UUID) -> Conversation | None:
        """Get the most recently created conversation of a lead."""
        pass

    @abstractmethod
    async def add_message(self, message: Message) -> UUID:
        """Append a message to its conversation."""
        pass

    @abstractmethod
    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        limit: int | None = None,
    ) -> list[Message]:
        """List messages oldest first; with limit, the most recent ones."""
        pass

    @abstractmethod
    async def get_state(self, conversation_id: UUID) -> ConversationState | None:
        """Get the validated conversation state."""
        pass

    @abstractmethod
    async def save_state(self, conversation_id: UUID, state: ConversationState) -> None:
        """Persist the conversation state."""
        pass


class LeadStore(ABC):
    """Abstract interface for lead storage."""

    @abstractmethod
    async def get(self, lead_id: UUID) -> Lead | None:
        """Get a lead by ID."""
        pass

    @abstractmethod
    async def save(self, lead: Lead) -> UUID:
        """Insert or update a lead, returning its ID."""
        pass

    @abstractmethod
    async def update_classification(
        self,
        lead_id: UUID,
        *,
        classification: Classification,
        last_activity_at: datetime,
        stage: str | None = None,
        priority: Priority | None = None,
    ) -> None:
        """Record a classification; stage and priority only when given."""
        pass

    @abstractmethod
    async def list_unclassified(self, tenant_id: UUID) -> list[Lead]:
        """List a tenant's leads without a broadcast classification."""
        pass
