"""Conversation domain: conversations, messages, leads and rolling state."""

from closer.conversation.store import ConversationStore, LeadStore
from closer.conversation.stores import (
    InMemoryConversationStore,
    InMemoryLeadStore,
    PostgresConversationStore,
    PostgresLeadStore,
)

__all__ = [
    "ConversationStore",
    "InMemoryConversationStore",
    "InMemoryLeadStore",
    "LeadStore",
    "PostgresConversationStore",
    "PostgresLeadStore",
]
