"""ConversationStore and LeadStore implementations."""

from closer.conversation.stores.inmemory import (
    InMemoryConversationStore,
    InMemoryLeadStore,
)
from closer.conversation.stores.postgres import (
    PostgresConversationStore,
    PostgresLeadStore,
)

__all__ = [
    "InMemoryConversationStore",
    "InMemoryLeadStore",
    "PostgresConversationStore",
    "PostgresLeadStore",
]
