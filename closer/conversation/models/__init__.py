"""Conversation domain models.

Contains all Pydantic models for conversation data:
- Turns and persisted messages
- Conversations and leads
- The versioned rolling ConversationState
"""

from closer.conversation.models.conversation import Conversation, Lead
from closer.conversation.models.enums import (
    Classification,
    InterestLevel,
    Priority,
    Role,
    SentBy,
)
from closer.conversation.models.state import (
    CURRENT_STATE_VERSION,
    ConversationState,
    load_conversation_state,
)
from closer.conversation.models.turn import Message, Turn, count_user_turns, utc_now

__all__ = [
    # Enums
    "Classification",
    "InterestLevel",
    "Priority",
    "Role",
    "SentBy",
    # Models
    "Conversation",
    "ConversationState",
    "Lead",
    "Message",
    "Turn",
    # Helpers
    "CURRENT_STATE_VERSION",
    "count_user_turns",
    "load_conversation_state",
    "utc_now",
]
