"""Enums for conversation domain."""

from enum import Enum


class Role(str, Enum):
    """Speaker of a turn."""

    USER = "user"
    ASSISTANT = "assistant"


class SentBy(str, Enum):
    """Origin of a persisted message."""

    LEAD = "lead"
    BOT = "bot"
    OPERATOR = "operator"


class InterestLevel(str, Enum):
    """Lead interest level tracked in the conversation state."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Classification(str, Enum):
    """Outcome of a conversation, typically after a bulk campaign."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"
    BOT_AUTORESPONSE = "bot_autoresponse"


class Priority(str, Enum):
    """Lead priority in the sales pipeline."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
