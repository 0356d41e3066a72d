"""Turn and message models."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from closer.conversation.models.enums import Role, SentBy


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class Turn(BaseModel):
    """One visible exchange in a conversation history."""

    role: Role
    content: str


class Message(BaseModel):
    """A persisted message."""

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    conversation_id: UUID = Field(..., description="Owning conversation")
    role: Role = Field(..., description="Speaker")
    content: str = Field(..., description="Message text")
    sent_by: SentBy = Field(default=SentBy.BOT, description="Who produced the message")
    created_at: datetime = Field(default_factory=utc_now)

    def to_turn(self) -> Turn:
        return Turn(role=self.role, content=self.content)


def count_user_turns(turns: list[Turn]) -> int:
    return sum(1 for turn in turns if turn.role == Role.USER)
