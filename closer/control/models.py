"""Pause and suppress records."""

from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class PauseState(BaseModel):
    """A human operator has taken over the conversation."""

    conversation_id: UUID
    paused: bool = True
    paused_at: datetime = Field(default_factory=utc_now)
    paused_by: str = "operator"
    ttl_seconds: int = Field(default=86400, description="Fast store TTL")


class SuppressState(BaseModel):
    """The conversation is silenced while a bulk campaign is sent.

    Durable copies outlive the fast-store TTL, so expiry is checked against
    expires_at on every read.
    """

    conversation_id: UUID
    suppressed: bool = True
    campaign_id: str
    suppressed_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    ttl_seconds: int = Field(default=604800, description="Fast store TTL")

    def is_active(self, now: datetime | None = None) -> bool:
        return self.suppressed and (now or utc_now()) < self.expires_at


class ControlStatus(BaseModel):
    """Combined control view of a conversation."""

    conversation_id: UUID
    paused: bool
    suppressed: bool
    pause: PauseState | None = None
    suppress: SuppressState | None = None
