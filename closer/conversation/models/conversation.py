"""Conversation and lead models."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from closer.conversation.models.enums import Classification, Priority
from closer.conversation.models.turn import utc_now


class Conversation(BaseModel):
    """A conversation between one lead and a tenant's agent."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    tenant_id: UUID = Field(..., description="Owning tenant")
    lead_id: UUID | None = Field(default=None, description="Lead on the other side")
    actor_phone: str = Field(..., description="Lead phone number on the channel")
    state: dict[str, Any] | None = Field(
        default=None, description="Raw conversation state document"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Lead(BaseModel):
    """A sales lead owned by a tenant."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    tenant_id: UUID = Field(..., description="Owning tenant")
    name: str | None = Field(default=None)
    phone: str = Field(...)
    stage: str = Field(default="Nuevo", description="Free-form pipeline stage label")
    priority: Priority | None = Field(default=None)
    broadcast_classification: Classification | None = Field(default=None)
    last_activity_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
