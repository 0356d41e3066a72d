"""Request and response models for the control endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from closer.pipeline import TurnStatus


class InboundMessageResponse(BaseModel):
    """Result of POST /messages/inbound."""

    status: TurnStatus
    conversation_id: UUID
    response: str | None = None
    was_guarded: bool = False
    guard_reason: str | None = None


class OperatorReplyRequest(BaseModel):
    """Body of POST /conversations/{id}/reply."""

    text: str = Field(..., min_length=1)
    operator: str = Field(default="operator", min_length=1)


class OperatorReplyResponse(BaseModel):
    message_id: UUID
    conversation_id: UUID
    created_at: datetime


class ControlActionResponse(BaseModel):
    """Result of an operator action on one conversation."""

    conversation_id: UUID
    success: bool


class ControlStatusResponse(BaseModel):
    """Current pause/suppress state of a conversation."""

    conversation_id: UUID
    paused: bool
    paused_by: str | None = None
    paused_at: datetime | None = None
    suppressed: bool
    campaign_id: str | None = None
    suppress_expires_at: datetime | None = None


class SuppressBroadcastRequest(BaseModel):
    """Body of POST /broadcasts/{campaign_id}/suppress."""

    conversation_ids: list[UUID] = Field(..., min_length=1)


class SuppressBroadcastResponse(BaseModel):
    campaign_id: str
    requested: int
    suppressed: int


class ClassifyLeadsRequest(BaseModel):
    """Body of POST /leads/classify."""

    tenant_id: UUID


class ClassifyLeadsResponse(BaseModel):
    total: int
    classified: int
    skipped: int
    failed: int = 0
    results: dict[str, int] = Field(default_factory=dict)
