"""Error envelope returned by every failing endpoint."""

from enum import Enum

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    LLM_ERROR = "LLM_ERROR"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """One rejected request field, e.g. field="body.actor_phone"."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    code: ErrorCode
    message: str
    details: list[ErrorDetail] | None = None
    # Only set on RATE_LIMIT_EXCEEDED.
    reason: str | None = Field(default=None, examples=["minute_limit"])
    remaining: int | None = Field(default=None, ge=0)


class ErrorResponse(BaseModel):
    error: ErrorBody
