"""Rate limiting result models."""

from enum import Enum

from pydantic import BaseModel


class RateLimitReason(str, Enum):
    """Which tier rejected the message."""

    MINUTE_LIMIT = "minute_limit"
    HOUR_LIMIT = "hour_limit"
    GLOBAL_LIMIT = "global_limit"


class WindowResult(BaseModel):
    """Outcome of a single sliding-window hit."""

    allowed: bool
    """Whether the hit fit inside the window."""

    limit: int
    """Maximum hits allowed in the window."""

    remaining: int
    """Hits left in the window after this one."""


class RateLimitResult(BaseModel):
    """Result of a three-tier message rate limit check.

    An allowed result carries the per-minute remaining count. A rejected
    result carries the rejecting tier and its remaining count.
    """

    allowed: bool
    reason: RateLimitReason | None = None
    remaining: int | None = None
