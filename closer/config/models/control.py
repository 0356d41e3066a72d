"""Conversation control plane configuration models.

Covers the pause/suppress controller, conversation lock, rate limiter,
progress tracker, response guard, summarizer and outcome classifier.
"""

from pydantic import BaseModel, Field


class ControlConfig(BaseModel):
    """Pause/suppress controller and conversation lock settings."""

    pause_ttl_seconds: int = Field(
        default=86400,  # 24 hours
        gt=0,
        description="Fast-store TTL of an operator pause",
    )
    suppress_ttl_seconds: int = Field(
        default=604800,  # 7 days
        gt=0,
        description="Lifetime of a broadcast suppression",
    )
    check_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Timeout applied to is_paused / is_suppressed checks",
    )
    lock_ttl_seconds: int = Field(
        default=30,
        gt=0,
        description="TTL of a conversation lock",
    )
    lock_wait_seconds: float = Field(
        default=5.0,
        ge=0,
        description="How long to wait for a conversation lock",
    )
    lock_poll_interval_seconds: float = Field(
        default=0.2,
        gt=0,
        description="Polling interval while waiting for a lock",
    )
    suppress_chunk_size: int = Field(
        default=50,
        gt=0,
        description="Conversations suppressed per chunk during a bulk send",
    )
    suppress_chunk_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay between suppression chunks",
    )


class RateLimitTierConfig(BaseModel):
    """A single sliding-window tier."""

    limit: int = Field(..., gt=0, description="Requests allowed per window")
    window_seconds: int = Field(..., gt=0, description="Window length in seconds")


class RateLimitConfig(BaseModel):
    """Three-tier inbound message rate limiting."""

    enabled: bool = Field(default=True, description="Enable rate limiting")
    actor_minute: RateLimitTierConfig = Field(
        default_factory=lambda: RateLimitTierConfig(limit=20, window_seconds=60),
        description="Per-actor per-minute tier",
    )
    actor_hour: RateLimitTierConfig = Field(
        default_factory=lambda: RateLimitTierConfig(limit=100, window_seconds=3600),
        description="Per-actor per-hour tier",
    )
    global_minute: RateLimitTierConfig = Field(
        default_factory=lambda: RateLimitTierConfig(limit=1000, window_seconds=60),
        description="Global per-minute tier",
    )
    timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Timeout applied to each tier check",
    )


class ProgressConfig(BaseModel):
    """Progress tracker thresholds."""

    pivot_tier_2: int = Field(default=2, ge=1, description="Unanswered asks for tier 2")
    pivot_tier_3: int = Field(default=3, ge=1, description="Unanswered asks for tier 3")
    stall_window: int = Field(
        default=4, ge=1, description="Assistant turns inspected for stall detection"
    )
    stall_turns: int = Field(
        default=4, ge=1, description="Stalled turns that force an advance"
    )
    max_turns_before_advance: int = Field(
        default=8, ge=1, description="Turn count that forces an advance"
    )
    progress_after_turns: int = Field(
        default=4, ge=0, description="Turn count after which progress text is emitted"
    )


class GuardConfig(BaseModel):
    """Response guard settings."""

    max_sentences: int = Field(default=3, ge=1, description="Sentences kept per reply")


class SummaryConfig(BaseModel):
    """Conversation state summarizer settings."""

    enabled: bool = Field(default=True, description="Enable rolling summaries")
    first_summary_user_turns: int = Field(
        default=3, ge=1, description="User turns before the first summary"
    )
    refresh_interval: int = Field(
        default=5, ge=1, description="New user turns between refreshes"
    )


class ClassificationConfig(BaseModel):
    """Outcome classifier batch settings."""

    inter_call_delay_seconds: float = Field(
        default=0.15,
        ge=0,
        description="Backpressure delay between classification calls",
    )
