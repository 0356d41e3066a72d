"""Inbound message rate limiter.

Three tiers are checked in strict order and the first rejection wins:

1. per actor, per minute   (default 20)
2. per actor, per hour     (default 100)
3. global, per minute      (default 1000)

Every failure mode allows the message: no backing store, a timeout, or a
store error. The limiter protects cost, not correctness.
"""

import asyncio

from closer.config.models.control import RateLimitConfig, RateLimitTierConfig
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import RATE_LIMIT_DECISIONS
from closer.ratelimit.models import RateLimitReason, RateLimitResult
from closer.ratelimit.window import SlidingWindowStore

logger = get_logger(__name__)

GLOBAL_ACTOR_KEY = "global"


class MessageRateLimiter:
    """Checks inbound messages against the three sliding-window tiers."""

    def __init__(
        self,
        window: SlidingWindowStore | None,
        config: RateLimitConfig | None = None,
    ) -> None:
        """Initialize the limiter.

        Args:
            window: Sliding window backend; None disables limiting
            config: Tier limits and timeout
        """
        self._window = window
        self._config = config or RateLimitConfig()

    @property
    def _tiers(self) -> list[tuple[str, RateLimitTierConfig, RateLimitReason, bool]]:
        return [
            ("minute", self._config.actor_minute, RateLimitReason.MINUTE_LIMIT, False),
            ("hour", self._config.actor_hour, RateLimitReason.HOUR_LIMIT, False),
            ("global", self._config.global_minute, RateLimitReason.GLOBAL_LIMIT, True),
        ]

    async def check(self, actor_key: str) -> RateLimitResult:
        """Check and record a message from actor_key.

        Args:
            actor_key: Sender identifier (phone number)

        Returns:
            RateLimitResult; allowed results carry the minute-tier remaining
        """
        if not self._config.enabled or self._window is None:
            RATE_LIMIT_DECISIONS.labels(outcome="disabled").inc()
            logger.debug("rate_limit_not_configured")
            return RateLimitResult(allowed=True)

        minute_remaining: int | None = None
        try:
            for name, tier, reason, is_global in self._tiers:
                subject = GLOBAL_ACTOR_KEY if is_global else actor_key
                result = await asyncio.wait_for(
                    self._window.hit(
                        f"ratelimit:{name}:{subject}",
                        tier.limit,
                        tier.window_seconds,
                    ),
                    timeout=self._config.timeout_seconds,
                )
                if not result.allowed:
                    RATE_LIMIT_DECISIONS.labels(outcome=reason.value).inc()
                    logger.warning(
                        "rate_limit_exceeded",
                        reason=reason.value,
                        limit=tier.limit,
                        window_seconds=tier.window_seconds,
                    )
                    return RateLimitResult(
                        allowed=False,
                        reason=reason,
                        remaining=result.remaining,
                    )
                if name == "minute":
                    minute_remaining = result.remaining
        except (StoreError, TimeoutError) as e:
            RATE_LIMIT_DECISIONS.labels(outcome="fail_open").inc()
            logger.error("rate_limit_check_failed", error=str(e) or "timeout")
            return RateLimitResult(allowed=True)

        RATE_LIMIT_DECISIONS.labels(outcome="allowed").inc()
        return RateLimitResult(allowed=True, remaining=minute_remaining)


# Global limiter instance
_rate_limiter: MessageRateLimiter | None = None


def get_rate_limiter() -> MessageRateLimiter:
    """Get the global limiter (unbacked, allowing everything, by default)."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = MessageRateLimiter(window=None)
    return _rate_limiter


def set_rate_limiter(limiter: MessageRateLimiter | None) -> None:
    """Set the global limiter instance; None resets it."""
    global _rate_limiter
    _rate_limiter = limiter


async def check_rate_limit(actor_key: str) -> RateLimitResult:
    """Check an inbound message against the global limiter."""
    return await get_rate_limiter().check(actor_key)
