"""Three-tier sliding-window rate limiting for inbound messages."""

from closer.ratelimit.limiter import (
    MessageRateLimiter,
    check_rate_limit,
    get_rate_limiter,
    set_rate_limiter,
)
from closer.ratelimit.models import RateLimitReason, RateLimitResult, WindowResult
from closer.ratelimit.window import (
    InMemorySlidingWindow,
    RedisSlidingWindow,
    SlidingWindowStore,
)

__all__ = [
    "InMemorySlidingWindow",
    "MessageRateLimiter",
    "RateLimitReason",
    "RateLimitResult",
    "RedisSlidingWindow",
    "SlidingWindowStore",
    "WindowResult",
    "check_rate_limit",
    "get_rate_limiter",
    "set_rate_limiter",
]
