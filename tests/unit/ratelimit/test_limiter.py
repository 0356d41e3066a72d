"""Tests for the three-tier MessageRateLimiter."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from closer.config.models.control import RateLimitConfig, RateLimitTierConfig
from closer.db.errors import ConnectionError
from closer.ratelimit import (
    InMemorySlidingWindow,
    MessageRateLimiter,
    RateLimitReason,
    check_rate_limit,
    set_rate_limiter,
)


def make_config(minute: int = 3, hour: int = 5, global_minute: int = 100) -> RateLimitConfig:
    return RateLimitConfig(
        actor_minute=RateLimitTierConfig(limit=minute, window_seconds=60),
        actor_hour=RateLimitTierConfig(limit=hour, window_seconds=3600),
        global_minute=RateLimitTierConfig(limit=global_minute, window_seconds=60),
        timeout_seconds=0.05,
    )


class TestMessageRateLimiter:
    @pytest.mark.asyncio
    async def test_allowed_carries_minute_remaining(self) -> None:
        limiter = MessageRateLimiter(InMemorySlidingWindow(), make_config(minute=3))

        result = await limiter.check("+52155")

        assert result.allowed is True
        assert result.reason is None
        assert result.remaining == 2

    @pytest.mark.asyncio
    async def test_minute_tier_rejects_first(self) -> None:
        limiter = MessageRateLimiter(InMemorySlidingWindow(), make_config(minute=2))

        await limiter.check("+52155")
        await limiter.check("+52155")
        result = await limiter.check("+52155")

        assert result.allowed is False
        assert result.reason == RateLimitReason.MINUTE_LIMIT
        assert result.remaining == 0

    @pytest.mark.asyncio
    async def test_hour_tier(self) -> None:
        window = InMemorySlidingWindow()
        limiter = MessageRateLimiter(window, make_config(minute=10, hour=2))

        await limiter.check("+52155")
        await limiter.check("+52155")
        result = await limiter.check("+52155")

        assert result.reason == RateLimitReason.HOUR_LIMIT

    @pytest.mark.asyncio
    async def test_global_tier_spans_actors(self) -> None:
        limiter = MessageRateLimiter(InMemorySlidingWindow(), make_config(global_minute=2))

        assert (await limiter.check("+1")).allowed is True
        assert (await limiter.check("+2")).allowed is True
        result = await limiter.check("+3")

        assert result.allowed is False
        assert result.reason == RateLimitReason.GLOBAL_LIMIT

    @pytest.mark.asyncio
    async def test_actors_are_independent(self) -> None:
        limiter = MessageRateLimiter(InMemorySlidingWindow(), make_config(minute=1))

        assert (await limiter.check("+1")).allowed is True
        assert (await limiter.check("+2")).allowed is True
        assert (await limiter.check("+1")).allowed is False

    @pytest.mark.asyncio
    async def test_no_backend_allows(self) -> None:
        result = await MessageRateLimiter(None, make_config()).check("+52155")

        assert result.allowed is True
        assert result.remaining is None

    @pytest.mark.asyncio
    async def test_disabled_allows(self) -> None:
        window = AsyncMock()
        config = make_config()
        config.enabled = False

        assert (await MessageRateLimiter(window, config).check("+1")).allowed is True
        window.hit.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_error_fails_open(self) -> None:
        window = AsyncMock()
        window.hit.side_effect = ConnectionError("down")

        assert (await MessageRateLimiter(window, make_config()).check("+1")).allowed is True

    @pytest.mark.asyncio
    async def test_timeout_fails_open(self) -> None:
        async def slow_hit(*_args, **_kwargs):
            await asyncio.sleep(1)

        window = AsyncMock()
        window.hit.side_effect = slow_hit

        assert (await MessageRateLimiter(window, make_config()).check("+1")).allowed is True

    @pytest.mark.asyncio
    async def test_window_keys(self) -> None:
        window = AsyncMock(wraps=InMemorySlidingWindow())
        await MessageRateLimiter(window, make_config()).check("+52155")

        keys = [call.args[0] for call in window.hit.call_args_list]
        assert keys == [
            "ratelimit:minute:+52155",
            "ratelimit:hour:+52155",
            "ratelimit:global:global",
        ]


class TestModuleLimiter:
    @pytest.mark.asyncio
    async def test_check_rate_limit_uses_installed_limiter(self) -> None:
        set_rate_limiter(MessageRateLimiter(InMemorySlidingWindow(), make_config(minute=1)))
        try:
            assert (await check_rate_limit("+1")).allowed is True
            assert (await check_rate_limit("+1")).allowed is False
        finally:
            set_rate_limiter(None)

    @pytest.mark.asyncio
    async def test_default_limiter_is_a_noop(self) -> None:
        set_rate_limiter(None)
        assert (await check_rate_limit("+1")).allowed is True
