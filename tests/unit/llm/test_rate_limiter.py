# tests/unit/llm/test_rate_limiter.py — v1
"""Tests for llm/rate_limiter.py — token bucket, concurrency cap, wait queue."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from seoscope.config.settings import Settings
from seoscope.llm.rate_limiter import (
    ProviderRateLimits,
    RateLimiter,
    RateLimiterConfig,
    RateLimitExceeded,
    create_rate_limits,
)


def _config(**overrides) -> RateLimiterConfig:
    values = {"max_requests": 100, "window_seconds": 1.0, "max_concurrent": 1}
    values.update(overrides)
    return RateLimiterConfig(**values)


class TestRateLimiterConfig:
    def test_defaults(self):
        config = RateLimiterConfig(max_requests=60, window_seconds=60)
        assert config.max_concurrent == 10
        assert config.enable_queue is True
        assert config.max_queue_size == 100

    @pytest.mark.parametrize("field,value", [
        ("max_requests", 0), ("window_seconds", 0), ("max_concurrent", 0),
        ("max_queue_size", -1),
    ])
    def test_invalid(self, field, value):
        values = {"max_requests": 10, "window_seconds": 1.0, field: value}
        with pytest.raises(ValidationError):
            RateLimiterConfig(**values)


class TestTokenBucket:
    def test_tokens_consumed(self, clock):
        limiter = RateLimiter(_config(max_requests=2, window_seconds=10, max_concurrent=10), clock)
        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is False
        stats = limiter.get_stats()
        assert (stats.total_requests, stats.accepted_requests, stats.rejected_requests) == (3, 2, 1)

    def test_release_does_not_refill(self, clock):
        limiter = RateLimiter(_config(max_requests=1, window_seconds=10, max_concurrent=10), clock)
        assert limiter.try_acquire() is True
        limiter.release()
        assert limiter.try_acquire() is False

    def test_continuous_refill(self, clock):
        limiter = RateLimiter(_config(max_requests=2, window_seconds=10, max_concurrent=10), clock)
        limiter.try_acquire()
        limiter.try_acquire()
        assert limiter.available_tokens() == 0
        clock.advance(5)
        assert limiter.available_tokens() == 1
        clock.advance(100)
        assert limiter.available_tokens() == 2

    def test_concurrency_cap(self, clock):
        limiter = RateLimiter(_config(max_concurrent=1), clock)
        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is False
        limiter.release()
        assert limiter.try_acquire() is True

    def test_reset_stats_keeps_live_counts(self, clock):
        limiter = RateLimiter(_config(max_concurrent=2), clock)
        limiter.try_acquire()
        limiter.reset_stats()
        stats = limiter.get_stats()
        assert stats.total_requests == 0
        assert stats.current_concurrent == 1


class TestAcquire:
    @pytest.mark.asyncio
    async def test_context_manager(self):
        limiter = RateLimiter(_config())
        async with limiter:
            assert limiter.get_stats().current_concurrent == 1
        assert limiter.get_stats().current_concurrent == 0

    @pytest.mark.asyncio
    async def test_waits_for_free_slot(self):
        limiter = RateLimiter(_config())
        await limiter.acquire()
        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        assert not waiter.done()
        assert limiter.get_stats().queued_requests == 1

        limiter.release()
        await asyncio.wait_for(waiter, timeout=1)
        stats = limiter.get_stats()
        assert stats.current_concurrent == 1
        assert stats.queued_requests == 0

    @pytest.mark.asyncio
    async def test_waiters_admitted_in_arrival_order(self):
        limiter = RateLimiter(_config())
        order: list[str] = []

        async def call(name: str) -> None:
            async with limiter:
                order.append(name)
                await asyncio.sleep(0)

        await limiter.acquire()
        tasks = [asyncio.create_task(call(name)) for name in ("a", "b", "c")]
        await asyncio.sleep(0)
        limiter.release()
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=1)
        assert order == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_waits_for_token_refill(self):
        limiter = RateLimiter(_config(max_requests=1, window_seconds=0.05, max_concurrent=5))
        async with limiter:
            pass
        start = time.monotonic()
        await asyncio.wait_for(limiter.acquire(), timeout=1)
        assert time.monotonic() - start >= 0.03
        assert limiter.get_stats().average_wait_ms > 0

    @pytest.mark.asyncio
    async def test_queue_full(self):
        limiter = RateLimiter(_config(max_queue_size=1))
        await limiter.acquire()
        queued = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        with pytest.raises(RateLimitExceeded, match="queue is full"):
            await limiter.acquire()
        assert limiter.get_stats().rejected_requests == 1

        limiter.release()
        await asyncio.wait_for(queued, timeout=1)
        limiter.release()

    @pytest.mark.asyncio
    async def test_queue_disabled(self):
        limiter = RateLimiter(_config(enable_queue=False))
        await limiter.acquire()
        with pytest.raises(RateLimitExceeded, match="Rate limit exceeded"):
            await limiter.acquire()

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self):
        limiter = RateLimiter(_config())
        await limiter.acquire()
        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert limiter.get_stats().queued_requests == 0

        limiter.release()
        assert limiter.try_acquire() is True

    @pytest.mark.asyncio
    async def test_close_fails_waiters(self):
        limiter = RateLimiter(_config())
        await limiter.acquire()
        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        limiter.close()
        with pytest.raises(RateLimitExceeded, match="closed"):
            await waiter
        assert limiter.get_stats().queued_requests == 0


class TestProviderRateLimits:
    def test_one_limiter_per_provider(self):
        limits = ProviderRateLimits(_config())
        assert limits.get("anthropic") is limits.get("anthropic")
        assert limits.get("anthropic") is not limits.get("openai")

    def test_overrides(self):
        limits = ProviderRateLimits(_config(), overrides={"ollama": _config(max_concurrent=4)})
        assert limits.get("ollama").config.max_concurrent == 4
        assert limits.get("openai").config.max_concurrent == 1

    def test_set_closes_replaced(self):
        limits = ProviderRateLimits(_config())
        old = MagicMock(spec=RateLimiter)
        new = RateLimiter(_config())
        limits.set("openai", old)
        limits.set("openai", new)
        old.close.assert_called_once()
        assert limits.get("openai") is new

    def test_all_stats(self):
        limits = ProviderRateLimits(_config())
        limits.get("a").try_acquire()
        limits.get("b")
        stats = limits.all_stats()
        assert set(stats) == {"a", "b"}
        assert stats["a"].accepted_requests == 1

    def test_close(self):
        limits = ProviderRateLimits(_config())
        first = limits.get("a")
        limits.close()
        assert limits.get("a") is not first


class TestCreateRateLimits:
    def test_from_settings(self):
        limits = create_rate_limits(Settings(
            _env_file=None, ai_rate_limit_requests=30, ai_rate_limit_window_seconds=10,
            ai_rate_limit_max_concurrent=2, ai_rate_limit_queue_size=7,
        ))
        config = limits.get("anthropic").config
        assert config.max_requests == 30
        assert config.window_seconds == 10
        assert config.max_concurrent == 2
        assert config.max_queue_size == 7

    def test_disabled(self):
        assert create_rate_limits(Settings(_env_file=None, ai_rate_limit_requests=0)) is None
