# src/llm/rate_limiter.py — v1
"""Per-provider throttling of LLM calls.

RateLimiter combines a token bucket (max_requests per window, refilled
continuously) with a cap on concurrent calls. Callers that cannot start
right away wait in a FIFO queue of bounded size. ProviderRateLimits hands
out one limiter per provider name.

Usage:
    async with limits.get("anthropic"):
        response = await client.complete(...)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import TYPE_CHECKING, Callable

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from seoscope.config.settings import Settings

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """The limiter refused a call (queue full, queueing disabled or closed)."""


class RateLimiterConfig(BaseModel):
    """Limits for one provider."""

    max_requests: int = Field(ge=1)
    window_seconds: float = Field(gt=0)
    max_concurrent: int = Field(default=10, ge=1)
    enable_queue: bool = True
    max_queue_size: int = Field(default=100, ge=0)  # 0 = unbounded


class RateLimiterStats(BaseModel):
    """Counters for one limiter."""

    total_requests: int = 0
    accepted_requests: int = 0
    rejected_requests: int = 0
    queued_requests: int = 0
    current_concurrent: int = 0
    average_wait_ms: float = 0.0


class RateLimiter:
    """Token bucket plus concurrency cap with a FIFO wait queue.

    Args:
        config: Limits to enforce.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self, config: RateLimiterConfig, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._config = config
        self._clock = clock
        self._tokens = float(config.max_requests)
        self._last_refill = clock()
        self._concurrent = 0
        self._waiters: deque[tuple[asyncio.Future[None], float]] = deque()
        self._timer: asyncio.TimerHandle | None = None
        self._stats = RateLimiterStats()

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    async def acquire(self) -> None:
        """Take a token and a concurrency slot, waiting in line if needed.

        Raises:
            RateLimitExceeded: If the call cannot be queued.
        """
        self._stats.total_requests += 1
        self._refill()

        if not self._waiters and self._can_start():
            self._grant(0.0)
            return

        if not self._config.enable_queue:
            self._stats.rejected_requests += 1
            raise RateLimitExceeded("Rate limit exceeded")
        max_queue = self._config.max_queue_size
        if max_queue and len(self._waiters) >= max_queue:
            self._stats.rejected_requests += 1
            raise RateLimitExceeded("Rate limit queue is full")

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append((future, self._clock()))
        self._dispatch()

        try:
            await future
        except asyncio.CancelledError:
            if future.done() and not future.cancelled():
                # Slot was granted just before cancellation
                self.release()
            else:
                self._forget(future)
            raise

    def try_acquire(self) -> bool:
        """Take a token and slot only if both are free right now."""
        self._stats.total_requests += 1
        self._refill()
        if not self._waiters and self._can_start():
            self._grant(0.0)
            return True
        self._stats.rejected_requests += 1
        return False

    def release(self) -> None:
        """Give back a concurrency slot and admit queued callers."""
        self._concurrent = max(0, self._concurrent - 1)
        self._stats.current_concurrent = self._concurrent
        self._dispatch()

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.release()

    def available_tokens(self) -> int:
        self._refill()
        return int(self._tokens)

    def get_stats(self) -> RateLimiterStats:
        return self._stats.model_copy()

    def reset_stats(self) -> None:
        self._stats = RateLimiterStats(
            queued_requests=len(self._waiters),
            current_concurrent=self._concurrent,
        )

    def close(self) -> None:
        """Cancel the refill timer and fail every queued caller."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        while self._waiters:
            future, _ = self._waiters.popleft()
            if not future.done():
                future.set_exception(RateLimitExceeded("Rate limiter closed"))
        self._stats.queued_requests = 0

    # --- Internals ---

    def _can_start(self) -> bool:
        return self._tokens >= 1 and self._concurrent < self._config.max_concurrent

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        rate = self._config.max_requests / self._config.window_seconds
        self._tokens = min(float(self._config.max_requests), self._tokens + elapsed * rate)
        self._last_refill = now

    def _grant(self, waited_s: float) -> None:
        self._tokens -= 1
        self._concurrent += 1
        self._stats.accepted_requests += 1
        self._stats.current_concurrent = self._concurrent
        n = self._stats.accepted_requests
        previous = self._stats.average_wait_ms
        self._stats.average_wait_ms = previous + (waited_s * 1000 - previous) / n

    def _dispatch(self) -> None:
        self._refill()
        while self._waiters and self._can_start():
            future, enqueued = self._waiters.popleft()
            if future.done():
                continue
            self._grant(self._clock() - enqueued)
            future.set_result(None)
        self._stats.queued_requests = len(self._waiters)
        self._schedule_refill()

    def _schedule_refill(self) -> None:
        # Only needed when the bucket, not the concurrency cap, blocks the head
        if self._timer is not None or not self._waiters:
            return
        if self._tokens >= 1 or self._concurrent >= self._config.max_concurrent:
            return
        rate = self._config.max_requests / self._config.window_seconds
        delay = (1 - self._tokens) / rate
        self._timer = asyncio.get_running_loop().call_later(delay, self._on_refill_timer)

    def _on_refill_timer(self) -> None:
        self._timer = None
        self._dispatch()

    def _forget(self, future: asyncio.Future[None]) -> None:
        for entry in self._waiters:
            if entry[0] is future:
                self._waiters.remove(entry)
                break
        self._stats.queued_requests = len(self._waiters)


class ProviderRateLimits:
    """One RateLimiter per provider, created on first use.

    Args:
        default_config: Limits for providers without an explicit config.
        overrides: Per-provider limits.
    """

    def __init__(
        self,
        default_config: RateLimiterConfig,
        overrides: dict[str, RateLimiterConfig] | None = None,
    ) -> None:
        self._default = default_config
        self._overrides = dict(overrides or {})
        self._limiters: dict[str, RateLimiter] = {}

    def get(self, provider: str) -> RateLimiter:
        limiter = self._limiters.get(provider)
        if limiter is None:
            config = self._overrides.get(provider, self._default)
            limiter = RateLimiter(config)
            self._limiters[provider] = limiter
            logger.debug(
                "Rate limiter for %s: %d requests / %.0fs, %d concurrent",
                provider, config.max_requests, config.window_seconds,
                config.max_concurrent,
            )
        return limiter

    def set(self, provider: str, limiter: RateLimiter) -> None:
        """Install a limiter for a provider, closing the one it replaces."""
        existing = self._limiters.get(provider)
        if existing is not None and existing is not limiter:
            existing.close()
        self._limiters[provider] = limiter

    def all_stats(self) -> dict[str, RateLimiterStats]:
        return {name: limiter.get_stats() for name, limiter in self._limiters.items()}

    def close(self) -> None:
        for limiter in self._limiters.values():
            limiter.close()
        self._limiters.clear()


def create_rate_limits(settings: Settings) -> ProviderRateLimits | None:
    """Build provider limits from settings, or None when AI_RATE_LIMIT_REQUESTS is 0."""
    if settings.ai_rate_limit_requests == 0:
        return None
    return ProviderRateLimits(
        RateLimiterConfig(
            max_requests=settings.ai_rate_limit_requests,
            window_seconds=settings.ai_rate_limit_window_seconds,
            max_concurrent=settings.ai_rate_limit_max_concurrent,
            max_queue_size=settings.ai_rate_limit_queue_size,
        )
    )
