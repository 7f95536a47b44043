# src/cache/memory_store.py — v1
"""In-process cache store with TTL expiry and LRU eviction.

Entries live in an OrderedDict ordered from least to most recently used.
Expiry is lazy: an expired entry is removed when a read finds it, or by the
optional background sweep. Every method body runs without awaiting, so a
hit/miss check and its counter update happen in the same event-loop turn.
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
import sys
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from seoscope.cache.base_cache_store import BaseCacheStore
from seoscope.cache.models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)


class MemoryCacheStore(BaseCacheStore):
    """Bounded in-memory cache.

    Args:
        default_ttl_seconds: TTL applied when set() gets None or 0.
            0 means entries never expire.
        max_size: Maximum number of live entries.
        enable_stats: Track hit/miss/eviction counters.
        namespace: Optional prefix applied to every key.
        sweep_interval_seconds: Period of the background expiry sweep
            (0 disables it).
            The sweep task starts on the first set() inside a running loop
            and stops only in close(), so close the store (or use it as
            ``async with``) before that loop ends.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 0,
        max_size: int = 1000,
        enable_stats: bool = False,
        namespace: str | None = None,
        sweep_interval_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        if default_ttl_seconds < 0:
            raise ValueError(f"default_ttl_seconds must be >= 0, got {default_ttl_seconds}")
        self._default_ttl = default_ttl_seconds
        self._max_size = max_size
        self._enable_stats = enable_stats
        self._namespace = namespace or ""
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._stats = CacheStats()
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    def __len__(self) -> int:
        return len(self._entries)

    # --- Single-key operations ---

    async def get(self, key: str) -> Any | None:
        k = self._key(key)
        entry = self._entries.get(k)
        if entry is None:
            self._count("misses")
            return None
        if entry.is_expired(self._clock()):
            del self._entries[k]
            self._count("expirations")
            self._count("misses")
            return None
        self._entries.move_to_end(k)
        self._count("hits")
        return copy.deepcopy(entry.value)

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        k = self._key(key)
        now = self._clock()
        if ttl_seconds is not None and ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        ttl = ttl_seconds if ttl_seconds else self._default_ttl
        entry = CacheEntry(
            value=copy.deepcopy(value),
            expires_at=now + ttl if ttl > 0 else None,
            created_at=now,
            size_hint=sys.getsizeof(value),
        )

        if k in self._entries:
            self._entries[k] = entry
            self._entries.move_to_end(k)
        else:
            while len(self._entries) >= self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._count("evictions")
                logger.debug("Evicted LRU cache entry %s", evicted)
            self._entries[k] = entry

        self._count("sets")
        self._ensure_sweeper()

    async def delete(self, key: str) -> bool:
        removed = self._entries.pop(self._key(key), None) is not None
        if removed:
            self._count("deletes")
        return removed

    async def has(self, key: str) -> bool:
        k = self._key(key)
        entry = self._entries.get(k)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            del self._entries[k]
            self._count("expirations")
            return False
        return True

    async def clear(self) -> None:
        self._entries.clear()

    async def get_stats(self) -> CacheStats | None:
        if not self._enable_stats:
            return None
        return self._stats.model_copy(update={"size": len(self._entries)})

    async def reset_stats(self) -> None:
        self._stats = CacheStats()

    async def close(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._entries.clear()
        self._stats = CacheStats()

    # --- Expiry sweep ---

    def purge_expired(self) -> int:
        """Remove every expired entry now. Returns the number removed."""
        now = self._clock()
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for k in expired:
            del self._entries[k]
        if expired:
            self._count("expirations", len(expired))
        return len(expired)

    def _ensure_sweeper(self) -> None:
        if self._sweep_interval <= 0 or self._sweep_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._sweep_task = loop.create_task(self._sweep_loop())

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            removed = self.purge_expired()
            if removed:
                logger.debug("Sweep removed %d expired cache entries", removed)

    # --- Helpers ---

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    def _count(self, counter: str, amount: int = 1) -> None:
        if self._enable_stats:
            setattr(self._stats, counter, getattr(self._stats, counter) + amount)
