# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Any backend honoring the TTL, eviction and stats semantics can be plugged
into the orchestrator. Values handed to set() and returned by get() must not
alias stored state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from seoscope.cache.models import CacheStats


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value for key, or None when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store value under key. A ttl of None or 0 uses the store default."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if an entry was removed."""

    @abstractmethod
    async def has(self, key: str) -> bool:
        """True if key holds a live entry. Does not count as a read."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    async def get_stats(self) -> CacheStats | None:
        """Snapshot of the counters, or None when stats are disabled."""

    @abstractmethod
    async def close(self) -> None:
        """Release timers and resources. Idempotent."""

    async def reset_stats(self) -> None:
        """Zero the counters. No-op for backends without stats."""

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return the live entries among keys."""
        found: dict[str, Any] = {}
        for key in keys:
            value = await self.get(key)
            if value is not None:
                found[key] = value
        return found

    async def set_many(
        self, entries: Mapping[str, Any], ttl_seconds: float | None = None
    ) -> None:
        """Store every key/value pair with the same ttl."""
        for key, value in entries.items():
            await self.set(key, value, ttl_seconds)

    async def delete_many(self, keys: Iterable[str]) -> int:
        """Remove keys and return how many entries existed."""
        removed = 0
        for key in keys:
            if await self.delete(key):
                removed += 1
        return removed

    async def __aenter__(self) -> BaseCacheStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
