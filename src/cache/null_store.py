# src/cache/null_store.py — v1
"""Cache store that stores nothing (CACHE_ENABLED=false or CACHE_BACKEND=none)."""

from __future__ import annotations

from typing import Any

from seoscope.cache.base_cache_store import BaseCacheStore
from seoscope.cache.models import CacheStats


class NullCacheStore(BaseCacheStore):
    """Accepts writes and always misses."""

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        return None

    async def delete(self, key: str) -> bool:
        return False

    async def has(self, key: str) -> bool:
        return False

    async def clear(self) -> None:
        return None

    async def get_stats(self) -> CacheStats | None:
        return None

    async def close(self) -> None:
        return None
