# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation from settings."""

from __future__ import annotations

from seoscope.cache.base_cache_store import BaseCacheStore
from seoscope.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to an in-memory store with
            the default sizing (300 s TTL, 1000 entries, stats on).

    Returns:
        Configured BaseCacheStore implementation.

    Raises:
        ValueError: If the configured backend is unknown.
    """
    if settings is None:
        from seoscope.cache.memory_store import MemoryCacheStore

        return MemoryCacheStore(default_ttl_seconds=300, max_size=1000, enable_stats=True)

    backend = settings.cache_backend

    if not settings.cache_enabled or backend == "none":
        from seoscope.cache.null_store import NullCacheStore

        return NullCacheStore()

    if backend == "memory":
        from seoscope.cache.memory_store import MemoryCacheStore

        return MemoryCacheStore(
            default_ttl_seconds=settings.cache_ttl_seconds,
            max_size=settings.cache_max_size,
            enable_stats=settings.cache_enable_stats,
            namespace=settings.cache_namespace or None,
            sweep_interval_seconds=settings.cache_sweep_interval_seconds,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")
