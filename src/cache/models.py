# src/cache/models.py — v2
"""Cache domain models: CacheEntry and CacheStats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, computed_field


@dataclass
class CacheEntry:
    """A stored value with its expiry bookkeeping.

    Owned by the store. ``expires_at`` and ``created_at`` are readings of the
    store clock (monotonic seconds); ``expires_at`` of None means never.
    """

    value: Any
    expires_at: float | None
    created_at: float
    size_hint: int = 0

    def is_expired(self, now: float) -> bool:
        """True once the clock has reached the expiry time."""
        return self.expires_at is not None and now >= self.expires_at


class CacheStats(BaseModel):
    """Counters for one store instance, reset by close() or reset_stats()."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        """Share of get() calls that were hits (0.0 when nothing was read)."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
