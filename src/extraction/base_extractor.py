# src/extraction/base_extractor.py — v2
"""Abstract extractor interface.

An extractor turns raw page content into PageMetrics. It must never raise on
empty, malformed or oversized input; the orchestrator validates size first
and treats any exception that still escapes as an analysis failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from seoscope.core.models import PageMetrics


class BaseExtractor(ABC):
    """Unified interface for page metric extractors."""

    @abstractmethod
    async def extract(
        self, content: str, base_url: str | None = None, fast: bool = False
    ) -> PageMetrics:
        """Measure content. ``fast`` skips the expensive measurements."""

    @property
    def name(self) -> str:
        return type(self).__name__
