# src/pipeline/orchestrator.py — v2
"""Analysis orchestrator: the facade used by callers.

Wraps the extractor and the scoring engine, consults and populates the
cache store, and runs batches under a bounded admission gate.

Per-call state machine, logged at DEBUG through the stage context:
  idle -> analyzing -> cached                -> idle
                    -> computing -> scored  -> idle

Each call works on the config snapshot it was given (or the current one
when it started); update_config() only affects later calls.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from seoscope.batch.models import BatchItem, BatchResult
from seoscope.cache import keys
from seoscope.config.analysis import AnalysisConfig, config_from_settings
from seoscope.extraction.html_extractor import HtmlExtractor
from seoscope.logging.context import (
    set_batch_context,
    set_document_context,
    set_stage_context,
)
from seoscope.pipeline.models import AnalysisMeta, AnalysisResult, ContentMetadata
from seoscope.pipeline.validation import validate_content
from seoscope.scoring.engine import ScoringEngine, dedupe_recommendations
from seoscope.version import __version__

if TYPE_CHECKING:
    from seoscope.ai.bridge import BaseSuggestionBridge
    from seoscope.ai.prompts import PromptTemplate, SuggestionType
    from seoscope.cache.base_cache_store import BaseCacheStore
    from seoscope.config.settings import Settings
    from seoscope.extraction.base_extractor import BaseExtractor
    from seoscope.scoring.models import Recommendation

logger = logging.getLogger(__name__)

DEFAULT_BATCH_CONCURRENCY = 5

ProgressCallback = Callable[[int, int], Any]


class AnalysisError(RuntimeError):
    """A single analysis could not be completed (e.g. the extractor failed)."""


class AnalysisOrchestrator:
    """Top-level facade for single and batch SEO analysis.

    Args:
        config: Initial analysis config. Defaults to one derived from settings.
        extractor: Page extractor. Defaults to HtmlExtractor.
        engine: Scoring engine. Defaults to the built-in rule table.
        cache_store: Optional result cache.
        suggestion_bridge: Optional AI suggestion bridge.
        settings: Application settings (batch concurrency, content limit).
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        extractor: BaseExtractor | None = None,
        engine: ScoringEngine | None = None,
        cache_store: BaseCacheStore | None = None,
        suggestion_bridge: BaseSuggestionBridge | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings
        if config is None:
            config = config_from_settings(settings) if settings else AnalysisConfig()
        self._config = config
        self._extractor = extractor or HtmlExtractor()
        self._engine = engine or ScoringEngine()
        self._cache = cache_store
        self._bridge = suggestion_bridge

    @property
    def config(self) -> AnalysisConfig:
        """Current config snapshot (immutable)."""
        return self._config

    @property
    def cache_store(self) -> BaseCacheStore | None:
        return self._cache

    @property
    def suggestion_bridge(self) -> BaseSuggestionBridge | None:
        return self._bridge

    def update_config(self, **changes: Any) -> AnalysisConfig:
        """Replace config fields by shallow merge.

        Calls already in flight keep the snapshot they started with.

        Raises:
            pydantic.ValidationError: If the merged config is invalid.
        """
        self._config = self._config.merged(**changes)
        logger.info("Analysis config updated: %s", sorted(changes))
        return self._config

    # ------------------------------------------------------------------
    # Single analysis
    # ------------------------------------------------------------------

    async def analyze(
        self,
        content: str,
        config: AnalysisConfig | None = None,
        metadata: ContentMetadata | None = None,
    ) -> AnalysisResult:
        """Analyze one document.

        Args:
            content: HTML or plain text.
            config: Config for this call only. Defaults to the current snapshot.
            metadata: Caller facts; ``url`` and ``language`` fill unset
                config fields before the cache key is computed.

        Returns:
            The analysis result, from cache when available.

        Raises:
            ContentValidationError: If content is empty, too long or not text.
            AnalysisError: If extraction fails.
        """
        cfg = _apply_metadata(config or self._config, metadata)
        validate_content(content, cfg.max_content_length)

        set_stage_context("analyzing")
        try:
            start = time.perf_counter()
            cache_key = keys.seo_result(content, cfg.serialize())

            cached, cache_usable = await self._cache_get(cache_key)
            if cached is not None:
                set_stage_context("cached")
                logger.debug("Result cache hit for %s", cache_key)
                return cached

            set_stage_context("computing")
            logger.debug("Result cache miss for %s", cache_key)
            try:
                metrics = await self._extractor.extract(
                    content, base_url=cfg.base_url, fast=cfg.fast
                )
            except Exception as e:
                raise AnalysisError(f"Extraction failed: {e}") from e

            report = self._engine.evaluate(metrics, cfg)
            set_stage_context("scored")

            result = AnalysisResult(
                metrics=metrics,
                keywords=list(metrics.keywords),
                score=report.score,
                recommendations=report.recommendations,
                meta=AnalysisMeta(
                    version=__version__,
                    mode="fast" if cfg.fast else "full",
                    cache_key=cache_key,
                    analyzed_at=datetime.now(timezone.utc),
                    processing_ms=round((time.perf_counter() - start) * 1000, 3),
                    rules_evaluated=len(report.rules_evaluated),
                    rules_errored=report.rules_errored,
                ),
            )
            logger.debug(
                "Scored %s: overall=%d, %d recommendations",
                cache_key, result.score.overall, len(result.recommendations),
            )

            if cache_usable:
                await self._cache_set(cache_key, result)
            return result
        finally:
            set_stage_context(None)

    async def _cache_get(self, key: str) -> tuple[AnalysisResult | None, bool]:
        """Return (cached value, whether the cache may be written back)."""
        if self._cache is None:
            return None, False
        try:
            return await self._cache.get(key), True
        except Exception:
            logger.warning("Cache read failed for %s, computing", key, exc_info=True)
            return None, False

    async def _cache_set(self, key: str, result: AnalysisResult) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, result)
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    # ------------------------------------------------------------------
    # Batch analysis
    # ------------------------------------------------------------------

    async def analyze_batch(
        self,
        items: Sequence[BatchItem],
        concurrency: int | None = None,
        fast: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> list[BatchResult]:
        """Analyze many documents with at most ``concurrency`` in flight.

        One item's failure becomes an error BatchResult for that item and
        never affects the others. Results are aligned to the input order.

        Args:
            items: Documents to analyze. Duplicate ids are allowed.
            concurrency: Maximum simultaneous analyses. Defaults to settings;
                values <= 0 are clamped to 1.
            fast: Force the fast profile for every item.
            on_progress: Called as ``on_progress(completed, total)`` after each
                item finishes. May be a coroutine function.

        Returns:
            One BatchResult per input item, in input order.
        """
        limit = self._resolve_concurrency(concurrency)
        total = len(items)
        if total == 0:
            return []

        batch_id = uuid.uuid4().hex[:8]
        base_config = self._config.merged(fast=True) if fast else self._config
        gate = asyncio.Semaphore(limit)
        completed = 0

        logger.info(
            "Batch %s started: %d items, concurrency=%d, fast=%s",
            batch_id, total, limit, fast,
        )

        async def run_item(item: BatchItem) -> BatchResult:
            nonlocal completed
            async with gate:
                set_batch_context(batch_id)
                set_document_context(item.id)
                try:
                    result = await self.analyze(item.content, base_config, item.metadata)
                    outcome = BatchResult(id=item.id, result=result)
                except Exception as e:
                    logger.warning("Batch item %s failed: %s", item.id, e)
                    outcome = BatchResult(
                        id=item.id, error=str(e) or type(e).__name__,
                        error_type=type(e).__name__,
                    )
            completed += 1
            await _notify(on_progress, completed, total)
            return outcome

        results = await asyncio.gather(*(run_item(item) for item in items))

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Batch %s complete: %d succeeded, %d failed",
            batch_id, total - failed, failed,
        )
        return list(results)

    def _resolve_concurrency(self, concurrency: int | None) -> int:
        if concurrency is None:
            concurrency = (
                self._settings.batch_concurrency
                if self._settings is not None
                else DEFAULT_BATCH_CONCURRENCY
            )
        if concurrency <= 0:
            logger.warning("Batch concurrency %d clamped to 1", concurrency)
            return 1
        return concurrency

    # ------------------------------------------------------------------
    # AI suggestions (best effort)
    # ------------------------------------------------------------------

    async def generate_suggestions(
        self,
        analysis: AnalysisResult,
        suggestion_type: SuggestionType | str,
        template: PromptTemplate | None = None,
    ) -> list[Recommendation]:
        """Ask the AI bridge for suggestions.

        Returns an empty list when no bridge is configured or the bridge fails.
        """
        if self._bridge is None:
            return []
        try:
            suggestions = await self._bridge.suggest(analysis, suggestion_type, template)
        except Exception:
            logger.warning(
                "AI suggestions for %s unavailable", suggestion_type, exc_info=True
            )
            return []
        return list(suggestions)

    async def analyze_with_suggestions(
        self,
        content: str,
        suggestion_types: Sequence[SuggestionType | str] | None = None,
        config: AnalysisConfig | None = None,
        metadata: ContentMetadata | None = None,
    ) -> AnalysisResult:
        """Analyze content, then merge best-effort AI suggestions of each type.

        Fast-profile analyses skip AI augmentation.
        """
        result = await self.analyze(content, config, metadata)
        if self._bridge is None or result.meta.mode == "fast":
            return result

        if suggestion_types is None:
            from seoscope.ai.prompts import SuggestionType

            suggestion_types = list(SuggestionType)

        gathered = await asyncio.gather(
            *(self.generate_suggestions(result, t) for t in suggestion_types)
        )
        suggestions = dedupe_recommendations(s for batch in gathered for s in batch)
        return result.merge_suggestions(suggestions)


def _apply_metadata(
    config: AnalysisConfig, metadata: ContentMetadata | None
) -> AnalysisConfig:
    """Fill unset config fields from caller metadata."""
    if metadata is None:
        return config
    changes: dict[str, Any] = {}
    if metadata.url and not config.base_url:
        changes["base_url"] = metadata.url
    if metadata.language and not config.language:
        changes["language"] = metadata.language
    return config.merged(**changes) if changes else config


async def _notify(callback: ProgressCallback | None, completed: int, total: int) -> None:
    if callback is None:
        return
    try:
        outcome = callback(completed, total)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.warning("Progress callback failed", exc_info=True)
