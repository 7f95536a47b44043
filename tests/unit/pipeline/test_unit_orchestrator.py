# tests/unit/pipeline/test_orchestrator.py — v2
"""Tests for pipeline/orchestrator.py."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from seoscope.ai.prompts import SuggestionType
from seoscope.batch.models import BatchItem
from seoscope.cache.memory_store import MemoryCacheStore
from seoscope.config.analysis import AnalysisConfig
from seoscope.config.settings import Settings
from seoscope.core.models import PageMetrics
from seoscope.extraction.base_extractor import BaseExtractor
from seoscope.extraction.html_extractor import HtmlExtractor
from seoscope.pipeline.models import ContentMetadata
from seoscope.pipeline.orchestrator import AnalysisError, AnalysisOrchestrator
from seoscope.pipeline.validation import ContentValidationError
from seoscope.scoring.models import Recommendation


class CountingExtractor(BaseExtractor):
    """Wraps HtmlExtractor, counting calls and in-flight concurrency."""

    def __init__(
        self,
        delay: float = 0.0,
        fail_marker: str | None = None,
        slow_marker: str | None = None,
    ) -> None:
        self._inner = HtmlExtractor()
        self._delay = delay
        self._fail_marker = fail_marker
        self._slow_marker = slow_marker
        self.started: list[str] = []
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.base_urls: list[str | None] = []

    async def extract(self, content, base_url=None, fast=False) -> PageMetrics:
        self.calls += 1
        self.started.append(content)
        self.base_urls.append(base_url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self._delay
            if self._slow_marker and self._slow_marker in content:
                delay *= 10
            if delay:
                await asyncio.sleep(delay)
            if self._fail_marker and self._fail_marker in content:
                raise RuntimeError("parser exploded")
            return await self._inner.extract(content, base_url=base_url, fast=fast)
        finally:
            self.in_flight -= 1


def _ai_rec(title: str, priority: str = "high") -> Recommendation:
    return Recommendation(
        id=f"ai-{title}", category="content", title=title, description="AI idea",
        priority=priority, confidence=0.8, source="ai",
    )


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_basic(self, good_page):
        result = await AnalysisOrchestrator().analyze(good_page)
        assert result.meta.mode == "full"
        assert result.meta.cache_key.startswith("seo:result:")
        assert result.meta.rules_evaluated > 0
        assert 0 <= result.score.overall <= 100
        assert result.keywords == result.metrics.keywords

    @pytest.mark.asyncio
    async def test_poor_page_scores_lower(self, good_page, poor_page):
        orchestrator = AnalysisOrchestrator()
        good = await orchestrator.analyze(good_page)
        poor = await orchestrator.analyze(poor_page)
        assert poor.score.overall < good.score.overall
        assert poor.recommendations[0].priority == "critical"

    @pytest.mark.asyncio
    async def test_fast_config(self, good_page):
        result = await AnalysisOrchestrator().analyze(good_page, AnalysisConfig(fast=True))
        assert result.meta.mode == "fast"
        assert result.metrics.links == []

    @pytest.mark.asyncio
    async def test_extractor_failure(self, good_page):
        orchestrator = AnalysisOrchestrator(extractor=CountingExtractor(fail_marker="Sourdough"))
        with pytest.raises(AnalysisError, match="Extraction failed"):
            await orchestrator.analyze(good_page)


class TestValidation:
    @pytest.mark.asyncio
    async def test_empty_rejected_before_cache(self):
        cache = AsyncMock()
        orchestrator = AnalysisOrchestrator(cache_store=cache)
        with pytest.raises(ContentValidationError) as exc_info:
            await orchestrator.analyze("   ")
        assert exc_info.value.reason == "empty"
        cache.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_string_rejected(self):
        with pytest.raises(ContentValidationError):
            await AnalysisOrchestrator().analyze(None)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_limit_from_config(self):
        orchestrator = AnalysisOrchestrator(config=AnalysisConfig(max_content_length=10))
        with pytest.raises(ContentValidationError) as exc_info:
            await orchestrator.analyze("x" * 11)
        assert exc_info.value.reason == "too_long"

    @pytest.mark.asyncio
    async def test_limit_from_settings(self):
        settings = Settings(_env_file=None, max_content_length=10)
        with pytest.raises(ContentValidationError):
            await AnalysisOrchestrator(settings=settings).analyze("x" * 11)


class TestCaching:
    @pytest.mark.asyncio
    async def test_second_call_is_cache_hit(self, good_page):
        store = MemoryCacheStore(enable_stats=True)
        extractor = CountingExtractor()
        orchestrator = AnalysisOrchestrator(extractor=extractor, cache_store=store)

        first = await orchestrator.analyze(good_page)
        hits_before = (await store.get_stats()).hits
        second = await orchestrator.analyze(good_page)

        assert (await store.get_stats()).hits == hits_before + 1
        assert second == first
        assert second is not first
        assert extractor.calls == 1

    @pytest.mark.asyncio
    async def test_config_change_misses(self, good_page):
        store = MemoryCacheStore()
        extractor = CountingExtractor()
        orchestrator = AnalysisOrchestrator(extractor=extractor, cache_store=store)
        await orchestrator.analyze(good_page)
        orchestrator.update_config(min_word_count=10)
        await orchestrator.analyze(good_page)
        assert extractor.calls == 2

    @pytest.mark.asyncio
    async def test_cache_read_failure_degrades(self, good_page, caplog):
        cache = AsyncMock()
        cache.get.side_effect = ConnectionError("cache down")
        orchestrator = AnalysisOrchestrator(cache_store=cache)
        with caplog.at_level(logging.WARNING, logger="seoscope.pipeline.orchestrator"):
            result = await orchestrator.analyze(good_page)
        assert result.score.overall > 0
        cache.set.assert_not_awaited()
        assert "Cache read failed" in caplog.text

    @pytest.mark.asyncio
    async def test_cache_write_failure_ignored(self, good_page):
        cache = AsyncMock()
        cache.get.return_value = None
        cache.set.side_effect = ConnectionError("cache down")
        result = await AnalysisOrchestrator(cache_store=cache).analyze(good_page)
        assert result.meta.mode == "full"
        cache.set.assert_awaited_once()


class TestConfig:
    def test_defaults_from_settings(self):
        settings = Settings(_env_file=None, default_language="de")
        assert AnalysisOrchestrator(settings=settings).config.language == "de"

    def test_update_config_returns_new_snapshot(self):
        orchestrator = AnalysisOrchestrator()
        before = orchestrator.config
        after = orchestrator.update_config(fast=True, min_word_count=50)
        assert after.fast is True
        assert orchestrator.config is after
        assert before.fast is False

    def test_update_config_invalid(self):
        orchestrator = AnalysisOrchestrator()
        with pytest.raises(ValidationError):
            orchestrator.update_config(min_word_count=-5)
        assert orchestrator.config.min_word_count == 300

    @pytest.mark.asyncio
    async def test_metadata_url_fills_base_url(self, good_page):
        extractor = CountingExtractor()
        orchestrator = AnalysisOrchestrator(extractor=extractor)
        result = await orchestrator.analyze(
            good_page, metadata=ContentMetadata(url="https://bakery.example.com/")
        )
        assert extractor.base_urls == ["https://bakery.example.com/"]
        assert len(result.metrics.internal_links) == 2

    @pytest.mark.asyncio
    async def test_metadata_does_not_override_config(self, good_page):
        extractor = CountingExtractor()
        orchestrator = AnalysisOrchestrator(
            config=AnalysisConfig(base_url="https://a.example.com"), extractor=extractor
        )
        await orchestrator.analyze(good_page, metadata=ContentMetadata(url="https://b.example.com"))
        assert extractor.base_urls == ["https://a.example.com"]


class TestBatch:
    @pytest.mark.asyncio
    async def test_empty(self):
        assert await AnalysisOrchestrator().analyze_batch([]) == []

    @pytest.mark.asyncio
    async def test_order_and_isolation(self, good_page, poor_page):
        orchestrator = AnalysisOrchestrator(extractor=CountingExtractor(fail_marker="BOOM"))
        items = [
            BatchItem(id="good", content=good_page),
            BatchItem(id="bad", content="<p>BOOM</p>"),
            BatchItem(id="empty", content="  "),
            BatchItem(id="poor", content=poor_page),
        ]
        results = await orchestrator.analyze_batch(items, concurrency=2)

        assert [r.id for r in results] == ["good", "bad", "empty", "poor"]
        assert results[0].ok and results[3].ok
        assert results[1].error_type == "AnalysisError"
        assert "parser exploded" in results[1].error
        assert results[2].error_type == "ContentValidationError"
        assert results[2].result is None

    @pytest.mark.asyncio
    async def test_concurrency_bound(self, poor_page):
        extractor = CountingExtractor(delay=0.01)
        orchestrator = AnalysisOrchestrator(extractor=extractor)
        items = [BatchItem(id=str(i), content=f"{poor_page}<p>{i}</p>") for i in range(8)]
        results = await orchestrator.analyze_batch(items, concurrency=3)
        assert all(r.ok for r in results)
        assert extractor.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_single_slot_runs_in_input_order(self):
        extractor = CountingExtractor(delay=0.002)
        orchestrator = AnalysisOrchestrator(extractor=extractor)
        items = [BatchItem(id=str(i), content=f"<p>item {i}</p>") for i in range(5)]
        await orchestrator.analyze_batch(items, concurrency=1)
        assert extractor.started == [item.content for item in items]
        assert extractor.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_freed_slot_admits_next_queued_item(self):
        # item 0 holds one slot while the rest flow through the other
        extractor = CountingExtractor(delay=0.005, slow_marker="item 0")
        orchestrator = AnalysisOrchestrator(extractor=extractor)
        items = [BatchItem(id=str(i), content=f"<p>item {i}</p>") for i in range(6)]
        results = await orchestrator.analyze_batch(items, concurrency=2)
        assert extractor.started == [item.content for item in items]
        assert [r.id for r in results] == [item.id for item in items]
        assert extractor.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_malformed_link_does_not_fail_item(self, poor_page):
        orchestrator = AnalysisOrchestrator()
        items = [
            BatchItem(id="a", content=poor_page),
            BatchItem(id="b", content="<a href='http://[::1'>x</a><p>Some text</p>"),
        ]
        results = await orchestrator.analyze_batch(items)
        assert all(r.ok for r in results)
        assert results[1].result.metrics.links == []

    @pytest.mark.asyncio
    async def test_non_positive_concurrency_clamped(self, poor_page, caplog):
        extractor = CountingExtractor(delay=0.005)
        orchestrator = AnalysisOrchestrator(extractor=extractor)
        items = [BatchItem(id=str(i), content=f"{poor_page}<p>{i}</p>") for i in range(3)]
        with caplog.at_level(logging.WARNING, logger="seoscope.pipeline.orchestrator"):
            results = await orchestrator.analyze_batch(items, concurrency=0)
        assert len(results) == 3
        assert extractor.max_in_flight == 1
        assert "clamped to 1" in caplog.text

    @pytest.mark.asyncio
    async def test_concurrency_from_settings(self, poor_page):
        extractor = CountingExtractor(delay=0.005)
        orchestrator = AnalysisOrchestrator(
            extractor=extractor, settings=Settings(_env_file=None, batch_concurrency=2)
        )
        items = [BatchItem(id=str(i), content=f"{poor_page}<p>{i}</p>") for i in range(6)]
        await orchestrator.analyze_batch(items)
        assert extractor.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_duplicate_ids_allowed(self, poor_page):
        items = [BatchItem(id="same", content=poor_page)] * 2
        results = await AnalysisOrchestrator().analyze_batch(items)
        assert [r.id for r in results] == ["same", "same"]
        assert all(r.ok for r in results)

    @pytest.mark.asyncio
    async def test_fast_flag(self, good_page):
        results = await AnalysisOrchestrator().analyze_batch(
            [BatchItem(id="a", content=good_page)], fast=True
        )
        assert results[0].result.meta.mode == "fast"

    @pytest.mark.asyncio
    async def test_progress_callback(self, poor_page):
        calls: list[tuple[int, int]] = []
        items = [BatchItem(id=str(i), content=f"{poor_page}{i}") for i in range(3)]
        await AnalysisOrchestrator().analyze_batch(
            items, on_progress=lambda done, total: calls.append((done, total))
        )
        assert calls == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_async_progress_callback(self, poor_page):
        callback = AsyncMock()
        await AnalysisOrchestrator().analyze_batch(
            [BatchItem(id="a", content=poor_page)], on_progress=callback
        )
        callback.assert_awaited_once_with(1, 1)

    @pytest.mark.asyncio
    async def test_failing_progress_callback_ignored(self, poor_page):
        def broken(done, total):
            raise RuntimeError("ui gone")

        results = await AnalysisOrchestrator().analyze_batch(
            [BatchItem(id="a", content=poor_page)], on_progress=broken
        )
        assert results[0].ok


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_no_bridge(self, sample_result):
        assert await AnalysisOrchestrator().generate_suggestions(sample_result, "content") == []

    @pytest.mark.asyncio
    async def test_bridge_failure_returns_empty(self, sample_result):
        bridge = AsyncMock()
        bridge.suggest.side_effect = asyncio.TimeoutError()
        orchestrator = AnalysisOrchestrator(suggestion_bridge=bridge)
        assert await orchestrator.generate_suggestions(sample_result, "content") == []

    @pytest.mark.asyncio
    async def test_bridge_result_passed_through(self, sample_result):
        bridge = AsyncMock()
        bridge.suggest.return_value = [_ai_rec("Add FAQ")]
        orchestrator = AnalysisOrchestrator(suggestion_bridge=bridge)
        suggestions = await orchestrator.generate_suggestions(sample_result, "content")
        assert [s.title for s in suggestions] == ["Add FAQ"]

    @pytest.mark.asyncio
    async def test_analyze_with_suggestions_merges(self, good_page):
        bridge = AsyncMock()
        bridge.suggest.return_value = [_ai_rec("Add FAQ", "critical")]
        orchestrator = AnalysisOrchestrator(suggestion_bridge=bridge)
        result = await orchestrator.analyze_with_suggestions(good_page, ["content", "links"])

        assert bridge.suggest.await_count == 2
        ai = [r for r in result.recommendations if r.source == "ai"]
        assert len(ai) == 1
        assert result.recommendations[0].title == "Add FAQ"

    @pytest.mark.asyncio
    async def test_defaults_to_every_type(self, good_page):
        bridge = AsyncMock()
        bridge.suggest.return_value = []
        orchestrator = AnalysisOrchestrator(suggestion_bridge=bridge)
        await orchestrator.analyze_with_suggestions(good_page)
        assert bridge.suggest.await_count == len(SuggestionType)

    @pytest.mark.asyncio
    async def test_fast_mode_skips_ai(self, good_page):
        bridge = AsyncMock()
        orchestrator = AnalysisOrchestrator(suggestion_bridge=bridge)
        result = await orchestrator.analyze_with_suggestions(
            good_page, config=AnalysisConfig(fast=True)
        )
        bridge.suggest.assert_not_awaited()
        assert all(r.source == "rules" for r in result.recommendations)

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_other_types(self, good_page):
        bridge = AsyncMock()
        bridge.suggest.side_effect = [RuntimeError("provider down"), [_ai_rec("Add FAQ")]]
        orchestrator = AnalysisOrchestrator(suggestion_bridge=bridge)
        result = await orchestrator.analyze_with_suggestions(good_page, ["content", "links"])
        assert any(r.title == "Add FAQ" for r in result.recommendations)

    @pytest.mark.asyncio
    async def test_cached_analysis_not_polluted_by_suggestions(self, good_page):
        bridge = AsyncMock()
        bridge.suggest.return_value = [_ai_rec("Add FAQ")]
        orchestrator = AnalysisOrchestrator(
            cache_store=MemoryCacheStore(), suggestion_bridge=bridge
        )
        await orchestrator.analyze_with_suggestions(good_page, ["content"])
        plain = await orchestrator.analyze(good_page)
        assert all(r.source == "rules" for r in plain.recommendations)
