# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample pages, a controllable clock, mock LLM clients and a ready
AnalysisResult. No external dependencies: all I/O is mocked.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from seoscope.cache.memory_store import MemoryCacheStore
from seoscope.core.models import Heading, PageMetrics
from seoscope.llm.models import LLMResponse
from seoscope.pipeline.models import AnalysisMeta, AnalysisResult
from seoscope.scoring.models import Recommendation, ScoreResult


# === FIXTURES: Sample pages ===

GOOD_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Complete Guide to Sourdough Bread Baking at Home</title>
  <meta name="description" content="Learn how to bake sourdough bread at home with a simple starter, a reliable schedule and tips for a crisp crust and an open crumb.">
  <meta name="keywords" content="sourdough, bread, baking">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta property="og:title" content="Sourdough Bread Guide">
  <meta property="og:description" content="Bake sourdough at home">
  <meta name="twitter:card" content="summary">
  <link rel="canonical" href="https://bakery.example.com/sourdough">
  <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Article"}</script>
</head>
<body>
  <h1 id="top">Sourdough Bread Baking</h1>
  <p>Sourdough bread is made with a natural starter. The starter ferments the dough slowly.</p>
  <h2>Feeding the starter</h2>
  <p>Feed the starter with flour and water every day. A healthy starter doubles in size.</p>
  <img src="/img/starter.jpg" alt="Bubbly sourdough starter in a jar" width="600" height="400">
  <img src="/img/divider.png" alt="">
  <h2>Shaping the dough</h2>
  <p>Shape the dough gently and proof it overnight in the fridge.</p>
  <a href="/recipes/rye">Rye sourdough recipe</a>
  <a href="https://bakery.example.com/tools">Baking tools</a>
  <a href="https://flour.example.org/guide">Flour guide</a>
  <a href="#top">Back to top</a>
  <a href="mailto:hello@example.com">Email us</a>
  <script>var tracking = "sourdough";</script>
</body>
</html>
"""

POOR_PAGE = "<html><body><p>Just a few words here.</p></body></html>"


@pytest.fixture
def good_page() -> str:
    return GOOD_PAGE


@pytest.fixture
def poor_page() -> str:
    return POOR_PAGE


# === FIXTURES: Clock ===


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryCacheStore:
    """Stats-enabled store driven by the fake clock."""
    return MemoryCacheStore(
        default_ttl_seconds=60, max_size=3, enable_stats=True, clock=clock
    )


# === FIXTURES: LLM ===


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """Standard mock LLM response carrying one suggestion."""
    return LLMResponse(
        content=(
            '{"suggestions": [{"title": "Add FAQ section", "description": "Answer '
            'common questions", "priority": "high", "impact": "Medium", '
            '"effort": "low", "confidence": 0.8, "actionSteps": ["Collect questions"]}]}'
        ),
        input_tokens=100,
        output_tokens=50,
        model="test-model",
        provider="test",
        latency_ms=500,
    )


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock LLM client that returns a standard response."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_llm_response)
    client.provider_name = "test"
    client.model_name = "test-model"
    return client


# === FIXTURES: Results ===


@pytest.fixture
def sample_metrics() -> PageMetrics:
    return PageMetrics(
        title="Sourdough Bread Baking",
        meta_description="Bake sourdough at home",
        canonical_url="https://bakery.example.com/sourdough",
        word_count=420,
        keywords=["sourdough", "starter", "dough"],
        headings=[Heading(level=1, text="Sourdough Bread Baking", position=0)],
    )


@pytest.fixture
def sample_result(sample_metrics: PageMetrics) -> AnalysisResult:
    """Small AnalysisResult with one rule recommendation."""
    return AnalysisResult(
        metrics=sample_metrics,
        keywords=list(sample_metrics.keywords),
        score=ScoreResult(overall=72, breakdown={"title": 75, "content": 80}),
        recommendations=[
            Recommendation(
                id="viewport",
                category="technical",
                title="Add Viewport Meta Tag",
                description="Missing viewport meta tag",
                priority="high",
                confidence=0.9,
            ),
        ],
        meta=AnalysisMeta(
            version="0.4.0",
            mode="full",
            cache_key="seo:content:abc",
            analyzed_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            processing_ms=1.5,
        ),
    )
