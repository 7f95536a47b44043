# src/pipeline/models.py — v1
"""Analysis result models: ContentMetadata, AnalysisMeta, AnalysisResult."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from seoscope.core.models import PageMetrics
from seoscope.scoring.engine import dedupe_recommendations, sort_recommendations
from seoscope.scoring.models import Recommendation, ScoreResult


class ContentMetadata(BaseModel):
    """Caller-supplied facts about the content."""

    url: str | None = None
    title: str | None = None
    description: str | None = None
    language: str | None = None


class AnalysisMeta(BaseModel):
    """Provenance of one analysis."""

    version: str
    mode: Literal["full", "fast"]
    cache_key: str
    analyzed_at: datetime
    processing_ms: float
    rules_evaluated: int = 0
    rules_errored: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Full output of one analysis.

    Cached results are returned as-is on a hit, including ``meta``.
    """

    metrics: PageMetrics
    keywords: list[str] = Field(default_factory=list)
    score: ScoreResult
    recommendations: list[Recommendation] = Field(default_factory=list)
    meta: AnalysisMeta

    def merge_suggestions(self, suggestions: list[Recommendation]) -> AnalysisResult:
        """Return a copy with suggestions folded into the recommendation list."""
        if not suggestions:
            return self.model_copy(deep=True)
        merged = sort_recommendations(
            dedupe_recommendations([*self.recommendations, *suggestions])
        )
        return self.model_copy(update={"recommendations": merged}, deep=True)
