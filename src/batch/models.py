# src/batch/models.py — v2
"""Batch processing models: BatchItem, BatchResult, BatchSummary."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from seoscope.pipeline.models import AnalysisResult, ContentMetadata


class BatchItem(BaseModel):
    """A single document submitted to a batch run."""

    id: str
    content: str
    metadata: ContentMetadata | None = None


class BatchResult(BaseModel):
    """Outcome for one BatchItem: a result or an error, never both."""

    id: str
    result: AnalysisResult | None = None
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


class BatchSummary(BaseModel):
    """Aggregate view of a batch run."""

    total: int
    succeeded: int
    failed: int
    average_score: float | None = None
    failed_ids: list[str] = Field(default_factory=list)


def summarize(results: Sequence[BatchResult]) -> BatchSummary:
    """Count successes and failures and average the overall scores."""
    scores = [r.result.score.overall for r in results if r.ok and r.result is not None]
    failed_ids = [r.id for r in results if not r.ok]
    return BatchSummary(
        total=len(results),
        succeeded=len(scores),
        failed=len(failed_ids),
        average_score=round(sum(scores) / len(scores), 1) if scores else None,
        failed_ids=failed_ids,
    )
