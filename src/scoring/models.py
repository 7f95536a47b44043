# src/scoring/models.py — v1
"""Scoring domain models: Recommendation, RuleOutcome, ScoreResult, ScoreReport."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Priority = Literal["critical", "high", "medium", "low"]
Effort = Literal["low", "medium", "high"]
Category = Literal[
    "title", "description", "content", "structure", "images", "links", "technical",
]

PRIORITY_RANK: dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3}


class Recommendation(BaseModel):
    """One actionable improvement, from the rule table or an AI provider."""

    id: str
    category: str
    title: str
    description: str
    action_steps: list[str] = Field(default_factory=list)
    impact: str = ""
    effort: Effort = "medium"
    priority: Priority = "medium"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    code_example: str | None = None
    current_value: str | None = None
    source: Literal["rules", "ai"] = "rules"


class RuleOutcome(BaseModel):
    """Result of one rule check.

    ``score`` is the rule's contribution in [0, 1]; a rule may fail with a
    partial score (e.g. a title slightly out of range).
    """

    passed: bool
    score: float = Field(ge=0.0, le=1.0)
    detail: str = ""
    current_value: str | None = None


class ScoreResult(BaseModel):
    """Composite score with per-category breakdown (all 0..100)."""

    overall: int = Field(ge=0, le=100)
    breakdown: dict[str, int] = Field(default_factory=dict)


class ScoreReport(BaseModel):
    """Everything the engine produced for one set of metrics."""

    score: ScoreResult
    recommendations: list[Recommendation] = Field(default_factory=list)
    rules_evaluated: list[str] = Field(default_factory=list)
    rules_failed: list[str] = Field(default_factory=list)
    rules_errored: list[str] = Field(default_factory=list)
