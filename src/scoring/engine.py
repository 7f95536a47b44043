# src/scoring/engine.py — v1
"""Scoring & recommendation engine.

Turns PageMetrics into a 0..100 composite score and an ordered list of
recommendations. Pure and deterministic: the same metrics and config always
yield the same report, in the same order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from seoscope.config.analysis import AnalysisConfig
from seoscope.core.models import PageMetrics
from seoscope.scoring.models import (
    PRIORITY_RANK,
    Recommendation,
    ScoreReport,
    ScoreResult,
)
from seoscope.scoring.rules import Rule, rules_for

logger = logging.getLogger(__name__)

CATEGORY_WEIGHTS: dict[str, float] = {
    "title": 0.15,
    "description": 0.15,
    "content": 0.25,
    "structure": 0.15,
    "images": 0.10,
    "links": 0.05,
    "technical": 0.15,
}


def sort_recommendations(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """Order by priority (critical first), then descending confidence.

    The sort is stable, so ties keep their input order.
    """
    return sorted(
        recommendations,
        key=lambda rec: (PRIORITY_RANK.get(rec.priority, len(PRIORITY_RANK)), -rec.confidence),
    )


def dedupe_recommendations(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """Keep the first recommendation per (title, category)."""
    seen: set[tuple[str, str]] = set()
    unique: list[Recommendation] = []
    for rec in recommendations:
        key = (rec.title.strip().lower(), rec.category)
        if key in seen:
            continue
        seen.add(key)
        unique.append(rec)
    return unique


class ScoringEngine:
    """Evaluate the rule table against one page.

    Args:
        rules: Override the rule table (full profile). The fast profile is
            derived by filtering on ``in_fast_profile``.
        category_weights: Override CATEGORY_WEIGHTS.
    """

    def __init__(
        self,
        rules: Iterable[Rule] | None = None,
        category_weights: dict[str, float] | None = None,
    ) -> None:
        self._rules = tuple(rules) if rules is not None else None
        self._weights = dict(category_weights or CATEGORY_WEIGHTS)

    def rules(self, fast: bool = False) -> tuple[Rule, ...]:
        if self._rules is None:
            return rules_for(fast)
        if not fast:
            return self._rules
        return tuple(rule for rule in self._rules if rule.in_fast_profile)

    def evaluate(self, metrics: PageMetrics, config: AnalysisConfig) -> ScoreReport:
        """Score metrics under config.

        A rule whose check raises is skipped (and logged); the remaining
        rules still produce a score.
        """
        earned: dict[str, float] = {}
        possible: dict[str, float] = {}
        recommendations: list[Recommendation] = []
        evaluated: list[str] = []
        failed: list[str] = []
        errored: list[str] = []

        for rule in self.rules(config.fast):
            try:
                outcome = rule.check(metrics, config)
            except Exception:
                logger.warning("Rule %s raised, skipping", rule.id, exc_info=True)
                errored.append(rule.id)
                continue
            if outcome is None:
                continue

            evaluated.append(rule.id)
            earned[rule.category] = earned.get(rule.category, 0.0) + rule.weight * outcome.score
            possible[rule.category] = possible.get(rule.category, 0.0) + rule.weight
            if not outcome.passed:
                failed.append(rule.id)
                recommendations.append(rule.to_recommendation(outcome))

        breakdown = {
            category: _clamp(round(earned[category] / total * 100))
            for category, total in possible.items()
            if total > 0
        }
        report = ScoreReport(
            score=ScoreResult(overall=self._overall(breakdown), breakdown=breakdown),
            recommendations=sort_recommendations(dedupe_recommendations(recommendations)),
            rules_evaluated=evaluated,
            rules_failed=failed,
            rules_errored=errored,
        )
        logger.debug(
            "Scored %d rules (%d failed, %d errored): overall=%d",
            len(evaluated), len(failed), len(errored), report.score.overall,
        )
        return report

    def _overall(self, breakdown: dict[str, int]) -> int:
        """Weighted mean over the categories that were evaluated."""
        total_weight = 0.0
        weighted = 0.0
        for category, score in breakdown.items():
            weight = self._weights.get(category, 0.0)
            total_weight += weight
            weighted += weight * score
        if total_weight <= 0:
            return 0
        return _clamp(round(weighted / total_weight))


def _clamp(value: float) -> int:
    return int(max(0, min(100, value)))
