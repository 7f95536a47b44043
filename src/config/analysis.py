# src/config/analysis.py — v1
"""Per-analysis configuration snapshot.

AnalysisConfig is immutable: the orchestrator hands each analysis its own
snapshot, and update_config() builds a new object instead of mutating the
current one. The JSON dump is part of the result cache key, so field order
and defaults are stable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from seoscope.config.settings import Settings


class AnalysisConfig(BaseModel):
    """Thresholds and switches that shape a single analysis."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str | None = None
    language: str | None = None
    fast: bool = False

    min_word_count: int = Field(default=300, ge=0)
    title_length: tuple[int, int] = (30, 60)
    description_length: tuple[int, int] = (120, 160)
    keyword_density: tuple[float, float] = (0.5, 2.5)
    min_alt_coverage: float = Field(default=0.9, ge=0.0, le=1.0)
    max_content_length: int = Field(default=100_000, ge=1)

    @model_validator(mode="after")
    def validate_ranges(self) -> AnalysisConfig:
        """Every (low, high) range must be ordered."""
        for name in ("title_length", "description_length", "keyword_density"):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name} lower bound {low} exceeds upper bound {high}")
        return self

    def serialize(self) -> str:
        """Stable serialization used as the config discriminator in cache keys."""
        return self.model_dump_json()

    def merged(self, **changes: object) -> AnalysisConfig:
        """Return a validated copy with fields replaced by shallow merge."""
        data = self.model_dump()
        data.update(changes)
        return AnalysisConfig.model_validate(data)


def config_from_settings(settings: Settings) -> AnalysisConfig:
    """Build the default AnalysisConfig from application settings."""
    return AnalysisConfig(
        base_url=settings.default_base_url or None,
        language=settings.default_language or None,
        max_content_length=settings.max_content_length,
    )
