# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: cache sizing,
analysis limits, batch concurrency, AI provider routing and logging.
Per-analysis knobs live in AnalysisConfig (config/analysis.py).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "none"] = "memory"
    cache_ttl_seconds: int = 300
    cache_max_size: int = 1000
    cache_enable_stats: bool = True
    cache_namespace: str = ""
    cache_sweep_interval_seconds: float = 0.0

    # === Analysis ===
    max_content_length: int = 100_000
    default_base_url: str = ""
    default_language: str = "en"
    batch_concurrency: int = 5

    # === AI suggestions ===
    ai_enabled: bool = False
    ai_provider: str = "anthropic"
    ai_model: str = "claude-sonnet-4-20250514"
    ai_fallback_providers: str = ""
    ai_timeout_seconds: float = 30.0
    ai_max_tokens: int = 1000
    ai_temperature: float = 0.3
    ai_max_suggestions: int = 5

    # Per-provider throttling (0 requests = unlimited)
    ai_rate_limit_requests: int = 60
    ai_rate_limit_window_seconds: float = 60.0
    ai_rate_limit_max_concurrent: int = 5
    ai_rate_limit_queue_size: int = 100

    # Provider credentials
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_concurrency")
    @classmethod
    def validate_batch_concurrency(cls, v: int) -> int:  # noqa: N805
        """BATCH_CONCURRENCY must be a positive integer."""
        if v < 1:
            raise ValueError("batch_concurrency must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_ttl_seconds < 0:
            errors.append("CACHE_TTL_SECONDS must be >= 0")

        if self.cache_max_size < 1:
            errors.append("CACHE_MAX_SIZE must be >= 1")

        if self.cache_sweep_interval_seconds < 0:
            errors.append("CACHE_SWEEP_INTERVAL_SECONDS must be >= 0")

        if self.max_content_length < 1:
            errors.append("MAX_CONTENT_LENGTH must be >= 1")

        if self.ai_enabled and not (self.ai_provider and self.ai_model):
            errors.append("AI_ENABLED requires AI_PROVIDER and AI_MODEL")

        if self.ai_timeout_seconds <= 0:
            errors.append("AI_TIMEOUT_SECONDS must be > 0")

        if self.ai_rate_limit_requests < 0:
            errors.append("AI_RATE_LIMIT_REQUESTS must be >= 0")

        if self.ai_rate_limit_window_seconds <= 0:
            errors.append("AI_RATE_LIMIT_WINDOW_SECONDS must be > 0")

        if self.ai_rate_limit_max_concurrent < 1:
            errors.append("AI_RATE_LIMIT_MAX_CONCURRENT must be >= 1")

        if self.ai_rate_limit_queue_size < 0:
            errors.append("AI_RATE_LIMIT_QUEUE_SIZE must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def ai_fallback_list(self) -> list[tuple[str, str]]:
        """Parse comma-separated 'provider:model' fallback entries."""
        pairs: list[tuple[str, str]] = []
        for raw in self.ai_fallback_providers.split(","):
            raw = raw.strip()
            if not raw or ":" not in raw:
                continue
            provider, model = raw.split(":", 1)
            pairs.append((provider.strip(), model.strip()))
        return pairs


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
