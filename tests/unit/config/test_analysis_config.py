# tests/unit/config/test_analysis_config.py — v1
"""Tests for config/analysis.py — immutable per-analysis config."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from seoscope.config.analysis import AnalysisConfig, config_from_settings
from seoscope.config.settings import Settings


class TestAnalysisConfig:
    def test_defaults(self):
        cfg = AnalysisConfig()
        assert cfg.fast is False
        assert cfg.min_word_count == 300
        assert cfg.title_length == (30, 60)

    def test_frozen(self):
        cfg = AnalysisConfig()
        with pytest.raises(ValidationError):
            cfg.fast = True  # type: ignore[misc]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(colour="blue")  # type: ignore[call-arg]

    def test_unordered_range_rejected(self):
        with pytest.raises(ValidationError, match="title_length"):
            AnalysisConfig(title_length=(60, 30))

    def test_serialize_is_stable(self):
        assert AnalysisConfig().serialize() == AnalysisConfig().serialize()

    def test_serialize_reflects_changes(self):
        assert AnalysisConfig().serialize() != AnalysisConfig(fast=True).serialize()


class TestMerged:
    def test_returns_new_object(self):
        cfg = AnalysisConfig()
        merged = cfg.merged(fast=True)
        assert merged.fast is True
        assert cfg.fast is False

    def test_keeps_other_fields(self):
        cfg = AnalysisConfig(min_word_count=50)
        assert cfg.merged(fast=True).min_word_count == 50

    def test_validates(self):
        with pytest.raises(ValidationError):
            AnalysisConfig().merged(min_word_count=-1)


class TestConfigFromSettings:
    def test_maps_fields(self):
        s = Settings(
            _env_file=None,
            default_base_url="https://example.com",
            default_language="fr",
            max_content_length=500,
        )
        cfg = config_from_settings(s)
        assert cfg.base_url == "https://example.com"
        assert cfg.language == "fr"
        assert cfg.max_content_length == 500

    def test_empty_strings_become_none(self):
        s = Settings(_env_file=None, default_base_url="", default_language="")
        cfg = config_from_settings(s)
        assert cfg.base_url is None
        assert cfg.language is None
