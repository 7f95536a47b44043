# tests/unit/extraction/test_text_metrics.py — v1
"""Tests for extraction/text_metrics.py — plain-text measurements."""

from __future__ import annotations

import pytest

from seoscope.extraction.text_metrics import (
    count_sentences,
    count_words,
    extract_keywords,
    keyword_density,
    normalize_whitespace,
    reading_time,
)


class TestCounts:
    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n\t b  ") == "a b"

    def test_count_words(self):
        assert count_words("one two  three") == 3
        assert count_words("") == 0

    @pytest.mark.parametrize("text,expected", [
        ("One. Two! Three?", 3),
        ("No terminator", 1),
        ("Wait... what?!", 2),
        ("", 0),
    ])
    def test_count_sentences(self, text, expected):
        assert count_sentences(text) == expected

    def test_reading_time_rounds_up(self):
        assert reading_time("") == 0
        assert reading_time(" ".join(["word"] * 200)) == 1
        assert reading_time(" ".join(["word"] * 201)) == 2


class TestExtractKeywords:
    def test_frequency_order(self):
        text = "apple banana apple cherry banana apple"
        assert extract_keywords(text) == ["apple", "banana", "cherry"]

    def test_ties_keep_first_occurrence(self):
        assert extract_keywords("zebra yak zebra yak") == ["zebra", "yak"]

    def test_filters_stop_words_short_words_and_numbers(self):
        words = extract_keywords("The ox ran over 2024 fields, and the fields were green.")
        assert "the" not in words
        assert "ox" not in words
        assert "2024" not in words
        assert words[0] == "fields"

    def test_case_and_punctuation_folded(self):
        assert extract_keywords("Garden, garden. GARDEN!") == ["garden"]

    def test_max_count(self):
        text = " ".join(f"word{chr(97 + i)}" for i in range(15))
        assert len(extract_keywords(text, max_count=10)) == 10

    def test_empty(self):
        assert extract_keywords("") == []


class TestKeywordDensity:
    def test_percentage(self):
        density = keyword_density("seo tips seo", ["seo"])
        assert density["seo"] == pytest.approx(200 / 3)

    def test_empty_text(self):
        assert keyword_density("", ["seo"]) == {"seo": 0.0}

