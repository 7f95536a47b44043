# src/extraction/language_detector.py — v1
"""Language detection for extracted page text.

Uses lingua-py. The detector is built once and reused; lingua loads each
language model lazily on first use.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from lingua import LanguageDetector, LanguageDetectorBuilder

logger = logging.getLogger(__name__)

MIN_WORDS = 5
SAMPLE_CHARS = 5000


@lru_cache(maxsize=1)
def _get_detector() -> LanguageDetector:
    logger.debug("Building lingua language detector")
    return LanguageDetectorBuilder.from_all_languages().build()


def detect_language(text: str) -> str | None:
    """Detect the language of page text.

    Args:
        text: Visible text of the page.

    Returns:
        ISO 639-1 code (e.g. "en", "fr"), or None when the text is shorter
        than MIN_WORDS words or lingua cannot decide.
    """
    sample = text[:SAMPLE_CHARS]
    if len(sample.split()) < MIN_WORDS:
        return None
    language = _get_detector().detect_language_of(sample)
    if language is None:
        return None
    return language.iso_code_639_1.name.lower()
