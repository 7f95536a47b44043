# src/extraction/text_metrics.py — v1
"""Plain-text measurements: words, sentences, reading time, keywords.

All functions are pure and tolerate empty input.
"""

from __future__ import annotations

import math
import re
from collections import Counter

WORDS_PER_MINUTE = 200

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "being", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "can", "must", "shall", "this", "that", "these", "those",
    "here", "there", "where", "when", "how", "what", "who", "why", "i", "you",
    "he", "she", "it", "we", "they", "me", "him", "her", "us", "them", "my",
    "your", "his", "its", "our", "their", "not", "no", "yes", "all", "some",
    "any", "many", "much", "more", "most", "other", "such", "from", "up",
    "down", "out", "off", "over", "under", "again", "then", "once",
})

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_NON_WORD = re.compile(r"[^\w\s]")
_DIGITS = re.compile(r"^\d+$")


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def count_words(text: str) -> int:
    return len(text.split())


def count_sentences(text: str) -> int:
    return sum(1 for part in _SENTENCE_SPLIT.split(text) if part.strip())


def reading_time(text: str, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Minutes needed to read text, rounded up (0 for empty text)."""
    return math.ceil(count_words(text) / words_per_minute)


def extract_keywords(text: str, min_length: int = 3, max_count: int = 20) -> list[str]:
    """Most frequent non-stop-words, ties kept in first-occurrence order.

    Args:
        text: Plain text.
        min_length: Shortest word considered.
        max_count: Maximum number of keywords returned.

    Returns:
        Lower-cased keywords, most frequent first.
    """
    words = [
        word
        for word in _NON_WORD.sub(" ", text.lower()).split()
        if len(word) >= min_length and word not in STOP_WORDS and not _DIGITS.match(word)
    ]
    # Counter.most_common is stable for equal counts (insertion order)
    return [word for word, _ in Counter(words).most_common(max_count)]


def keyword_density(text: str, keywords: list[str]) -> dict[str, float]:
    """Occurrences of each keyword as a percentage of all words."""
    words = text.lower().split()
    total = len(words)
    counts = Counter(words)
    return {
        keyword: (counts[keyword.lower()] / total * 100) if total else 0.0
        for keyword in keywords
    }

