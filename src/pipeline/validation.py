# src/pipeline/validation.py — v1
"""Content validation performed before any cache or extraction work."""

from __future__ import annotations

from typing import Any, Literal

MAX_CONTENT_LENGTH = 100_000

ValidationReason = Literal["not_string", "empty", "too_long"]


class ContentValidationError(ValueError):
    """Content rejected before analysis.

    Attributes:
        reason: Machine-readable code: not_string, empty or too_long.
    """

    def __init__(self, message: str, reason: ValidationReason) -> None:
        super().__init__(message)
        self.reason = reason


def validate_content(content: Any, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """Return content unchanged if it can be analyzed.

    Raises:
        ContentValidationError: If content is not a string, is empty or
            whitespace-only, or exceeds max_length characters.
    """
    if not isinstance(content, str):
        raise ContentValidationError(
            f"Content must be a string, got {type(content).__name__}", "not_string"
        )
    if not content.strip():
        raise ContentValidationError("Content cannot be empty", "empty")
    if len(content) > max_length:
        raise ContentValidationError(
            f"Content too large: {len(content)} characters (max {max_length})",
            "too_long",
        )
    return content
