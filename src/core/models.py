# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

PageMetrics is the contract between the extractor and the scoring engine:
the extractor fills it, the engine only reads it. No module redefines these
types; all imports come from core.models.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

AnalysisMode = Literal["full", "fast"]


# === PAGE STRUCTURE ===


class Heading(BaseModel):
    """A heading element in document order."""

    level: int = Field(ge=1, le=6)
    text: str
    position: int
    anchor_id: str | None = None


class ImageInfo(BaseModel):
    """An <img> element with a src."""

    src: str
    alt: str | None = None
    title: str | None = None
    width: int | None = None
    height: int | None = None
    is_decorative: bool = False

    @property
    def has_alt(self) -> bool:
        """Decorative images count as described."""
        return self.is_decorative or bool(self.alt and self.alt.strip())


class LinkInfo(BaseModel):
    """An <a href> element with visible text or a title."""

    href: str
    text: str = ""
    title: str | None = None
    rel: str | None = None
    is_internal: bool = False
    is_external: bool = False


# === PAGE METRICS ===


class PageMetrics(BaseModel):
    """Everything the extractor measured about one document."""

    mode: AnalysisMode = "full"

    # --- Text ---
    text_content: str = ""
    word_count: int = 0
    character_count: int = 0
    sentence_count: int = 0
    paragraph_count: int = 0
    reading_time: int = 0
    detected_language: str | None = None

    # --- Keywords ---
    keywords: list[str] = Field(default_factory=list)
    keyword_density: dict[str, float] = Field(default_factory=dict)

    # --- Head ---
    title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] = Field(default_factory=list)
    canonical_url: str | None = None
    robots: str | None = None
    has_viewport: bool = False
    html_lang: str | None = None
    open_graph: dict[str, str] = Field(default_factory=dict)
    twitter_card: dict[str, str] = Field(default_factory=dict)
    structured_data: list[Any] = Field(default_factory=list)

    # --- Body structure ---
    headings: list[Heading] = Field(default_factory=list)
    images: list[ImageInfo] = Field(default_factory=list)
    links: list[LinkInfo] = Field(default_factory=list)

    @property
    def h1_tags(self) -> list[str]:
        return [h.text for h in self.headings if h.level == 1]

    @property
    def internal_links(self) -> list[LinkInfo]:
        return [link for link in self.links if link.is_internal]

    @property
    def external_links(self) -> list[LinkInfo]:
        return [link for link in self.links if link.is_external]

    @property
    def images_missing_alt(self) -> list[ImageInfo]:
        return [img for img in self.images if not img.has_alt]
