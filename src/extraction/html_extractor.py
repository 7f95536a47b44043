# src/extraction/html_extractor.py — v1
"""HTML extractor using BeautifulSoup.

Reads head metadata (title, description, canonical, robots, viewport,
Open Graph, Twitter Card, JSON-LD) and body structure (headings, images,
links, paragraphs), then derives text metrics from the visible text.
Plain text input is handled too: it simply has no tags.
"""

from __future__ import annotations

import json
import logging
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from seoscope.core.models import Heading, ImageInfo, LinkInfo, PageMetrics
from seoscope.extraction import language_detector, text_metrics
from seoscope.extraction.base_extractor import BaseExtractor

logger = logging.getLogger(__name__)

_NON_CONTENT_TAGS = ("script", "style", "noscript", "template")
_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
FAST_KEYWORD_LIMIT = 10
FULL_KEYWORD_LIMIT = 20


class HtmlExtractor(BaseExtractor):
    """Extractor for HTML documents and plain text."""

    def __init__(self, parser: str = "html.parser") -> None:
        self._parser = parser

    async def extract(
        self, content: str, base_url: str | None = None, fast: bool = False
    ) -> PageMetrics:
        """Measure an HTML document.

        Args:
            content: HTML or plain text.
            base_url: Used to resolve relative URLs and classify links.
            fast: Skip images, links, sentences, paragraphs and keyword
                density, and keep only the top 10 keywords.

        Returns:
            PageMetrics with ``mode`` set to "fast" or "full".
        """
        soup = BeautifulSoup(content or "", self._parser)
        if base_url:
            try:
                urlparse(base_url)
            except ValueError:
                logger.debug("Ignoring malformed base URL %r", base_url)
                base_url = None

        metrics = PageMetrics(mode="fast" if fast else "full")
        self._read_head(soup, metrics)
        metrics.headings = self._extract_headings(soup)
        if not fast:
            metrics.images = self._extract_images(soup, base_url)
            metrics.links = self._extract_links(soup, base_url)
            metrics.paragraph_count = len(soup.find_all("p"))

        # Drop non-content tags only after JSON-LD has been read
        for tag in soup.find_all(_NON_CONTENT_TAGS):
            tag.decompose()
        text = text_metrics.normalize_whitespace(soup.get_text(separator=" "))

        metrics.text_content = text
        metrics.word_count = text_metrics.count_words(text)
        metrics.character_count = len(text)
        metrics.reading_time = text_metrics.reading_time(text)
        if fast:
            metrics.keywords = text_metrics.extract_keywords(
                text, max_count=FAST_KEYWORD_LIMIT
            )
        else:
            metrics.sentence_count = text_metrics.count_sentences(text)
            metrics.keywords = text_metrics.extract_keywords(
                text, max_count=FULL_KEYWORD_LIMIT
            )
            metrics.keyword_density = text_metrics.keyword_density(text, metrics.keywords)
            metrics.detected_language = language_detector.detect_language(text)

        logger.debug(
            "Extracted %d words, %d headings, %d images, %d links (mode=%s)",
            metrics.word_count, len(metrics.headings), len(metrics.images),
            len(metrics.links), metrics.mode,
        )
        return metrics

    # --- Head ---

    def _read_head(self, soup: BeautifulSoup, metrics: PageMetrics) -> None:
        title = soup.find("title")
        if title is not None:
            metrics.title = title.get_text(strip=True) or None

        metrics.meta_description = _meta_content(soup, name="description")
        keywords = _meta_content(soup, name="keywords")
        if keywords:
            metrics.meta_keywords = [k.strip() for k in keywords.split(",") if k.strip()]
        metrics.robots = _meta_content(soup, name="robots")
        metrics.has_viewport = soup.find("meta", attrs={"name": "viewport"}) is not None

        canonical = soup.find("link", rel="canonical")
        if isinstance(canonical, Tag) and canonical.get("href"):
            metrics.canonical_url = str(canonical["href"]).strip()

        html = soup.find("html")
        if isinstance(html, Tag) and html.get("lang"):
            metrics.html_lang = str(html["lang"]).strip() or None

        for tag in soup.find_all("meta"):
            prop = tag.get("property") or ""
            name = tag.get("name") or ""
            value = tag.get("content")
            if not value:
                continue
            if prop.startswith("og:"):
                metrics.open_graph[prop] = value
            elif name.startswith("twitter:"):
                metrics.twitter_card[name] = value

        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            try:
                data = json.loads(script.string or "")
            except (json.JSONDecodeError, TypeError):
                logger.debug("Ignoring invalid JSON-LD block")
                continue
            if isinstance(data, list):
                metrics.structured_data.extend(data)
            else:
                metrics.structured_data.append(data)

    # --- Body ---

    def _extract_headings(self, soup: BeautifulSoup) -> list[Heading]:
        headings: list[Heading] = []
        for position, tag in enumerate(soup.find_all(_HEADING_TAGS)):
            text = tag.get_text(" ", strip=True)
            if not text:
                continue
            headings.append(
                Heading(
                    level=int(tag.name[1]),
                    text=text,
                    position=position,
                    anchor_id=tag.get("id"),
                )
            )
        return headings

    def _extract_images(self, soup: BeautifulSoup, base_url: str | None) -> list[ImageInfo]:
        images: list[ImageInfo] = []
        for tag in soup.find_all("img"):
            src = tag.get("src")
            if not src:
                continue
            try:
                resolved = _resolve(src, base_url)
            except ValueError:
                logger.debug("Skipping image with malformed src %r", src)
                continue
            alt = tag.get("alt")
            role = tag.get("role")
            images.append(
                ImageInfo(
                    src=resolved,
                    alt=alt,
                    title=tag.get("title"),
                    width=_int_attr(tag.get("width")),
                    height=_int_attr(tag.get("height")),
                    is_decorative=alt == "" or role in ("presentation", "none"),
                )
            )
        return images

    def _extract_links(self, soup: BeautifulSoup, base_url: str | None) -> list[LinkInfo]:
        base_host = urlparse(base_url).netloc.lower() if base_url else ""
        links: list[LinkInfo] = []
        for tag in soup.find_all("a", href=True):
            href = str(tag["href"]).strip()
            text = tag.get_text(" ", strip=True)
            title = tag.get("title")
            if not href or not (text or title):
                continue
            if href.startswith(("#", "mailto:", "tel:", "javascript:")):
                continue
            try:
                resolved = _resolve(href, base_url)
                parsed = urlparse(resolved)
            except ValueError:
                logger.debug("Skipping link with malformed href %r", href)
                continue
            if parsed.scheme in ("http", "https"):
                is_internal = bool(base_host) and parsed.netloc.lower() == base_host
            else:
                # Relative URL with no base to resolve against
                is_internal = True
            rel = tag.get("rel")
            links.append(
                LinkInfo(
                    href=resolved,
                    text=text,
                    title=title,
                    rel=" ".join(rel) if isinstance(rel, list) else rel,
                    is_internal=is_internal,
                    is_external=not is_internal,
                )
            )
        return links


def _meta_content(soup: BeautifulSoup, *, name: str) -> str | None:
    tag = soup.find("meta", attrs={"name": name})
    if not isinstance(tag, Tag):
        return None
    value = tag.get("content")
    return str(value).strip() or None if value is not None else None


def _resolve(url: str, base_url: str | None) -> str:
    return urljoin(base_url, url) if base_url else url


def _int_attr(value: object) -> int | None:
    try:
        return int(str(value)) if value is not None else None
    except ValueError:
        return None
