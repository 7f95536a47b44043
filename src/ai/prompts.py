# src/ai/prompts.py — v1
"""Prompt templates for AI SEO suggestions.

Templates are str.format strings filled from an AnalysisResult by
render_prompt(); literal JSON braces are doubled.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from seoscope.pipeline.models import AnalysisResult


class SuggestionType(str, Enum):
    """Areas the AI bridge can be asked about."""

    TECHNICAL = "technical"
    CONTENT = "content"
    KEYWORDS = "keywords"
    STRUCTURE = "structure"
    META = "meta"
    IMAGES = "images"
    LINKS = "links"


class PromptTemplate(BaseModel):
    """A rendered-on-demand prompt plus its generation settings."""

    name: str
    type: SuggestionType
    template: str
    system: str = "You are an expert SEO consultant. Answer only with JSON."
    max_tokens: int = 1000
    temperature: float = 0.3


_CONTEXT = """Page analysis:
- URL: {url}
- Title: {title}
- Meta description: {description}
- Word count: {word_count}
- Headings: {headings}
- Images: {image_count} ({images_without_alt} without alt text)
- Links: {internal_links} internal, {external_links} external
- Structured data: {has_schema}
- Keywords: {keywords}
- Current score: {overall}/100 ({breakdown})

Issues already detected:
{current_issues}
"""

_RESPONSE_FORMAT = """Provide up to {max_suggestions} specific recommendations in JSON format:
{{
  "suggestions": [
    {{
      "title": "Specific issue title",
      "description": "Why it matters",
      "actionSteps": ["Step 1", "Step 2"],
      "impact": "Expected SEO impact",
      "effort": "low|medium|high",
      "priority": "critical|high|medium|low",
      "codeExample": "HTML example if applicable",
      "confidence": 0.8
    }}
  ]
}}
"""

_FOCUS: dict[SuggestionType, tuple[str, str, str]] = {
    SuggestionType.TECHNICAL: (
        "Technical SEO Analysis",
        "You are an expert Technical SEO consultant.",
        "crawlability, indexability, canonical tags, mobile viewport, HTTPS "
        "and technical markup issues",
    ),
    SuggestionType.CONTENT: (
        "Content Quality Analysis",
        "You are an expert Content SEO strategist.",
        "content depth, readability, user intent, topic coverage and E-A-T signals",
    ),
    SuggestionType.KEYWORDS: (
        "Keyword Optimization",
        "You are an expert Keyword Research specialist.",
        "primary and long-tail keywords, keyword placement in title and headings, "
        "and natural keyword density",
    ),
    SuggestionType.STRUCTURE: (
        "Content Structure Analysis",
        "You are an expert in information architecture for SEO.",
        "heading hierarchy, a single descriptive H1, section organization and scannability",
    ),
    SuggestionType.META: (
        "Meta Tags Optimization",
        "You are an expert in SEO metadata.",
        "title tag, meta description, Open Graph and Twitter Card tags",
    ),
    SuggestionType.IMAGES: (
        "Image SEO Analysis",
        "You are an expert in image SEO and accessibility.",
        "alt text quality, decorative image markup, file naming and image dimensions",
    ),
    SuggestionType.LINKS: (
        "Link Strategy Analysis",
        "You are an expert in internal linking and link building.",
        "internal link coverage, anchor text quality and authoritative external citations",
    ),
}


def _build_default(kind: SuggestionType) -> PromptTemplate:
    name, persona, focus = _FOCUS[kind]
    return PromptTemplate(
        name=name,
        type=kind,
        template=(
            f"{persona} Analyze the following page and suggest improvements.\n\n"
            f"{_CONTEXT}\n{_RESPONSE_FORMAT}\nFocus on: {focus}."
        ),
    )


DEFAULT_TEMPLATES: dict[SuggestionType, PromptTemplate] = {
    kind: _build_default(kind) for kind in SuggestionType
}


def get_template(suggestion_type: SuggestionType | str) -> PromptTemplate:
    """Default template for a suggestion type.

    Raises:
        ValueError: If the type is unknown.
    """
    return DEFAULT_TEMPLATES[SuggestionType(suggestion_type)]


def prompt_variables(analysis: AnalysisResult, max_suggestions: int = 5) -> dict[str, Any]:
    """Values available to templates for one analysis."""
    metrics = analysis.metrics
    issues = [f"- [{rec.priority}] {rec.title}" for rec in analysis.recommendations]
    return {
        "url": metrics.canonical_url or "not specified",
        "title": metrics.title or "missing",
        "description": metrics.meta_description or "missing",
        "word_count": metrics.word_count,
        "headings": ", ".join(f"H{h.level}: {h.text}" for h in metrics.headings[:10]) or "none",
        "image_count": len(metrics.images),
        "images_without_alt": len(metrics.images_missing_alt),
        "internal_links": len(metrics.internal_links),
        "external_links": len(metrics.external_links),
        "has_schema": "yes" if metrics.structured_data else "no",
        "keywords": ", ".join(analysis.keywords[:10]) or "none",
        "overall": analysis.score.overall,
        "breakdown": ", ".join(f"{k} {v}" for k, v in analysis.score.breakdown.items()),
        "current_issues": "\n".join(issues) or "- none",
        "max_suggestions": max_suggestions,
    }


def render_prompt(
    template: PromptTemplate, analysis: AnalysisResult, max_suggestions: int = 5
) -> str:
    """Fill a template from an analysis.

    Raises:
        KeyError: If the template references an unknown placeholder.
    """
    return template.template.format(**prompt_variables(analysis, max_suggestions))
