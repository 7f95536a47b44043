# src/scoring/rules.py — v1
"""Fixed SEO rule table.

Each rule owns a check over PageMetrics and a rubric (priority, impact,
effort, confidence, action steps) that is copied verbatim into the
Recommendation it emits on failure. A check returns None when the rule does
not apply to the page (e.g. alt coverage on a page without images).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from seoscope.config.analysis import AnalysisConfig
from seoscope.core.models import PageMetrics
from seoscope.scoring.models import Effort, Priority, Recommendation, RuleOutcome

CheckFn = Callable[[PageMetrics, AnalysisConfig], RuleOutcome | None]


@dataclass(frozen=True)
class Rule:
    """A single scored check and the recommendation it emits on failure."""

    id: str
    category: str
    severity: Priority
    weight: float
    title: str
    description: str
    impact: str
    effort: Effort
    confidence: float
    check: CheckFn
    action_steps: tuple[str, ...] = field(default_factory=tuple)
    code_example: str | None = None
    in_fast_profile: bool = False

    def to_recommendation(self, outcome: RuleOutcome) -> Recommendation:
        description = self.description
        if outcome.detail:
            description = f"{outcome.detail}. {description}"
        return Recommendation(
            id=self.id,
            category=self.category,
            title=self.title,
            description=description,
            action_steps=list(self.action_steps),
            impact=self.impact,
            effort=self.effort,
            priority=self.severity,
            confidence=self.confidence,
            code_example=self.code_example,
            current_value=outcome.current_value,
            source="rules",
        )


def _ok(score: float = 1.0) -> RuleOutcome:
    return RuleOutcome(passed=True, score=score)


def _fail(score: float, detail: str, current_value: str | None = None) -> RuleOutcome:
    return RuleOutcome(
        passed=False, score=max(0.0, min(1.0, score)), detail=detail,
        current_value=current_value,
    )


def _range_outcome(
    value: int, bounds: tuple[int, int], label: str, tolerance: int, current: str
) -> RuleOutcome:
    """Full score inside bounds, half score within tolerance of them."""
    low, high = bounds
    if low <= value <= high:
        return _ok()
    near = low - tolerance <= value <= high + tolerance
    return _fail(0.5 if near else 0.0, f"{label} is {value} characters", current)


# === TITLE ===


def check_title_present(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if metrics.title:
        return _ok()
    return _fail(0.0, "Missing page title")


def check_title_length(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if not metrics.title:
        return None
    return _range_outcome(
        len(metrics.title), config.title_length, "Title length", 10, metrics.title
    )


# === DESCRIPTION ===


def check_description_present(
    metrics: PageMetrics, config: AnalysisConfig
) -> RuleOutcome | None:
    if metrics.meta_description:
        return _ok()
    return _fail(0.0, "Missing meta description")


def check_description_length(
    metrics: PageMetrics, config: AnalysisConfig
) -> RuleOutcome | None:
    if not metrics.meta_description:
        return None
    return _range_outcome(
        len(metrics.meta_description), config.description_length,
        "Meta description length", 20, metrics.meta_description,
    )


# === CONTENT ===


def check_content_length(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    minimum = config.min_word_count
    if minimum == 0 or metrics.word_count >= minimum:
        return _ok()
    return _fail(
        metrics.word_count / minimum,
        f"Content is short ({metrics.word_count} words)",
        f"{metrics.word_count} words",
    )


def check_keywords_present(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if metrics.keywords:
        return _ok()
    return _fail(0.0, "No significant keywords identified", "0 keywords")


def check_keyword_density(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if not metrics.keywords or not metrics.keyword_density:
        return None
    top = metrics.keywords[0]
    density = metrics.keyword_density.get(top, 0.0)
    low, high = config.keyword_density
    if low <= density <= high:
        return _ok()
    return _fail(
        0.5,
        f"Top keyword '{top}' density is {density:.1f}%",
        f"{density:.2f}%",
    )


# === STRUCTURE ===


def check_headings_present(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if metrics.headings:
        return _ok()
    return _fail(0.0, "No headings found")


def check_single_h1(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if not metrics.headings:
        return None
    count = len(metrics.h1_tags)
    if count == 1:
        return _ok()
    if count == 0:
        return _fail(0.0, "Missing H1 tag", "0 H1 tags")
    return _fail(0.5, f"Multiple H1 tags found ({count})", f"{count} H1 tags")


def check_heading_hierarchy(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if len(metrics.headings) < 2:
        return None
    levels = [h.level for h in metrics.headings]
    skips = sum(1 for prev, cur in zip(levels, levels[1:]) if cur - prev > 1)
    if skips == 0:
        return _ok()
    return _fail(
        1.0 - skips / (len(levels) - 1),
        f"Heading levels skip {skips} time(s)",
        " > ".join(f"H{level}" for level in levels),
    )


# === IMAGES ===


def check_image_alt_coverage(
    metrics: PageMetrics, config: AnalysisConfig
) -> RuleOutcome | None:
    if not metrics.images:
        return None
    missing = len(metrics.images_missing_alt)
    coverage = 1.0 - missing / len(metrics.images)
    if coverage >= config.min_alt_coverage:
        return _ok(coverage)
    return _fail(
        coverage,
        f"{missing} images without alt text",
        f"{missing} of {len(metrics.images)} images missing alt",
    )


# === LINKS ===


def check_internal_links(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if metrics.mode == "fast":
        return None
    if metrics.internal_links:
        return _ok()
    return _fail(0.0, "No internal links found", "0 internal links")


def check_external_links(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if metrics.mode == "fast":
        return None
    if metrics.external_links:
        return _ok()
    return _fail(0.0, "No external links found", "0 external links")


# === TECHNICAL ===


def check_viewport(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    return _ok() if metrics.has_viewport else _fail(0.0, "Missing viewport meta tag")


def check_canonical(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    return _ok() if metrics.canonical_url else _fail(0.0, "Missing canonical URL")


def check_open_graph(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    present = {key for key in metrics.open_graph if key in ("og:title", "og:description")}
    if len(present) == 2:
        return _ok()
    return _fail(len(present) / 2, "Open Graph title/description incomplete")


def check_structured_data(metrics: PageMetrics, config: AnalysisConfig) -> RuleOutcome | None:
    if metrics.structured_data:
        return _ok()
    return _fail(0.0, "No JSON-LD structured data found")


def check_language_declared(
    metrics: PageMetrics, config: AnalysisConfig
) -> RuleOutcome | None:
    if metrics.html_lang:
        return _ok()
    return _fail(0.0, "Document language not declared", config.language)


RULES: tuple[Rule, ...] = (
    Rule(
        id="title-present", category="title", severity="critical", weight=2.0,
        title="Add a Page Title",
        description="Add a descriptive title tag; it is the most important on-page SEO element",
        impact="Critical - Title is the most important SEO element", effort="low",
        confidence=0.95, check=check_title_present, in_fast_profile=True,
        action_steps=(
            "Write a unique title that names the page topic",
            "Place the primary keyword near the start",
        ),
        code_example="<title>Your Page Title - Brand Name</title>",
    ),
    Rule(
        id="title-length", category="title", severity="medium", weight=1.0,
        title="Improve Page Title",
        description="Keep the title between 30 and 60 characters for optimal display",
        impact="Medium - Overlong titles are truncated in results", effort="low",
        confidence=0.9, check=check_title_length, in_fast_profile=True,
        action_steps=(
            "Trim or extend the title to 30-60 characters",
            "Keep the primary keyword in the visible part",
        ),
        code_example="<title>Your Page Title - Brand Name</title>",
    ),
    Rule(
        id="description-present", category="description", severity="high", weight=2.0,
        title="Add a Meta Description",
        description="Add a compelling meta description to improve click-through rates",
        impact="High - Meta description affects click-through rates", effort="low",
        confidence=0.9, check=check_description_present, in_fast_profile=True,
        action_steps=(
            "Summarize the page in one or two sentences",
            "Include the primary keyword and a call to action",
        ),
        code_example='<meta name="description" content="Your page description here">',
    ),
    Rule(
        id="description-length", category="description", severity="medium", weight=1.0,
        title="Improve Meta Description",
        description="Keep the meta description between 120 and 160 characters",
        impact="Medium - Descriptions outside the range are cut or padded", effort="low",
        confidence=0.85, check=check_description_length, in_fast_profile=True,
        action_steps=("Rewrite the description to 120-160 characters",),
        code_example='<meta name="description" content="Your page description here">',
    ),
    Rule(
        id="content-length", category="content", severity="medium", weight=2.0,
        title="Increase Content Length",
        description="Consider adding more comprehensive content (300+ words)",
        impact="Medium - Longer content often ranks better", effort="high",
        confidence=0.8, check=check_content_length, in_fast_profile=True,
        action_steps=(
            "Expand the main topic with examples and detail",
            "Answer related questions readers are likely to ask",
        ),
    ),
    Rule(
        id="keywords-present", category="content", severity="high", weight=1.0,
        title="Optimize Keyword Usage",
        description="Ensure content includes relevant keywords for your target audience",
        impact="High - Keywords are essential for search visibility", effort="medium",
        confidence=0.8, check=check_keywords_present, in_fast_profile=True,
        action_steps=(
            "Pick one primary keyword per page",
            "Use it in the title, H1 and first paragraph",
        ),
    ),
    Rule(
        id="keyword-density", category="content", severity="low", weight=1.0,
        title="Balance Keyword Density",
        description="Keep the main keyword between 0.5% and 2.5% of the text",
        impact="Low - Over- or under-use of the main keyword weakens relevance",
        effort="medium", confidence=0.6, check=check_keyword_density,
        action_steps=("Use synonyms instead of repeating the main keyword",),
    ),
    Rule(
        id="headings-present", category="structure", severity="high", weight=2.0,
        title="Add Heading Structure",
        description="Add proper heading structure (H1, H2, H3) for better content organization",
        impact="High - Headings help search engines understand the page", effort="low",
        confidence=0.9, check=check_headings_present, in_fast_profile=True,
        action_steps=("Add one H1 and group sections under H2 headings",),
        code_example="<h1>Main Topic</h1>\n<h2>First Section</h2>",
    ),
    Rule(
        id="single-h1", category="structure", severity="high", weight=2.0,
        title="Fix H1 Heading Structure",
        description="Use exactly one H1 tag as the main page heading",
        impact="High - Proper heading structure improves SEO", effort="low",
        confidence=0.9, check=check_single_h1, in_fast_profile=True,
        action_steps=(
            "Keep a single H1 that matches the page topic",
            "Demote additional H1 elements to H2",
        ),
        code_example="<h1>Your Main Page Title</h1>",
    ),
    Rule(
        id="heading-hierarchy", category="structure", severity="low", weight=1.0,
        title="Fix Heading Hierarchy",
        description="Do not skip heading levels (e.g. H2 followed by H4)",
        impact="Low - A consistent outline aids accessibility and parsing", effort="low",
        confidence=0.7, check=check_heading_hierarchy,
        action_steps=("Nest headings one level at a time",),
    ),
    Rule(
        id="image-alt", category="images", severity="medium", weight=1.0,
        title="Add Alt Text to Images",
        description="Add descriptive alt text to all images for accessibility and SEO",
        impact="Medium - Alt text improves accessibility and SEO", effort="low",
        confidence=0.8, check=check_image_alt_coverage,
        action_steps=(
            "Describe what each informative image shows",
            'Mark purely decorative images with alt=""',
        ),
        code_example='<img src="image.jpg" alt="Descriptive text about the image">',
    ),
    Rule(
        id="internal-links", category="links", severity="medium", weight=1.0,
        title="Add Internal Links",
        description="Link to related pages on the same site",
        impact="Medium - Internal links spread authority and aid discovery",
        effort="low", confidence=0.7, check=check_internal_links,
        action_steps=("Link two or three related pages with descriptive anchor text",),
    ),
    Rule(
        id="external-links", category="links", severity="low", weight=1.0,
        title="Add External Links",
        description="Cite authoritative external sources where relevant",
        impact="Low - External links can add credibility", effort="low",
        confidence=0.6, check=check_external_links,
        action_steps=("Link to one or two authoritative sources",),
    ),
    Rule(
        id="viewport", category="technical", severity="high", weight=2.0,
        title="Add Viewport Meta Tag",
        description="Declare a responsive viewport so the page renders on mobile devices",
        impact="High - Essential for mobile SEO", effort="low",
        confidence=0.9, check=check_viewport,
        action_steps=("Add the viewport meta tag to the document head",),
        code_example='<meta name="viewport" content="width=device-width, initial-scale=1">',
    ),
    Rule(
        id="canonical", category="technical", severity="medium", weight=1.0,
        title="Add Canonical URL",
        description="Declare the preferred URL to avoid duplicate content",
        impact="Medium - Consolidates ranking signals on one URL", effort="low",
        confidence=0.8, check=check_canonical,
        action_steps=("Add a canonical link pointing at the preferred URL",),
        code_example='<link rel="canonical" href="https://example.com/page">',
    ),
    Rule(
        id="open-graph", category="technical", severity="low", weight=1.0,
        title="Add Open Graph Tags",
        description="Provide og:title and og:description for social sharing previews",
        impact="Low - Improves link previews on social platforms", effort="low",
        confidence=0.7, check=check_open_graph,
        code_example='<meta property="og:title" content="Your Page Title">',
    ),
    Rule(
        id="structured-data", category="technical", severity="low", weight=1.0,
        title="Add Structured Data",
        description="Describe the page with schema.org JSON-LD",
        impact="Low - Enables rich results", effort="medium",
        confidence=0.6, check=check_structured_data,
        code_example='<script type="application/ld+json">{"@type": "Article"}</script>',
    ),
    Rule(
        id="language-declared", category="technical", severity="low", weight=1.0,
        title="Declare Document Language",
        description="Set the lang attribute on the html element",
        impact="Low - Helps search engines serve the right audience", effort="low",
        confidence=0.7, check=check_language_declared,
        code_example='<html lang="en">',
    ),
)


def rules_for(fast: bool) -> tuple[Rule, ...]:
    """Rule subset for a profile: fast keeps only the cheap core checks."""
    if not fast:
        return RULES
    return tuple(rule for rule in RULES if rule.in_fast_profile)
