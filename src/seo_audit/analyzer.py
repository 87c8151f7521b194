"""Per-page SEO analyzer: runs rule checks over a page snapshot."""

import logging
import re
from typing import Callable, List, Optional
from urllib.parse import urlparse

from seo_audit.constants import (
    LOAD_TIME_INFO_MS,
    LOAD_TIME_WARNING_MS,
    MAX_URL_PATH_LENGTH,
    META_DESC_MAX_LENGTH,
    META_DESC_MIN_LENGTH,
    MIN_INTERNAL_LINKS,
    PAGE_SIZE_INFO_BYTES,
    PAGE_SIZE_WARNING_BYTES,
    RENDER_BLOCKING_WARNING_COUNT,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from seo_audit.models import AnalysisDepth, PageAnalysis, PageSnapshot, SEOIssue
from seo_audit.scoring import calculate_page_score

logger = logging.getLogger(__name__)

Check = Callable[[PageSnapshot], List[SEOIssue]]

REQUIRED_OG_TAGS = ("og:title", "og:description", "og:image")
REQUIRED_TWITTER_TAGS = ("twitter:card", "twitter:title")


def _issue(category, check_name, status, description, recommendation, priority,
           current_value=None, reference_url=None) -> SEOIssue:
    return SEOIssue(
        category=category,
        check_name=check_name,
        status=status,
        description=description,
        recommendation=recommendation,
        priority=priority,
        current_value=current_value,
        reference_url=reference_url,
    )


# =============================================================================
# Basic checks
# =============================================================================

def check_title(page: PageSnapshot) -> List[SEOIssue]:
    ref = "https://developers.google.com/search/docs/appearance/title-link"
    title = page.title
    if not title:
        return [_issue("basic", "Title Tag", "fail", "Page is missing a title tag",
                       f"Add a unique, descriptive title tag between {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters",
                       "high", reference_url=ref)]

    length = len(title)
    if length < TITLE_MIN_LENGTH:
        return [_issue("basic", "Title Tag Length", "warning", f"Title is too short ({length} characters)",
                       f"Expand title to at least {TITLE_MIN_LENGTH} characters for better SEO impact",
                       "medium", title, ref)]
    if length > TITLE_MAX_LENGTH:
        return [_issue("basic", "Title Tag Length", "warning",
                       f"Title is too long ({length} characters) and may be truncated in search results",
                       f"Shorten title to under {TITLE_MAX_LENGTH} characters to prevent truncation",
                       "medium", title, ref)]
    return [_issue("basic", "Title Tag", "pass",
                   f"Title tag is present and optimal length ({length} characters)",
                   "Title tag is well optimized", "low", title)]


def check_meta_description(page: PageSnapshot) -> List[SEOIssue]:
    ref = "https://developers.google.com/search/docs/appearance/snippet"
    description = page.meta_description
    if not description:
        return [_issue("basic", "Meta Description", "fail", "Page is missing a meta description",
                       f"Add a compelling meta description between {META_DESC_MIN_LENGTH}-{META_DESC_MAX_LENGTH} characters",
                       "high", reference_url=ref)]

    length = len(description)
    if length < META_DESC_MIN_LENGTH:
        return [_issue("basic", "Meta Description Length", "warning",
                       f"Meta description is too short ({length} characters)",
                       f"Expand meta description to at least {META_DESC_MIN_LENGTH} characters",
                       "medium", description, ref)]
    if length > META_DESC_MAX_LENGTH:
        return [_issue("basic", "Meta Description Length", "warning",
                       f"Meta description is too long ({length} characters)",
                       f"Shorten meta description to under {META_DESC_MAX_LENGTH} characters",
                       "medium", description, ref)]
    return [_issue("basic", "Meta Description", "pass",
                   f"Meta description is present and optimal length ({length} characters)",
                   "Meta description is well optimized", "low", description)]


def check_h1(page: PageSnapshot) -> List[SEOIssue]:
    h1_tags = page.headings.get("h1", [])
    if not h1_tags:
        return [_issue("basic", "H1 Tag", "fail", "Page is missing an H1 tag",
                       "Add a single, descriptive H1 tag that includes your target keyword", "high")]
    if len(h1_tags) > 1:
        return [_issue("basic", "H1 Tag Count", "warning", f"Page has {len(h1_tags)} H1 tags",
                       "Use only one H1 tag per page for clearer content hierarchy", "medium",
                       " | ".join(h1_tags))]
    return [_issue("basic", "H1 Tag", "pass", "Page has exactly one H1 tag",
                   "H1 structure is correct", "low", h1_tags[0])]


def check_heading_hierarchy(page: PageSnapshot) -> List[SEOIssue]:
    headings = page.headings
    if headings.get("h2") and not headings.get("h1"):
        return [_issue("basic", "Heading Hierarchy", "warning", "H2 tags are used without an H1",
                       "Add an H1 tag before using H2 tags for proper document structure", "medium")]
    if headings.get("h3") and not headings.get("h2"):
        return [_issue("basic", "Heading Hierarchy", "warning", "H3 tags are used without an H2",
                       "Use H2 tags before H3 tags for proper heading hierarchy", "low")]
    return [_issue("basic", "Heading Hierarchy", "pass", "Heading levels are used in order",
                   "Heading structure is well organized", "low")]


def check_canonical(page: PageSnapshot) -> List[SEOIssue]:
    if not page.canonical:
        return [_issue("basic", "Canonical URL", "warning", "Page has no canonical tag",
                       "Add a canonical tag to prevent duplicate content issues", "medium")]
    return [_issue("basic", "Canonical URL", "pass", "Canonical tag is present",
                   "Canonical tag is properly set", "low", page.canonical)]


def check_robots_meta(page: PageSnapshot) -> List[SEOIssue]:
    robots = (page.robots_meta or "").lower()
    if "noindex" in robots:
        return [_issue("basic", "Robots Meta Tag", "warning", "Page is set to noindex",
                       "Remove noindex if you want this page to be indexed by search engines",
                       "high", page.robots_meta)]
    if "nofollow" in robots:
        return [_issue("basic", "Robots Meta Tag", "info", "Page is set to nofollow",
                       "Consider if nofollow is intentional for this page", "low", page.robots_meta)]
    return [_issue("basic", "Robots Meta Tag", "pass", "Page is indexable",
                   "Robots configuration is appropriate", "low", page.robots_meta)]


def check_language(page: PageSnapshot) -> List[SEOIssue]:
    if not page.language:
        return [_issue("basic", "Language Declaration", "warning", "The <html> element has no lang attribute",
                       'Add lang attribute (e.g., lang="en") to help search engines understand content language',
                       "medium")]
    return [_issue("basic", "Language Declaration", "pass", f"Language is declared as {page.language}",
                   "Language attribute is set correctly", "low", page.language)]


def check_charset(page: PageSnapshot) -> List[SEOIssue]:
    if not page.charset:
        return [_issue("basic", "Character Encoding", "warning", "No character encoding is declared",
                       'Add <meta charset="UTF-8"> for proper character encoding', "medium")]
    if page.charset.lower().replace("-", "") != "utf8":
        return [_issue("basic", "Character Encoding", "info", f"Page uses {page.charset} encoding",
                       "Consider using UTF-8 encoding for better compatibility", "low", page.charset)]
    return [_issue("basic", "Character Encoding", "pass", "Page declares UTF-8 encoding",
                   "Character encoding is properly set", "low", page.charset)]


# =============================================================================
# Intermediate checks
# =============================================================================

def check_image_alt(page: PageSnapshot) -> List[SEOIssue]:
    images = page.images
    if not images:
        return [_issue("intermediate", "Image Alt Tags", "info", "Page has no images",
                       "Consider adding relevant images to enhance content", "low")]

    missing = [img for img in images if not (img.alt or "").strip()]
    if missing:
        return [_issue("intermediate", "Image Alt Tags",
                       "fail" if len(missing) == len(images) else "warning",
                       f"{len(missing)} of {len(images)} images are missing alt text",
                       "Add descriptive alt text to all images for accessibility and SEO",
                       "high" if len(missing) > len(images) / 2 else "medium",
                       f"{len(missing)}/{len(images)}")]
    return [_issue("intermediate", "Image Alt Tags", "pass", f"All {len(images)} images have alt text",
                   "Image accessibility is well implemented", "low")]


def check_internal_links(page: PageSnapshot) -> List[SEOIssue]:
    internal = [link for link in page.links if link.is_internal]
    count = len(internal)
    if count == 0:
        return [_issue("intermediate", "Internal Links", "warning", "Page has no internal links",
                       "Add internal links to improve site navigation and distribute page authority",
                       "medium", "0")]
    if count < MIN_INTERNAL_LINKS:
        return [_issue("intermediate", "Internal Links", "info", f"Page has only {count} internal links",
                       "Consider adding more internal links to improve site structure", "low", str(count))]
    return [_issue("intermediate", "Internal Links", "pass", f"Page has {count} internal links",
                   "Internal linking is adequate", "low", str(count))]


def check_open_graph(page: PageSnapshot) -> List[SEOIssue]:
    og = page.open_graph
    if not og:
        return [_issue("intermediate", "Open Graph Tags", "warning", "Page has no Open Graph tags",
                       "Add Open Graph tags for better social media sharing", "medium")]
    missing = [tag for tag in REQUIRED_OG_TAGS if not og.get(tag)]
    if missing:
        return [_issue("intermediate", "Open Graph Tags", "warning",
                       f"Open Graph is incomplete (missing {', '.join(missing)})",
                       f"Add missing tags: {', '.join(missing)}", "low")]
    return [_issue("intermediate", "Open Graph Tags", "pass", "Essential Open Graph tags are present",
                   "Social sharing optimization is complete", "low")]


def check_twitter_card(page: PageSnapshot) -> List[SEOIssue]:
    card = page.twitter_card
    if not card:
        return [_issue("intermediate", "Twitter Card", "info", "Page has no Twitter Card tags",
                       "Add Twitter Card tags for better Twitter sharing", "low")]
    missing = [tag for tag in REQUIRED_TWITTER_TAGS if not card.get(tag)]
    if missing:
        return [_issue("intermediate", "Twitter Card", "warning",
                       f"Twitter Card is incomplete (missing {', '.join(missing)})",
                       f"Add missing tags: {', '.join(missing)}", "low")]
    return [_issue("intermediate", "Twitter Card", "pass", "Twitter Card tags are present",
                   "Twitter sharing optimization is complete", "low", card.get("twitter:card"))]


def check_https(page: PageSnapshot) -> List[SEOIssue]:
    if not page.is_https:
        return [_issue("intermediate", "HTTPS", "fail", "Page is served over insecure HTTP",
                       "Enable HTTPS for security and SEO ranking benefits", "high", page.url)]
    return [_issue("intermediate", "HTTPS", "pass", "Page is served over HTTPS",
                   "Security is properly configured", "low")]


def check_url_structure(page: PageSnapshot) -> List[SEOIssue]:
    path = urlparse(page.url).path
    if len(path) > MAX_URL_PATH_LENGTH:
        return [_issue("intermediate", "URL Length", "warning", f"URL path is {len(path)} characters long",
                       f"Keep URL paths under {MAX_URL_PATH_LENGTH} characters for better usability",
                       "low", path)]
    if "_" in path:
        return [_issue("intermediate", "URL Structure", "info", "URL path contains underscores",
                       "Use hyphens (-) instead of underscores (_) in URLs", "low", path)]
    if path != path.lower():
        return [_issue("intermediate", "URL Case", "info", "URL path contains uppercase characters",
                       "Use lowercase URLs for consistency", "low", path)]
    if re.search(r"[^a-zA-Z0-9\-/._~%]", path):
        return [_issue("intermediate", "URL Characters", "warning", "URL path contains special characters",
                       "Use only alphanumeric characters and hyphens in URLs", "low", path)]
    return [_issue("intermediate", "URL Structure", "pass", "URL is clean and readable",
                   "URL is well structured", "low", path or "/")]


# =============================================================================
# Advanced checks
# =============================================================================

def check_structured_data(page: PageSnapshot) -> List[SEOIssue]:
    types = page.structured_data_types
    if not types:
        return [_issue("advanced", "Structured Data", "warning", "No JSON-LD structured data found",
                       "Add Schema.org structured data to enable rich snippets in search results",
                       "medium", reference_url="https://developers.google.com/search/docs/appearance/structured-data")]
    return [_issue("advanced", "Structured Data", "pass", f"Found structured data: {', '.join(types)}",
                   "Structured data is implemented", "low", ", ".join(types))]


def check_viewport(page: PageSnapshot) -> List[SEOIssue]:
    viewport = page.viewport
    if not viewport:
        return [_issue("advanced", "Viewport Meta Tag", "fail", "Page has no viewport meta tag",
                       'Add <meta name="viewport" content="width=device-width, initial-scale=1"> for mobile optimization',
                       "high")]
    normalized = viewport.replace(" ", "").lower()
    if "width=device-width" not in normalized:
        return [_issue("advanced", "Viewport Configuration", "warning", "Viewport does not use device width",
                       "Ensure viewport includes width=device-width and initial-scale=1", "medium", viewport)]
    if "user-scalable=no" in normalized or "maximum-scale=1" in normalized:
        return [_issue("advanced", "Viewport Accessibility", "warning", "Viewport prevents zooming",
                       "Remove user-scalable=no and maximum-scale restrictions for accessibility",
                       "medium", viewport)]
    return [_issue("advanced", "Viewport Meta Tag", "pass", "Viewport is configured for mobile",
                   "Mobile optimization is correctly set up", "low", viewport)]


def check_load_time(page: PageSnapshot) -> List[SEOIssue]:
    load_time = page.load_time_ms
    if load_time > LOAD_TIME_WARNING_MS:
        return [_issue("advanced", "Page Load Time", "warning", f"Page took {load_time}ms to load",
                       "Optimize server response time, reduce render-blocking resources, and enable caching",
                       "high", f"{load_time}ms")]
    if load_time > LOAD_TIME_INFO_MS:
        return [_issue("advanced", "Page Load Time", "info", f"Page took {load_time}ms to load",
                       "Consider performance optimizations for faster loading", "low", f"{load_time}ms")]
    return [_issue("advanced", "Page Load Time", "pass", f"Page loaded in {load_time}ms",
                   "Page load time is good", "low", f"{load_time}ms")]


def check_page_size(page: PageSnapshot) -> List[SEOIssue]:
    size_kb = round(page.content_length / 1024)
    if page.content_length > PAGE_SIZE_WARNING_BYTES:
        return [_issue("advanced", "Page Size", "warning", f"HTML is {size_kb}KB",
                       "Reduce page size by removing unused code, compressing content, and lazy loading",
                       "medium", f"{size_kb}KB")]
    if page.content_length > PAGE_SIZE_INFO_BYTES:
        return [_issue("advanced", "Page Size", "info", f"HTML is {size_kb}KB",
                       "Consider optimizing page size for faster load times", "low", f"{size_kb}KB")]
    return [_issue("advanced", "Page Size", "pass", f"HTML is {size_kb}KB",
                   "Page size is well optimized", "low", f"{size_kb}KB")]


def check_render_blocking(page: PageSnapshot) -> List[SEOIssue]:
    count = len(page.render_blocking_resources)
    if count == 0:
        return [_issue("advanced", "Render-Blocking Resources", "pass", "No render-blocking resources in <head>",
                       "Page load is optimized", "low", "0")]
    if count <= RENDER_BLOCKING_WARNING_COUNT:
        return [_issue("advanced", "Render-Blocking Resources", "info", f"{count} render-blocking resources",
                       "Consider deferring non-critical CSS/JS or using async loading", "low", str(count))]
    return [_issue("advanced", "Render-Blocking Resources", "warning", f"{count} render-blocking resources",
                   "Defer non-critical CSS/JS, use async/defer attributes, or inline critical CSS",
                   "medium", str(count))]


BASIC_CHECKS: List[Check] = [
    check_title,
    check_meta_description,
    check_h1,
    check_heading_hierarchy,
    check_canonical,
    check_robots_meta,
    check_language,
    check_charset,
]

INTERMEDIATE_CHECKS: List[Check] = [
    check_image_alt,
    check_internal_links,
    check_open_graph,
    check_twitter_card,
    check_https,
    check_url_structure,
]

ADVANCED_CHECKS: List[Check] = [
    check_structured_data,
    check_viewport,
    check_load_time,
    check_page_size,
    check_render_blocking,
]


class PageAnalyzer:
    """Runs the per-page checks selected by an analysis depth."""

    def __init__(self, depth: AnalysisDepth = "all"):
        """Initialize the analyzer.

        Args:
            depth: Which check tier to run ('basic', 'intermediate',
                'advanced') or 'all'
        """
        if depth not in ("basic", "intermediate", "advanced", "all"):
            raise ValueError(f"Unknown analysis depth: {depth}")
        self.depth = depth
        self.checks: List[Check] = []
        if depth in ("basic", "all"):
            self.checks.extend(BASIC_CHECKS)
        if depth in ("intermediate", "all"):
            self.checks.extend(INTERMEDIATE_CHECKS)
        if depth in ("advanced", "all"):
            self.checks.extend(ADVANCED_CHECKS)

    def analyze(self, page: PageSnapshot) -> PageAnalysis:
        """Analyze one page.

        Args:
            page: Snapshot of the fetched page

        Returns:
            PageAnalysis with score, issues and fail/warning counts
        """
        issues: List[SEOIssue] = []
        for check in self.checks:
            issues.extend(check(page))

        return PageAnalysis(
            url=page.url,
            score=calculate_page_score(issues),
            issues=issues,
            critical_count=sum(1 for issue in issues if issue.status == "fail"),
            warning_count=sum(1 for issue in issues if issue.status == "warning"),
        )


def analyze_page(page: PageSnapshot, depth: AnalysisDepth = "all",
                 analyzer: Optional[PageAnalyzer] = None) -> PageAnalysis:
    """Convenience function to analyze a single page."""
    return (analyzer or PageAnalyzer(depth)).analyze(page)
