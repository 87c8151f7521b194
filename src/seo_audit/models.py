"""Data models for site-wide SEO auditing."""

from dataclasses import asdict, dataclass, field
from typing import Literal, Optional

Category = Literal["basic", "intermediate", "advanced"]
CheckStatus = Literal["pass", "fail", "warning", "info"]
Priority = Literal["high", "medium", "low"]
AnalysisDepth = Literal["basic", "intermediate", "advanced", "all"]
DiscoverySource = Literal["seed", "sitemap", "link"]
IssueType = Literal["site-wide", "page-specific"]


@dataclass(frozen=True)
class CrawlTarget:
    """A URL waiting in the frontier, identified by its normalized form."""

    url: str
    normalized: str
    source: DiscoverySource = "link"


@dataclass(frozen=True)
class LinkData:
    """An anchor found on a page."""

    href: str
    text: str = ""
    is_internal: bool = False
    is_nofollow: bool = False
    target: Optional[str] = None


@dataclass(frozen=True)
class ImageData:
    """An image found on a page."""

    src: str
    alt: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    loading: Optional[str] = None


@dataclass(frozen=True)
class PageSnapshot:
    """Raw facts of one fetched page. Never mutated after creation."""

    url: str
    status_code: int
    html: str
    load_time_ms: int
    content_length: int
    links: list[LinkData] = field(default_factory=list)
    final_url: Optional[str] = None

    # Extracted facts consumed by the per-page analyzer
    title: Optional[str] = None
    meta_description: Optional[str] = None
    canonical: Optional[str] = None
    robots_meta: Optional[str] = None
    language: Optional[str] = None
    charset: Optional[str] = None
    viewport: Optional[str] = None
    headings: dict[str, list[str]] = field(default_factory=dict)
    images: list[ImageData] = field(default_factory=list)
    open_graph: dict[str, str] = field(default_factory=dict)
    twitter_card: dict[str, str] = field(default_factory=dict)
    structured_data_types: list[str] = field(default_factory=list)
    render_blocking_resources: list[str] = field(default_factory=list)

    @property
    def is_https(self) -> bool:
        return self.url.lower().startswith("https://")


@dataclass(frozen=True)
class SEOIssue:
    """Outcome of one per-page check."""

    category: Category
    check_name: str
    status: CheckStatus
    description: str
    recommendation: str
    priority: Priority
    current_value: Optional[str] = None
    reference_url: Optional[str] = None


@dataclass(frozen=True)
class PageAnalysis:
    """Score and issues for a single page."""

    url: str
    score: int
    issues: list[SEOIssue] = field(default_factory=list)
    critical_count: int = 0
    warning_count: int = 0


@dataclass(frozen=True)
class IssueExample:
    url: str
    value: Optional[str] = None


@dataclass(frozen=True)
class SiteWideIssue:
    """A check outcome aggregated across all crawled pages."""

    category: Category
    check_name: str
    status: CheckStatus
    issue_type: IssueType
    affected_pages: int
    total_pages: int
    percentage: int
    priority: Priority
    description: str
    recommendation: str
    examples: list[IssueExample] = field(default_factory=list)
    reference_url: Optional[str] = None


@dataclass
class SiteCrawlResult:
    """Result of crawling a website."""

    base_url: str
    total_pages: int
    crawled_pages: int
    failed_pages: list[str] = field(default_factory=list)
    pages: list[PageSnapshot] = field(default_factory=list)
    sitemap_urls: list[str] = field(default_factory=list)
    robots_txt: Optional[str] = None
    crawl_duration: int = 0  # milliseconds


@dataclass(frozen=True)
class CrawlStats:
    total_discovered: int
    total_crawled: int
    failed_pages: int
    crawl_duration: int  # milliseconds


@dataclass(frozen=True)
class SiteScores:
    overall: int
    basic: int
    intermediate: int
    advanced: int
    average_page_score: int
    lowest_page_score: int
    highest_page_score: int


@dataclass(frozen=True)
class SiteSummary:
    total_issues: int
    site_wide_issues: int
    critical_issues: int
    warnings: int
    passed: int


@dataclass(frozen=True)
class Recommendations:
    critical: list[str] = field(default_factory=list)
    important: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TechnicalDetails:
    has_robots_txt: bool = False
    has_sitemap: bool = False
    sitemap_url_count: int = 0
    https_pages: int = 0
    http_pages: int = 0
    average_load_time: int = 0  # milliseconds
    total_page_size: int = 0  # bytes


@dataclass(frozen=True)
class SiteAnalysisResult:
    """Terminal artifact of one site audit run."""

    base_url: str
    analyzed_at: str
    depth: AnalysisDepth
    crawl_stats: CrawlStats
    scores: SiteScores
    summary: SiteSummary
    site_wide_issues: list[SiteWideIssue] = field(default_factory=list)
    page_analyses: list[PageAnalysis] = field(default_factory=list)
    recommendations: Recommendations = field(default_factory=Recommendations)
    technical_details: TechnicalDetails = field(default_factory=TechnicalDetails)

    def to_dict(self) -> dict:
        """Convert the result to plain dictionaries for serialization."""
        return asdict(self)
