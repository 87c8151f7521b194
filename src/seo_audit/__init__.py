"""Site-wide SEO crawl and audit engine."""

__version__ = "0.1.0"

from seo_audit.analyzer import PageAnalyzer, analyze_page
from seo_audit.browser_config import BrowserConfig
from seo_audit.browser_crawler import BrowserPageFetcher
from seo_audit.config import Config, SiteCrawlOptions
from seo_audit.crawler import FetchError, PageFetcher
from seo_audit.models import (
    CrawlTarget,
    PageAnalysis,
    PageSnapshot,
    SEOIssue,
    SiteAnalysisResult,
    SiteCrawlResult,
    SiteWideIssue,
)
from seo_audit.robots import ExclusionRuleSet
from seo_audit.site_analyzer import SiteAggregator, analyze_site
from seo_audit.site_crawler import SiteCrawler, crawl_site
from seo_audit.sitemap_parser import SitemapResolver
from seo_audit.url_frontier import UrlFrontier, normalize_url

__all__ = [
    # Crawl
    "UrlFrontier",
    "normalize_url",
    "ExclusionRuleSet",
    "SitemapResolver",
    "PageFetcher",
    "BrowserPageFetcher",
    "FetchError",
    "SiteCrawler",
    "crawl_site",
    # Analysis
    "PageAnalyzer",
    "analyze_page",
    "SiteAggregator",
    "analyze_site",
    # Models
    "CrawlTarget",
    "PageSnapshot",
    "SEOIssue",
    "PageAnalysis",
    "SiteWideIssue",
    "SiteCrawlResult",
    "SiteAnalysisResult",
    # Config
    "SiteCrawlOptions",
    "BrowserConfig",
    "Config",
]
