# src/seo_audit/constants.py
"""Centralized constants for the site audit engine.

This module contains the fixed policy values shared by the crawler and the
site aggregator. For user-configurable crawl options, see config.py and
SiteCrawlOptions.
"""

# =============================================================================
# Crawler Constants
# =============================================================================

# Default pages to crawl in site mode
DEFAULT_MAX_PAGES_TO_CRAWL = 50

# Hard bounds applied to the max_pages option (values outside are clamped)
MIN_PAGES_TO_CRAWL = 1
MAX_PAGES_TO_CRAWL = 500

# Default parallel fetches per batch
DEFAULT_CONCURRENCY = 3

# Recommended upper bound for concurrency (CLI help)
RECOMMENDED_MAX_CONCURRENCY = 10

# Default politeness delay between batches (milliseconds)
DEFAULT_DELAY_MS = 500

# Default per-page fetch timeout (milliseconds)
DEFAULT_PAGE_TIMEOUT_MS = 30000

# Timeout for robots.txt and sitemap fetches (seconds)
AUXILIARY_FETCH_TIMEOUT_SECONDS = 10.0

# The frontier never knows more than this many URLs per page of budget
FRONTIER_CEILING_FACTOR = 2

# Child sitemaps fetched from a sitemap index
MAX_CHILD_SITEMAPS = 15

# Default user agent for all outgoing requests
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEO-Site-Audit/1.0; +https://github.com/seo-site-audit)"

# Query parameters that never change page identity
TRACKING_QUERY_PARAMS = {
    'utm_source',
    'utm_medium',
    'utm_campaign',
    'utm_term',
    'utm_content',
    'ref',
    'fbclid',
    'gclid',
    'msclkid',
}

# Paths with these extensions are assets, not pages
SKIP_EXTENSIONS = {
    '.jpg', '.jpeg', '.png', '.gif', '.svg', '.webp', '.ico', '.avif',
    '.css', '.js', '.mjs', '.map',
    '.woff', '.woff2', '.ttf', '.eot', '.otf',
    '.zip', '.tar', '.gz', '.rar', '.7z',
    '.pdf', '.mp4', '.mp3', '.avi', '.mov',
    '.xml', '.json', '.rss', '.atom',
}

# Link schemes that can never be crawled
NON_CRAWLABLE_PREFIXES = ('mailto:', 'tel:', 'javascript:', '#', 'data:')


# =============================================================================
# Aggregation Constants
# =============================================================================

# Contribution of each check status to a page score
STATUS_WEIGHTS = {
    'pass': 1.0,
    'info': 0.9,
    'warning': 0.5,
    'fail': 0.0,
}

# Relative SEO impact of each check tier in the overall score
CATEGORY_WEIGHTS = {
    'basic': 0.40,
    'intermediate': 0.35,
    'advanced': 0.25,
}

# Sort order for priorities (lower sorts first)
PRIORITY_ORDER = {
    'high': 0,
    'medium': 1,
    'low': 2,
}

# An issue affecting at least this share of pages is site-wide
SITE_WIDE_THRESHOLD_PERCENT = 50

# A fail affecting at least this share of pages becomes high priority
FAIL_ESCALATION_PERCENT = 80

# A warning affecting at least this share of pages becomes medium priority
WARNING_ESCALATION_PERCENT = 50

# Example URLs kept per site-wide issue
MAX_ISSUE_EXAMPLES = 5


# =============================================================================
# Per-Page Check Thresholds
# =============================================================================

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60
META_DESC_MIN_LENGTH = 120
META_DESC_MAX_LENGTH = 160

# Load time (milliseconds)
LOAD_TIME_WARNING_MS = 3000
LOAD_TIME_INFO_MS = 1500

# HTML size (bytes)
PAGE_SIZE_WARNING_BYTES = 3 * 1024 * 1024
PAGE_SIZE_INFO_BYTES = 1024 * 1024

# Internal link counts
MIN_INTERNAL_LINKS = 3

# URL path length
MAX_URL_PATH_LENGTH = 75

# Render-blocking resources above which the check warns
RENDER_BLOCKING_WARNING_COUNT = 3


# =============================================================================
# Report Constants
# =============================================================================

REPORT_WIDTH = 80
REPORT_SUGGESTION_LIMIT = 10
REPORT_SITE_WIDE_DETAIL_LIMIT = 15
REPORT_WORST_PAGES_LIMIT = 10
REPORT_BEST_PAGES_LIMIT = 5

# Letter grade thresholds (score >= threshold)
GRADE_THRESHOLDS = [
    (90, 'A'),
    (80, 'B'),
    (70, 'C'),
    (60, 'D'),
]


# =============================================================================
# Logging Constants
# =============================================================================

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Client libraries whose per-request chatter drowns out crawl progress
QUIET_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'playwright')
