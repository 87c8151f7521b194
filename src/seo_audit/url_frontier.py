"""URL frontier: de-duplicated FIFO queue of pages waiting to be crawled."""

import logging
from collections import deque
from typing import Deque, List, Optional, Set
from urllib.parse import parse_qsl, urlencode, urlparse

from seo_audit.constants import (
    FRONTIER_CEILING_FACTOR,
    SKIP_EXTENSIONS,
    TRACKING_QUERY_PARAMS,
)
from seo_audit.models import CrawlTarget, DiscoverySource

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Normalize a URL into its frontier identity.

    Drops the fragment, trailing slash and tracking query parameters, keeps
    the remaining query parameters and lowercases the result.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL
    """
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return url.lower()

    if not parsed.scheme or not parsed.netloc:
        return url.lower()

    normalized = f"{parsed.scheme}://{parsed.netloc}{parsed.path}".rstrip('/')

    significant = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not _is_tracking_param(key)
    ]
    if significant:
        normalized += f"?{urlencode(significant)}"

    return normalized.lower()


def _is_tracking_param(key: str) -> bool:
    key = key.lower()
    return key in TRACKING_QUERY_PARAMS or key.startswith('utm_')


def _strip_www(hostname: str) -> str:
    hostname = hostname.lower()
    return hostname[4:] if hostname.startswith('www.') else hostname


def is_same_domain(hostname: Optional[str], base_domain: str) -> bool:
    """Check whether a hostname belongs to the site being crawled.

    www and bare domain are treated as the same site, and subdomains of the
    base domain are accepted.

    Args:
        hostname: Hostname to test (no port)
        base_domain: Hostname of the start URL

    Returns:
        True if the hostname is part of the site
    """
    if not hostname:
        return False
    host = _strip_www(hostname)
    base = _strip_www(base_domain)
    return host == base or hostname.lower().endswith('.' + base)


def is_page_asset(url: str) -> bool:
    """Check if a URL points to a non-page asset (image, script, archive...)."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return any(path.endswith(ext) for ext in SKIP_EXTENSIONS)


class UrlFrontier:
    """Owns the known-URL set and the pending queue for one crawl.

    URLs are identified by their normalized form; each identity is enqueued
    at most once. The known set never grows beyond
    ``FRONTIER_CEILING_FACTOR * max_pages`` entries.
    """

    def __init__(self, max_pages: int):
        """Initialize an empty frontier.

        Args:
            max_pages: Crawl budget (successfully crawled pages)
        """
        self.max_pages = max_pages
        self.ceiling = max_pages * FRONTIER_CEILING_FACTOR
        self.crawled_count = 0
        self._known: Set[str] = set()
        self._pending: Deque[CrawlTarget] = deque()

    def seed(self, url: str, source: DiscoverySource = "seed") -> bool:
        """Enqueue a URL from a trusted source without asset filtering.

        Args:
            url: URL to enqueue
            source: Where the URL came from

        Returns:
            True if the URL was accepted
        """
        return self._enqueue(url, source)

    def offer(self, url: str, source: DiscoverySource = "link") -> bool:
        """Offer a discovered URL to the frontier.

        Rejects page assets, already-known URLs, and any URL once the known
        set has reached its ceiling.

        Args:
            url: URL to enqueue
            source: Where the URL came from

        Returns:
            True if the URL was accepted
        """
        if is_page_asset(url):
            return False
        return self._enqueue(url, source)

    def _enqueue(self, url: str, source: DiscoverySource) -> bool:
        if len(self._known) >= self.ceiling:
            return False

        normalized = normalize_url(url)
        if normalized in self._known:
            return False

        self._known.add(normalized)
        self._pending.append(CrawlTarget(url=url, normalized=normalized, source=source))
        return True

    def next(self, n: int) -> List[CrawlTarget]:
        """Pop up to ``n`` targets in discovery order."""
        batch = []
        while self._pending and len(batch) < n:
            batch.append(self._pending.popleft())
        return batch

    def record_crawled(self) -> None:
        """Count one successfully crawled page against the budget."""
        self.crawled_count += 1

    def is_exhausted_or_full(self) -> bool:
        """True when nothing is pending or the crawl budget is spent."""
        return not self._pending or self.crawled_count >= self.max_pages

    @property
    def remaining_budget(self) -> int:
        return max(0, self.max_pages - self.crawled_count)

    @property
    def known_count(self) -> int:
        return len(self._known)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def __contains__(self, url: str) -> bool:
        return normalize_url(url) in self._known
