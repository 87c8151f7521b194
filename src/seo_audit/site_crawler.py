"""Site crawler: bounded, batched, breadth-first crawl of one website."""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from seo_audit.browser_crawler import BrowserPageFetcher
from seo_audit.config import SiteCrawlOptions
from seo_audit.constants import RECOMMENDED_MAX_CONCURRENCY
from seo_audit.crawler import FetchError, PageFetcher
from seo_audit.models import CrawlTarget, PageSnapshot, SiteCrawlResult
from seo_audit.robots import ExclusionRuleSet
from seo_audit.sitemap_parser import SitemapResolver
from seo_audit.url_frontier import UrlFrontier, is_page_asset, is_same_domain

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# (snapshot, error): both None means the URL was excluded by robots.txt
_FetchOutcome = Tuple[Optional[PageSnapshot], Optional[str]]


class SiteCrawler:
    """Crawls a site in batches, starting from the seed URL and its sitemap.

    Each batch of up to ``concurrency`` URLs is fetched in parallel and fully
    settles before its links are harvested into the frontier and the next
    batch starts. The frontier, the exclusion rules and the result lists are
    created per ``crawl_site`` call and only touched between batches.
    """

    def __init__(
        self,
        options: Optional[SiteCrawlOptions] = None,
        fetcher=None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """Initialize the site crawler.

        Args:
            options: Validated crawl options (defaults used if None)
            fetcher: Optional page fetcher providing ``fetch_page``,
                ``fetch_text``, ``fetch_robots_txt`` and ``fetch_sitemap``.
                When None, a PageFetcher (or BrowserPageFetcher when
                ``render_js`` is set) is created for each crawl.
            on_progress: Optional callback for progress updates
                (pages_crawled, max_pages, url), called once per crawled page
        """
        self.options = options or SiteCrawlOptions()
        self.on_progress = on_progress
        self._fetcher = fetcher

    async def crawl_site(self, start_url: str) -> SiteCrawlResult:
        """Crawl a site starting from a URL.

        Args:
            start_url: The starting URL to crawl from

        Returns:
            SiteCrawlResult with crawled pages, failures and statistics.
            Zero crawled pages is reported, not raised.

        Raises:
            ValueError: If start_url is not an absolute http(s) URL
        """
        parsed = urlparse(start_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Invalid start URL: {start_url}")

        if self._fetcher is not None:
            return await self._crawl(start_url, self._fetcher)

        async with self._create_fetcher() as fetcher:
            return await self._crawl(start_url, fetcher)

    def _create_fetcher(self):
        if self.options.render_js:
            return BrowserPageFetcher(
                config=self.options.browser_config,
                user_agent=self.options.user_agent,
            )
        return PageFetcher(user_agent=self.options.user_agent)

    async def _crawl(self, start_url: str, fetcher) -> SiteCrawlResult:
        options = self.options
        started = time.monotonic()

        parsed = urlparse(start_url)
        base_url = f"{parsed.scheme}://{parsed.netloc}"
        base_domain = parsed.hostname

        logger.info(f"Starting site crawl of {base_url}")
        logger.info(f"Max pages: {options.max_pages}, Concurrency: {options.concurrency}")
        if options.concurrency > RECOMMENDED_MAX_CONCURRENCY:
            logger.warning(
                f"Concurrency {options.concurrency} is above the recommended {RECOMMENDED_MAX_CONCURRENCY}"
            )

        robots_txt = await self._fetch_robots_txt(fetcher, base_url)
        if options.respect_robots_txt:
            rules = ExclusionRuleSet.parse(robots_txt)
        else:
            rules = ExclusionRuleSet.allow_all()
        if rules:
            logger.info(f"Found {len(rules)} disallowed paths in robots.txt")

        sitemap_urls = await SitemapResolver(fetcher).resolve(base_url, base_domain, options.max_pages)
        if sitemap_urls:
            logger.info(f"Found {len(sitemap_urls)} URLs from sitemap(s)")

        frontier = UrlFrontier(options.max_pages)
        frontier.seed(start_url)
        for url in sitemap_urls:
            frontier.offer(url, source="sitemap")

        logger.info(f"Starting crawl with {frontier.pending_count} initial URLs")

        pages: List[PageSnapshot] = []
        failed_pages: List[str] = []

        while not frontier.is_exhausted_or_full():
            batch = frontier.next(min(options.concurrency, frontier.remaining_budget))

            outcomes = await asyncio.gather(
                *(self._crawl_target(fetcher, target, rules) for target in batch)
            )

            crawled_in_batch = []
            for target, (snapshot, error) in zip(batch, outcomes):
                if error is not None:
                    failed_pages.append(target.url)
                    continue
                if snapshot is None:
                    continue

                pages.append(snapshot)
                crawled_in_batch.append(snapshot)
                frontier.record_crawled()
                logger.info(
                    f"[{len(pages)}/{options.max_pages}] {target.url} ({snapshot.load_time_ms}ms)"
                )
                if self.on_progress:
                    self.on_progress(len(pages), options.max_pages, target.url)

            for snapshot in crawled_in_batch:
                queued = self._harvest_links(snapshot, frontier, rules, base_domain)
                if queued:
                    logger.debug(f"Queued {queued} new links from {snapshot.url}")

            # Politeness delay between batches
            if not frontier.is_exhausted_or_full() and options.delay_ms > 0:
                await asyncio.sleep(options.delay_seconds)

        crawl_duration = int(round((time.monotonic() - started) * 1000))

        logger.info(f"Crawl complete: {len(pages)} pages in {crawl_duration / 1000:.1f}s")
        if failed_pages:
            logger.info(f"{len(failed_pages)} pages failed to load")

        return SiteCrawlResult(
            base_url=base_url,
            total_pages=frontier.known_count,
            crawled_pages=len(pages),
            failed_pages=failed_pages,
            pages=pages,
            sitemap_urls=sitemap_urls,
            robots_txt=robots_txt,
            crawl_duration=crawl_duration,
        )

    async def _fetch_robots_txt(self, fetcher, base_url: str) -> Optional[str]:
        """Fetch robots.txt, treating any failure as absent."""
        try:
            return await fetcher.fetch_robots_txt(base_url)
        except (FetchError, httpx.HTTPError) as e:
            logger.warning(f"Could not load robots.txt: {e}")
            return None

    async def _crawl_target(
        self, fetcher, target: CrawlTarget, rules: ExclusionRuleSet
    ) -> _FetchOutcome:
        """Fetch one URL unless robots.txt excludes it."""
        if not rules.is_allowed(target.url):
            logger.info(f"Skipped (robots.txt): {target.url}")
            return None, None

        timeout = self.options.timeout_seconds
        try:
            snapshot = await asyncio.wait_for(
                fetcher.fetch_page(target.url, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Failed: {target.url} - timeout after {timeout}s")
            return None, f"Timeout after {timeout}s"
        except FetchError as e:
            logger.warning(f"Failed: {target.url} - {e.message}")
            return None, e.message

        return snapshot, None

    def _harvest_links(
        self,
        snapshot: PageSnapshot,
        frontier: UrlFrontier,
        rules: ExclusionRuleSet,
        base_domain: str,
    ) -> int:
        """Offer a page's internal, same-site, non-asset, allowed links to the frontier.

        Returns:
            Number of links the frontier accepted
        """
        queued = 0
        for link in snapshot.links:
            if not link.is_internal or not link.href:
                continue
            try:
                hostname = urlparse(link.href).hostname
            except ValueError:
                continue
            if not is_same_domain(hostname, base_domain):
                continue
            if is_page_asset(link.href) or not rules.is_allowed(link.href):
                continue
            if frontier.offer(link.href):
                queued += 1
        return queued


async def crawl_site(
    start_url: str,
    options: Optional[SiteCrawlOptions] = None,
    on_progress: Optional[ProgressCallback] = None,
    fetcher=None,
) -> SiteCrawlResult:
    """Convenience function to crawl a site.

    Args:
        start_url: URL to start crawling from
        options: Crawl options (defaults used if None)
        on_progress: Optional per-page progress callback
        fetcher: Optional page fetcher (see SiteCrawler)

    Returns:
        SiteCrawlResult for the run
    """
    crawler = SiteCrawler(options=options, fetcher=fetcher, on_progress=on_progress)
    return await crawler.crawl_site(start_url)
