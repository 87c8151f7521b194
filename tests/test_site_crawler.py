# tests/test_site_crawler.py
"""Tests for the batched site crawler."""

import asyncio
import time

import httpx
import pytest

from seo_audit.browser_config import FAST_CONFIG
from seo_audit.browser_crawler import BrowserPageFetcher
from seo_audit.config import SiteCrawlOptions
from seo_audit.crawler import FetchError, PageFetcher
from seo_audit.site_crawler import SiteCrawler, crawl_site
from seo_audit.url_frontier import normalize_url

BASE = "https://example.com"


def fast_options(**overrides) -> SiteCrawlOptions:
    """Crawl options without politeness delay."""
    values = {"max_pages": 10, "concurrency": 3, "delay_ms": 0}
    values.update(overrides)
    return SiteCrawlOptions(**values)


class TestSiteCrawlerScenario:
    """End-to-end crawl over an in-memory site."""

    @pytest.fixture
    def scenario_fetcher(self, fake_fetcher, sitemap_xml):
        """Seed /, sitemap lists /a and /b, robots.txt disallows /private."""
        urlset, _ = sitemap_xml
        return fake_fetcher(
            site={
                f"{BASE}/": [],
                f"{BASE}/a": ["/private", "/b"],
                f"{BASE}/b": [],
                f"{BASE}/private": [],
            },
            robots_txt="User-agent: *\nDisallow: /private",
            sitemap=urlset(f"{BASE}/a", f"{BASE}/b"),
        )

    @pytest.mark.asyncio
    async def test_crawls_exactly_allowed_pages(self, scenario_fetcher):
        """Test the crawl visits /, /a and /b and never /private."""
        crawler = SiteCrawler(options=fast_options(), fetcher=scenario_fetcher)
        result = await crawler.crawl_site(f"{BASE}/")

        assert [page.url for page in result.pages] == [f"{BASE}/", f"{BASE}/a", f"{BASE}/b"]
        assert result.crawled_pages == 3
        assert result.failed_pages == []
        assert f"{BASE}/private" not in scenario_fetcher.fetched
        assert result.total_pages == 3
        assert result.base_url == BASE
        assert result.sitemap_urls == [f"{BASE}/a", f"{BASE}/b"]
        assert result.robots_txt == "User-agent: *\nDisallow: /private"

    @pytest.mark.asyncio
    async def test_ignoring_robots_crawls_private(self, scenario_fetcher):
        """Test respect_robots_txt=False lets disallowed pages through."""
        options = fast_options(respect_robots_txt=False)
        result = await SiteCrawler(options=options, fetcher=scenario_fetcher).crawl_site(f"{BASE}/")

        assert f"{BASE}/private" in [page.url for page in result.pages]
        assert result.crawled_pages == 4

    @pytest.mark.asyncio
    async def test_disallowed_seed_is_skipped_not_failed(self, fake_fetcher):
        """Test a robots-excluded seed is silently dropped."""
        fetcher = fake_fetcher({f"{BASE}/": []}, robots_txt="User-agent: *\nDisallow: /")

        result = await crawl_site(f"{BASE}/", options=fast_options(), fetcher=fetcher)

        assert result.crawled_pages == 0
        assert result.failed_pages == []
        assert fetcher.fetched == []


class TestSiteCrawlerBudget:
    """Tests for page budget and frontier ceiling."""

    @pytest.fixture
    def large_site(self, fake_fetcher):
        """A site where every page links to 20 further pages."""
        site = {f"{BASE}/": [f"/p{i}" for i in range(20)]}
        for i in range(20):
            site[f"{BASE}/p{i}"] = [f"/p{i}/c{j}" for j in range(20)]
        return fake_fetcher(site)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_pages,concurrency", [(1, 3), (4, 3), (5, 2), (7, 10)])
    async def test_budget_invariant(self, large_site, max_pages, concurrency):
        """Test crawled <= max_pages and discovered <= 2 * max_pages."""
        options = fast_options(max_pages=max_pages, concurrency=concurrency)
        result = await SiteCrawler(options=options, fetcher=large_site).crawl_site(f"{BASE}/")

        assert result.crawled_pages == max_pages
        assert len(result.pages) <= max_pages
        assert result.total_pages <= 2 * max_pages
        assert len(large_site.fetched) <= max_pages

    @pytest.mark.asyncio
    async def test_no_duplicate_crawl(self, fake_fetcher):
        """Test URL variants differing only in slash or tracking params are crawled once."""
        fetcher = fake_fetcher({
            f"{BASE}/": ["/a", "/a/", "/a?utm_source=x", "/#top", "/b"],
            f"{BASE}/a": ["/", "/b?fbclid=1", "/A"],
            f"{BASE}/b": ["/a#frag"],
        })

        result = await SiteCrawler(options=fast_options(), fetcher=fetcher).crawl_site(f"{BASE}/")

        identities = [normalize_url(page.url) for page in result.pages]
        assert len(identities) == len(set(identities))
        assert identities == [BASE, f"{BASE}/a", f"{BASE}/b"]

    @pytest.mark.asyncio
    async def test_assets_and_external_links_not_crawled(self, fake_fetcher):
        """Test asset links and external links never reach the fetcher."""
        fetcher = fake_fetcher({f"{BASE}/": ["/logo.png", "/doc.pdf", "https://other.com/x", "/ok"],
                                f"{BASE}/ok": []})

        result = await SiteCrawler(options=fast_options(), fetcher=fetcher).crawl_site(f"{BASE}/")

        assert fetcher.fetched == [f"{BASE}/", f"{BASE}/ok"]
        assert result.crawled_pages == 2


class TestSiteCrawlerFailures:
    """Tests for fetch failure handling."""

    @pytest.mark.asyncio
    async def test_failure_recorded_once_and_crawl_continues(self, fake_fetcher):
        """Test a failing URL is recorded, not retried, and does not stop the crawl."""
        fetcher = fake_fetcher(
            {f"{BASE}/": ["/broken", "/ok"], f"{BASE}/ok": ["/broken"]},
            failing=[f"{BASE}/broken"],
        )

        result = await SiteCrawler(options=fast_options(), fetcher=fetcher).crawl_site(f"{BASE}/")

        assert result.failed_pages == [f"{BASE}/broken"]
        assert fetcher.fetched.count(f"{BASE}/broken") == 1
        assert [page.url for page in result.pages] == [f"{BASE}/", f"{BASE}/ok"]

    @pytest.mark.asyncio
    async def test_timeout_recorded_as_failure(self, fake_fetcher):
        """Test a fetch exceeding the per-page timeout is a failure."""
        fetcher = fake_fetcher(
            {f"{BASE}/": ["/slow", "/fast"], f"{BASE}/slow": [], f"{BASE}/fast": []},
            slow=[f"{BASE}/slow"],
        )
        options = fast_options(timeout=50)

        result = await SiteCrawler(options=options, fetcher=fetcher).crawl_site(f"{BASE}/")

        assert result.failed_pages == [f"{BASE}/slow"]
        assert [page.url for page in result.pages] == [f"{BASE}/", f"{BASE}/fast"]

    @pytest.mark.asyncio
    async def test_zero_pages_returned_not_raised(self, fake_fetcher):
        """Test an unreachable seed gives an empty result instead of an exception."""
        fetcher = fake_fetcher({}, failing=[f"{BASE}/"])

        result = await SiteCrawler(options=fast_options(), fetcher=fetcher).crawl_site(f"{BASE}/")

        assert result.crawled_pages == 0
        assert result.pages == []
        assert result.failed_pages == [f"{BASE}/"]

    @pytest.mark.asyncio
    async def test_robots_fetch_failure_treated_as_absent(self, fake_fetcher):
        """Test an error fetching robots.txt allows everything."""
        fetcher = fake_fetcher({f"{BASE}/": ["/a"], f"{BASE}/a": []})

        async def failing_robots(base_url):
            raise FetchError("boom", url=base_url)

        fetcher.fetch_robots_txt = failing_robots

        result = await SiteCrawler(options=fast_options(), fetcher=fetcher).crawl_site(f"{BASE}/")

        assert result.robots_txt is None
        assert result.crawled_pages == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start_url", ["ftp://example.com/", "example.com", "not a url"])
    async def test_invalid_start_url(self, fake_fetcher, start_url):
        """Test a non-http(s) start URL is rejected."""
        with pytest.raises(ValueError):
            await SiteCrawler(options=fast_options(), fetcher=fake_fetcher({})).crawl_site(start_url)


    @pytest.mark.asyncio
    async def test_malformed_link_recorded_as_failure(self):
        """Test a link httpx cannot request fails alone and the crawl finishes."""
        pages = {
            "/": '<html><body><a href="https://example.com:abc/x">Bad</a><a href="/ok">OK</a></body></html>',
            "/ok": "<html><body></body></html>",
        }

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path not in pages:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, text=pages[request.url.path], headers={"Content-Type": "text/html"})

        async with PageFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            result = await SiteCrawler(options=fast_options(), fetcher=fetcher).crawl_site(f"{BASE}/")

        assert [page.url for page in result.pages] == [f"{BASE}/", f"{BASE}/ok"]
        assert result.failed_pages == ["https://example.com:abc/x"]


class TestSiteCrawlerProgress:
    """Tests for the progress callback."""

    @pytest.mark.asyncio
    async def test_progress_called_per_page(self, fake_fetcher):
        """Test on_progress receives (index, max_pages, url) for each crawled page."""
        fetcher = fake_fetcher(
            {f"{BASE}/": ["/a", "/b", "/broken"], f"{BASE}/a": [], f"{BASE}/b": []},
            failing=[f"{BASE}/broken"],
        )
        calls = []

        await crawl_site(
            f"{BASE}/",
            options=fast_options(max_pages=5),
            on_progress=lambda i, total, url: calls.append((i, total, url)),
            fetcher=fetcher,
        )

        assert calls == [
            (1, 5, f"{BASE}/"),
            (2, 5, f"{BASE}/a"),
            (3, 5, f"{BASE}/b"),
        ]

    @pytest.mark.asyncio
    async def test_batches_respect_concurrency(self, fake_fetcher):
        """Test at most `concurrency` fetches are in flight at once."""
        site = {f"{BASE}/": [f"/p{i}" for i in range(8)]}
        site.update({f"{BASE}/p{i}": [] for i in range(8)})
        fetcher = fake_fetcher(site)
        in_flight = 0
        peak = 0
        original = fetcher.fetch_page

        async def tracking_fetch(url, timeout=30.0):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            try:
                return await original(url, timeout=timeout)
            finally:
                in_flight -= 1

        fetcher.fetch_page = tracking_fetch
        result = await SiteCrawler(options=fast_options(concurrency=3), fetcher=fetcher).crawl_site(f"{BASE}/")

        assert result.crawled_pages == 9
        assert peak <= 3


class TestSiteCrawlerPoliteness:
    """Tests for the delay between batches."""

    DELAY_MS = 200

    def timed_fetcher(self, fetcher):
        """Record the monotonic start time of every page fetch."""
        starts = []
        original = fetcher.fetch_page

        async def fetch_page(url, timeout=30.0):
            starts.append(time.monotonic())
            return await original(url, timeout=timeout)

        fetcher.fetch_page = fetch_page
        return starts

    @pytest.mark.asyncio
    async def test_delay_between_batches(self, fake_fetcher):
        """Test consecutive batches are separated by the politeness delay."""
        fetcher = fake_fetcher({f"{BASE}/": ["/a"], f"{BASE}/a": ["/b"], f"{BASE}/b": []})
        starts = self.timed_fetcher(fetcher)
        options = fast_options(concurrency=1, delay_ms=self.DELAY_MS)

        result = await SiteCrawler(options=options, fetcher=fetcher).crawl_site(f"{BASE}/")
        finished = time.monotonic()

        assert result.crawled_pages == 3
        gaps = [later - earlier for earlier, later in zip(starts, starts[1:])]
        assert all(gap >= self.DELAY_MS / 1000 * 0.9 for gap in gaps)
        # frontier is empty after the last batch, so no trailing sleep
        assert finished - starts[-1] < self.DELAY_MS / 1000

    @pytest.mark.asyncio
    async def test_no_delay_once_budget_spent(self, fake_fetcher):
        """Test the crawl returns without sleeping when max_pages is reached."""
        fetcher = fake_fetcher({f"{BASE}/": ["/a", "/b"], f"{BASE}/a": [], f"{BASE}/b": []})
        starts = self.timed_fetcher(fetcher)
        options = fast_options(max_pages=1, delay_ms=self.DELAY_MS)

        result = await SiteCrawler(options=options, fetcher=fetcher).crawl_site(f"{BASE}/")
        finished = time.monotonic()

        assert result.crawled_pages == 1
        assert len(starts) == 1
        assert finished - starts[0] < self.DELAY_MS / 1000


class TestSiteCrawlerFetcherChoice:
    """Tests for the fetcher created when none is injected."""

    def test_http_fetcher_by_default(self):
        """Test plain HTTP fetching is used unless rendering is requested."""
        fetcher = SiteCrawler(options=fast_options(user_agent="TestBot/1.0"))._create_fetcher()

        assert type(fetcher) is PageFetcher
        assert fetcher.user_agent == "TestBot/1.0"

    def test_browser_fetcher_uses_configured_browser(self):
        """Test render_js creates a browser fetcher with the options' browser config."""
        options = fast_options(render_js=True, browser_config=FAST_CONFIG)

        fetcher = SiteCrawler(options=options)._create_fetcher()

        assert isinstance(fetcher, BrowserPageFetcher)
        assert fetcher._config is FAST_CONFIG
