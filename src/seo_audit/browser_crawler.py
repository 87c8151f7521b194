"""
Browser-based page fetcher using Playwright for JavaScript-rendered content.

BrowserPageFetcher renders each page in an isolated browser context and
extracts the same PageSnapshot as the HTTP fetcher. robots.txt and sitemap
requests still go over plain HTTP.
"""
import logging
import time
from typing import Optional

from seo_audit.browser_config import DEFAULT_CONFIG, BrowserConfig
from seo_audit.crawler import FetchError, PageFetcher
from seo_audit.models import PageSnapshot

logger = logging.getLogger(__name__)


class BrowserPageFetcher(PageFetcher):
    """
    Playwright-based fetcher for JavaScript-rendered websites.

    Must be used as an async context manager, which manages the browser
    lifecycle:

        async with BrowserPageFetcher() as fetcher:
            snapshot = await fetcher.fetch_page("https://example.com")
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        user_agent: Optional[str] = None,
        **kwargs,
    ):
        """
        Initialize the browser fetcher.

        Args:
            config: BrowserConfig instance (DEFAULT_CONFIG if None)
            user_agent: Custom user agent string
            **kwargs: Passed to PageFetcher
        """
        super().__init__(user_agent=user_agent, **kwargs)
        self._config = config or DEFAULT_CONFIG
        self._playwright = None
        self._browser = None

    async def __aenter__(self) -> "BrowserPageFetcher":
        """Enter async context manager, launching browser."""
        from playwright.async_api import async_playwright

        await super().__aenter__()

        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")
        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self._config.browser_type)

        launch_options = {"headless": self._config.headless}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args

        self._browser = await browser_launcher.launch(**launch_options)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager, closing browser."""
        if self._browser:
            logger.info("Closing browser")
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        await super().__aexit__(exc_type, exc_val, exc_tb)

    async def fetch_page(self, url: str, timeout: Optional[float] = None) -> PageSnapshot:
        """
        Render a URL in the browser and extract its snapshot.

        Each call uses an isolated browser context.

        Args:
            url: URL to fetch
            timeout: Navigation timeout in seconds (config timeout if None)

        Returns:
            PageSnapshot of the rendered page

        Raises:
            RuntimeError: If browser is not running (not in context manager)
            FetchError: If navigation fails or returns HTTP status >= 400
        """
        from playwright.async_api import Error as PlaywrightError

        if not self._browser:
            raise RuntimeError(
                "Browser is not running. Use BrowserPageFetcher as an async context manager: "
                "async with BrowserPageFetcher() as fetcher:"
            )

        timeout_ms = int(timeout * 1000) if timeout else self._config.timeout
        context = await self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            user_agent=self.user_agent,
        )

        try:
            page = await context.new_page()

            if self._config.block_resources:
                blocked = set(self._config.block_resources)
                await page.route(
                    "**/*",
                    lambda route: (
                        route.abort()
                        if route.request.resource_type in blocked
                        else route.continue_()
                    )
                )

            start_time = time.monotonic()
            response = await page.goto(url, wait_until=self._config.wait_until, timeout=timeout_ms)
            load_time_ms = int(round((time.monotonic() - start_time) * 1000))

            status_code = response.status if response else 0
            if status_code >= 400:
                raise FetchError(f"HTTP {status_code} for {url}", url=url, status_code=status_code)

            html = await page.content()
            return self._extract_snapshot(
                url=url,
                html=html,
                status_code=status_code,
                load_time_ms=load_time_ms,
                final_url=page.url,
            )

        except PlaywrightError as e:
            raise FetchError(f"Navigation failed: {e}", url=url)

        finally:
            # Always close context to ensure isolation
            await context.close()
