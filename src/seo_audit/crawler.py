"""Page fetcher for extracting page snapshots used in SEO analysis."""

import json
import logging
import time
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from seo_audit.constants import (
    AUXILIARY_FETCH_TIMEOUT_SECONDS,
    DEFAULT_PAGE_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    NON_CRAWLABLE_PREFIXES,
)
from seo_audit.models import ImageData, LinkData, PageSnapshot
from seo_audit.url_frontier import is_same_domain

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a page cannot be fetched (timeout, network error, HTTP >= 400)."""
    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class PageFetcher:
    """Fetches pages over HTTP and extracts their SEO-relevant facts.

    Designed to be used as an async context manager so the underlying
    connection pool is closed when the crawl ends:

        async with PageFetcher() as fetcher:
            snapshot = await fetcher.fetch_page("https://example.com")
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the page fetcher.

        Args:
            user_agent: Custom user agent string (uses DEFAULT_USER_AGENT if None)
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "PageFetcher":
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "en-US,en;q=0.9",
                },
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_page(self, url: str, timeout: float = DEFAULT_PAGE_TIMEOUT_MS / 1000) -> PageSnapshot:
        """Fetch a single URL and extract its snapshot.

        Args:
            url: The URL to fetch
            timeout: Request timeout in seconds

        Returns:
            PageSnapshot with raw HTML and extracted facts

        Raises:
            FetchError: On timeout, network error, malformed URL, or HTTP status >= 400
        """
        client = self._get_client()
        start_time = time.monotonic()

        try:
            response = await client.get(url, timeout=timeout)
        except httpx.TimeoutException:
            raise FetchError(f"Request timeout after {timeout}s", url=url)
        except httpx.HTTPError as e:
            raise FetchError(f"Connection error: {e}", url=url)
        except httpx.InvalidURL as e:
            raise FetchError(f"Invalid URL: {e}", url=url)

        load_time_ms = int(round((time.monotonic() - start_time) * 1000))

        if response.status_code >= 400:
            raise FetchError(
                f"HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )

        return self._extract_snapshot(
            url=url,
            html=response.text,
            status_code=response.status_code,
            load_time_ms=load_time_ms,
            final_url=str(response.url),
        )

    async def fetch_text(self, url: str, timeout: float = AUXILIARY_FETCH_TIMEOUT_SECONDS) -> Optional[str]:
        """Fetch a text resource, returning None when it is unavailable.

        Never raises: any HTTP error or non-200 response counts as absent.
        """
        client = self._get_client()
        try:
            response = await client.get(url, timeout=timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info(f"Could not fetch {url}: {e}")
            return None

        if response.status_code != 200:
            logger.info(f"No content at {url} (status: {response.status_code})")
            return None
        return response.text

    async def fetch_robots_txt(self, base_url: str) -> Optional[str]:
        """Fetch robots.txt for a site, or None if absent."""
        return await self.fetch_text(urljoin(base_url, "/robots.txt"))

    async def fetch_sitemap(self, base_url: str) -> Optional[str]:
        """Fetch /sitemap.xml for a site, or None if absent."""
        return await self.fetch_text(urljoin(base_url, "/sitemap.xml"))

    def _extract_snapshot(
        self,
        url: str,
        html: str,
        status_code: int,
        load_time_ms: int,
        final_url: Optional[str] = None,
    ) -> PageSnapshot:
        """Extract a PageSnapshot from HTML content.

        Args:
            url: The requested page URL
            html: HTML content
            status_code: HTTP status code
            load_time_ms: Page load time in milliseconds
            final_url: URL after redirects

        Returns:
            PageSnapshot with extracted information
        """
        soup = BeautifulSoup(html, "html.parser")
        page_url = final_url or url

        # Title
        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else None

        # Meta tags
        meta_description = _meta_content(soup, name="description")
        robots_meta = _meta_content(soup, name="robots")
        viewport = _meta_content(soup, name="viewport")

        canonical_tag = soup.find("link", rel="canonical")
        canonical = canonical_tag.get("href") if canonical_tag else None

        html_tag = soup.find("html")
        language = html_tag.get("lang") if html_tag else None

        # Charset
        charset = None
        charset_tag = soup.find("meta", charset=True)
        if charset_tag:
            charset = charset_tag.get("charset")
        else:
            content_type_tag = soup.find("meta", attrs={"http-equiv": lambda v: v and v.lower() == "content-type"})
            if content_type_tag:
                content = content_type_tag.get("content", "")
                if "charset=" in content:
                    charset = content.split("charset=")[-1].split(";")[0].strip()

        headings = {
            f"h{level}": [h.get_text(strip=True) for h in soup.find_all(f"h{level}")]
            for level in range(1, 7)
        }

        images = [
            ImageData(
                src=urljoin(page_url, img["src"]),
                alt=img.get("alt"),
                width=img.get("width"),
                height=img.get("height"),
                loading=img.get("loading"),
            )
            for img in soup.find_all("img", src=True)
        ]

        links = self._extract_links(soup, page_url)

        # Open Graph
        open_graph = {}
        for meta in soup.find_all("meta", property=True):
            if meta.get("property", "").startswith("og:"):
                open_graph[meta["property"]] = meta.get("content", "")

        # Twitter Card
        twitter_card = {}
        for meta in soup.find_all("meta", attrs={"name": lambda x: x and x.startswith("twitter:")}):
            twitter_card[meta["name"]] = meta.get("content", "")

        return PageSnapshot(
            url=url,
            status_code=status_code,
            html=html,
            load_time_ms=load_time_ms,
            content_length=len(html.encode("utf-8")),
            links=links,
            final_url=final_url,
            title=title or None,
            meta_description=meta_description or None,
            canonical=canonical,
            robots_meta=robots_meta,
            language=language,
            charset=charset,
            viewport=viewport,
            headings=headings,
            images=images,
            open_graph=open_graph,
            twitter_card=twitter_card,
            structured_data_types=_structured_data_types(soup),
            render_blocking_resources=_render_blocking_resources(soup),
        )

    def _extract_links(self, soup: BeautifulSoup, page_url: str) -> list[LinkData]:
        page_host = urlparse(page_url).hostname or ""
        links = []

        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or href.lower().startswith(NON_CRAWLABLE_PREFIXES):
                continue

            absolute_url = urljoin(page_url, href)
            try:
                parsed = urlparse(absolute_url)
            except ValueError:
                continue
            if parsed.scheme not in ("http", "https"):
                continue

            links.append(LinkData(
                href=absolute_url,
                text=anchor.get_text(strip=True),
                is_internal=is_same_domain(parsed.hostname, page_host),
                is_nofollow="nofollow" in (anchor.get("rel") or []),
                target=anchor.get("target"),
            ))

        return links


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"name": lambda v: v and v.lower() == name})
    return tag.get("content") if tag else None


def _structured_data_types(soup: BeautifulSoup) -> list[str]:
    """Collect @type values from JSON-LD blocks."""
    types = []
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, ValueError):
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            nodes = graph if isinstance(graph, list) else [item]
            for node in nodes:
                if not isinstance(node, dict):
                    continue
                node_type = node.get("@type", "Unknown")
                if isinstance(node_type, list):
                    types.extend(str(t) for t in node_type)
                else:
                    types.append(str(node_type))
    return types


def _render_blocking_resources(soup: BeautifulSoup) -> list[str]:
    """Stylesheets and synchronous scripts in <head>."""
    head = soup.find("head")
    if not head:
        return []

    blocking = []
    for link in head.find_all("link", rel="stylesheet", href=True):
        media = link.get("media")
        if not media or media in ("all", "screen"):
            blocking.append(link["href"])

    for script in head.find_all("script", src=True):
        if not script.has_attr("async") and not script.has_attr("defer"):
            blocking.append(script["src"])

    return blocking
