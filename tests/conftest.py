"""Shared fixtures: an in-memory fetcher and snapshot builders."""

import asyncio
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

import pytest

from seo_audit.crawler import FetchError
from seo_audit.models import LinkData, PageSnapshot


def make_snapshot(url: str, links: Iterable[str] = (), **fields) -> PageSnapshot:
    """Build a snapshot whose links are all internal to the site."""
    defaults = dict(
        status_code=200,
        html="<html></html>",
        load_time_ms=100,
        content_length=1024,
    )
    defaults.update(fields)
    return PageSnapshot(
        url=url,
        links=[LinkData(href=urljoin(url, href), is_internal=True) for href in links],
        **defaults,
    )


class FakeFetcher:
    """In-memory site: serves snapshots, robots.txt and sitemaps without network.

    ``site`` maps absolute URLs to the hrefs found on that page. URLs listed
    in ``failing`` raise FetchError; URLs in ``slow`` sleep past any timeout.
    """

    def __init__(
        self,
        site: Dict[str, List[str]],
        robots_txt: Optional[str] = None,
        sitemap: Optional[str] = None,
        texts: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
        slow: Iterable[str] = (),
    ):
        self.site = site
        self.robots_txt = robots_txt
        self.sitemap = sitemap
        self.texts = texts or {}
        self.failing = set(failing)
        self.slow = set(slow)
        self.fetched: List[str] = []
        self.text_requests: List[str] = []

    async def fetch_page(self, url: str, timeout: float = 30.0) -> PageSnapshot:
        self.fetched.append(url)
        if url in self.slow:
            await asyncio.sleep(5)
        if url in self.failing:
            raise FetchError(f"Connection error for {url}", url=url)
        if url not in self.site:
            raise FetchError(f"HTTP 404 for {url}", url=url, status_code=404)
        return make_snapshot(url, self.site[url])

    async def fetch_text(self, url: str, timeout: float = 10.0) -> Optional[str]:
        self.text_requests.append(url)
        return self.texts.get(url)

    async def fetch_robots_txt(self, base_url: str) -> Optional[str]:
        return self.robots_txt

    async def fetch_sitemap(self, base_url: str) -> Optional[str]:
        return self.sitemap


def urlset(*urls: str) -> str:
    entries = "".join(f"<url><loc>{url}</loc></url>" for url in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def sitemap_index(*urls: str) -> str:
    entries = "".join(f"<sitemap><loc>{url}</loc></sitemap>" for url in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )


@pytest.fixture
def fake_fetcher():
    """Factory for FakeFetcher instances."""
    return FakeFetcher


@pytest.fixture
def snapshot_factory():
    """Factory for PageSnapshot instances."""
    return make_snapshot


@pytest.fixture
def sitemap_xml():
    """Builders for <urlset> and <sitemapindex> documents."""
    return urlset, sitemap_index
