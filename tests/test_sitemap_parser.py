# tests/test_sitemap_parser.py
"""Tests for the sitemap resolver."""

import httpx
import pytest

from seo_audit.crawler import PageFetcher
from seo_audit.sitemap_parser import SitemapResolver

BASE = "https://example.com"


class TestSitemapResolver:
    """Test suite for SitemapResolver."""

    @pytest.mark.asyncio
    async def test_urlset(self, fake_fetcher, sitemap_xml):
        """Test page URLs are returned in sitemap order."""
        urlset, _ = sitemap_xml
        fetcher = fake_fetcher({}, sitemap=urlset(f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"))

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10)

        assert urls == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"]

    @pytest.mark.asyncio
    async def test_other_domains_filtered(self, fake_fetcher, sitemap_xml):
        """Test URLs outside the site are dropped and www is accepted."""
        urlset, _ = sitemap_xml
        fetcher = fake_fetcher({}, sitemap=urlset(
            f"{BASE}/a",
            "https://other.com/x",
            "https://www.example.com/b",
        ))

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10)

        assert urls == [f"{BASE}/a", "https://www.example.com/b"]

    @pytest.mark.asyncio
    async def test_max_urls(self, fake_fetcher, sitemap_xml):
        """Test at most max_urls URLs are returned."""
        urlset, _ = sitemap_xml
        fetcher = fake_fetcher({}, sitemap=urlset(*[f"{BASE}/p{i}" for i in range(10)]))

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=3)

        assert urls == [f"{BASE}/p0", f"{BASE}/p1", f"{BASE}/p2"]

    @pytest.mark.asyncio
    async def test_sitemap_index_flattened(self, fake_fetcher, sitemap_xml):
        """Test child sitemaps of an index are fetched and de-duplicated."""
        urlset, sitemap_index = sitemap_xml
        fetcher = fake_fetcher(
            {},
            sitemap=sitemap_index(f"{BASE}/sitemap-1.xml", f"{BASE}/sitemap-2.xml"),
            texts={
                f"{BASE}/sitemap-1.xml": urlset(f"{BASE}/a", f"{BASE}/b"),
                f"{BASE}/sitemap-2.xml": urlset(f"{BASE}/b", f"{BASE}/c"),
            },
        )

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10)

        assert urls == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"]
        assert fetcher.text_requests == [f"{BASE}/sitemap-1.xml", f"{BASE}/sitemap-2.xml"]

    @pytest.mark.asyncio
    async def test_index_child_limit(self, fake_fetcher, sitemap_xml):
        """Test no more than max_child_sitemaps children are fetched."""
        _, sitemap_index = sitemap_xml
        children = [f"{BASE}/sitemap-{i}.xml" for i in range(20)]
        fetcher = fake_fetcher({}, sitemap=sitemap_index(*children))

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=100)

        assert urls == []
        assert fetcher.text_requests == children[:15]

    @pytest.mark.asyncio
    async def test_index_stops_at_max_urls(self, fake_fetcher, sitemap_xml):
        """Test child fetching stops once enough URLs are collected."""
        urlset, sitemap_index = sitemap_xml
        fetcher = fake_fetcher(
            {},
            sitemap=sitemap_index(f"{BASE}/s1.xml", f"{BASE}/s2.xml"),
            texts={
                f"{BASE}/s1.xml": urlset(f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"),
                f"{BASE}/s2.xml": urlset(f"{BASE}/d"),
            },
        )

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=2)

        assert urls == [f"{BASE}/a", f"{BASE}/b"]
        assert fetcher.text_requests == [f"{BASE}/s1.xml"]

    @pytest.mark.asyncio
    async def test_missing_sitemap(self, fake_fetcher):
        """Test an absent sitemap yields no URLs."""
        fetcher = fake_fetcher({}, sitemap=None)
        assert await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10) == []

    @pytest.mark.asyncio
    async def test_malformed_xml(self, fake_fetcher):
        """Test malformed XML yields no URLs instead of raising."""
        fetcher = fake_fetcher({}, sitemap="<urlset><url><loc>https://example.com/a</loc>")
        assert await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10) == []

    @pytest.mark.asyncio
    async def test_unknown_root(self, fake_fetcher):
        """Test a document that is neither urlset nor index yields no URLs."""
        fetcher = fake_fetcher({}, sitemap="<rss><channel></channel></rss>")
        assert await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10) == []

    @pytest.mark.asyncio
    async def test_fetch_error_degrades(self, fake_fetcher):
        """Test a network error while fetching the sitemap yields no URLs."""
        fetcher = fake_fetcher({})

        async def failing_fetch_sitemap(base_url):
            raise httpx.ConnectError("connection refused")

        fetcher.fetch_sitemap = failing_fetch_sitemap
        assert await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10) == []

    @pytest.mark.asyncio
    async def test_html_wrapped_sitemap(self, fake_fetcher, sitemap_xml):
        """Test a sitemap wrapped in HTML is still parsed."""
        urlset, _ = sitemap_xml
        inner = urlset(f"{BASE}/a").split("?>", 1)[1]
        fetcher = fake_fetcher({}, sitemap=f"<html><body>{inner}</body></html>")

        urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10)

        assert urls == [f"{BASE}/a"]

    @pytest.mark.asyncio
    async def test_malformed_child_location_skipped(self, sitemap_xml):
        """Test an index child with an unusable URL is skipped over HTTP."""
        urlset, sitemap_index = sitemap_xml
        routes = {
            "/sitemap.xml": sitemap_index("https://example.com:abc/s.xml", f"{BASE}/pages.xml"),
            "/pages.xml": urlset(f"{BASE}/a"),
        }

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path not in routes:
                return httpx.Response(404)
            return httpx.Response(200, text=routes[request.url.path])

        async with PageFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            urls = await SitemapResolver(fetcher).resolve(BASE, "example.com", max_urls=10)

        assert urls == [f"{BASE}/a"]
