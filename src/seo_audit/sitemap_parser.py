"""Sitemap resolver: flattens sitemap.xml (or a sitemap index) into page URLs."""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse
from xml.etree import ElementTree as ET

import httpx

from seo_audit.constants import MAX_CHILD_SITEMAPS
from seo_audit.crawler import FetchError
from seo_audit.url_frontier import is_same_domain

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.split('}')[-1] if '}' in tag else tag


class SitemapResolver:
    """
    Resolve a site's sitemap into same-domain page URLs.

    Supports:
    - Standard sitemap.xml files (<urlset>)
    - Sitemap index files (<sitemapindex>), fanning out to a bounded
      number of child sitemaps

    Any failure (missing sitemap, network error, malformed XML) yields an
    empty list so the crawl falls back to link discovery.
    """

    def __init__(self, fetcher, max_child_sitemaps: int = MAX_CHILD_SITEMAPS):
        """
        Initialize the sitemap resolver.

        Args:
            fetcher: Object providing ``fetch_sitemap(base_url)`` and
                ``fetch_text(url)`` coroutines returning text or None
            max_child_sitemaps: Child sitemaps fetched from an index
        """
        self._fetcher = fetcher
        self.max_child_sitemaps = max_child_sitemaps

    async def resolve(self, base_url: str, domain: str, max_urls: int) -> List[str]:
        """
        Fetch /sitemap.xml and return up to ``max_urls`` page URLs.

        Args:
            base_url: Site root (scheme and host)
            domain: Base domain used for same-site filtering
            max_urls: Maximum number of URLs to return

        Returns:
            Page URLs in sitemap order, filtered to the site
        """
        content = await self._fetch(self._fetcher.fetch_sitemap, base_url)
        if not content:
            logger.info(f"No sitemap found for {base_url}")
            return []

        root = self._parse_xml(content)
        if root is None:
            return []

        root_tag = _local_name(root.tag)
        if root_tag == 'sitemapindex':
            urls = await self._resolve_index(root, domain, max_urls)
        elif root_tag == 'urlset':
            urls = self._page_urls(root, domain)[:max_urls]
        else:
            logger.warning(f"Unknown sitemap root element: {root_tag}")
            return []

        logger.info(f"Extracted {len(urls)} URLs from sitemap(s)")
        return urls

    async def _resolve_index(self, root: ET.Element, domain: str, max_urls: int) -> List[str]:
        """Fetch child sitemaps of an index sequentially and flatten them."""
        child_locs = self._locations(root, 'sitemap')[:self.max_child_sitemaps]
        urls: List[str] = []
        seen = set()

        for child_url in child_locs:
            if len(urls) >= max_urls:
                break

            logger.info(f"Fetching child sitemap: {child_url}")
            content = await self._fetch(self._fetcher.fetch_text, child_url)
            if not content:
                continue

            child_root = self._parse_xml(content)
            if child_root is None or _local_name(child_root.tag) != 'urlset':
                continue

            for url in self._page_urls(child_root, domain):
                if len(urls) >= max_urls:
                    break
                if url not in seen:
                    seen.add(url)
                    urls.append(url)

        return urls

    async def _fetch(self, fetch, url: str) -> Optional[str]:
        try:
            return await fetch(url)
        except (FetchError, httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to fetch sitemap {url}: {e}")
            return None

    def _page_urls(self, root: ET.Element, domain: str) -> List[str]:
        """Extract same-site page URLs from a <urlset>."""
        urls: List[str] = []
        seen = set()
        for url in self._locations(root, 'url'):
            try:
                hostname = urlparse(url).hostname
            except ValueError:
                continue
            if is_same_domain(hostname, domain) and url not in seen:
                seen.add(url)
                urls.append(url)
        return urls

    @staticmethod
    def _locations(root: ET.Element, entry_tag: str) -> List[str]:
        """Return the <loc> text of each direct <entry_tag> child."""
        locations = []
        for entry in root:
            if _local_name(entry.tag) != entry_tag:
                continue
            for child in entry:
                if _local_name(child.tag) == 'loc' and child.text and child.text.strip():
                    locations.append(child.text.strip())
                    break
        return locations

    def _parse_xml(self, content: str) -> Optional[ET.Element]:
        """Parse sitemap XML, returning None when it is malformed."""
        try:
            return ET.fromstring(self._clean_xml_content(content))
        except ET.ParseError as e:
            logger.warning(f"Failed to parse sitemap XML: {e}")
            return None

    def _clean_xml_content(self, content: str) -> str:
        """Clean XML content by removing any HTML wrapper."""
        content = content.strip()

        # Remove DOCTYPE if present
        content = re.sub(r'<!DOCTYPE[^>]*>', '', content)

        # Remove HTML tags if the XML is wrapped
        if '<html' in content.lower():
            match = re.search(
                r'(<(?:urlset|sitemapindex).*?</(?:urlset|sitemapindex)>)',
                content,
                re.DOTALL,
            )
            if match:
                return match.group(1)

        return content
