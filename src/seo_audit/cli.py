"""Command-line interface for the site SEO audit."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from seo_audit.analyzer import PageAnalyzer
from seo_audit.browser_config import FAST_CONFIG
from seo_audit.browser_crawler import BrowserPageFetcher
from seo_audit.config import Config, SiteCrawlOptions
from seo_audit.crawler import FetchError, PageFetcher
from seo_audit.logging_config import setup_logging
from seo_audit.models import PageAnalysis, SiteAnalysisResult
from seo_audit.site_analyzer import analyze_site
from seo_audit.site_crawler import SiteCrawler
from seo_audit.site_reporter import (
    format_page_report_as_json,
    format_page_report_as_text,
    format_site_report_as_json,
    format_site_report_as_text,
    generate_executive_summary,
)

logger = logging.getLogger(__name__)


class NoPagesCrawledError(Exception):
    """Raised by the CLI when a site crawl produced zero pages."""


async def _analyze_single_page(url: str, options: SiteCrawlOptions, depth: str) -> PageAnalysis:
    """Fetch one page and analyze it."""
    if options.render_js:
        fetcher = BrowserPageFetcher(config=options.browser_config, user_agent=options.user_agent)
    else:
        fetcher = PageFetcher(user_agent=options.user_agent)

    async with fetcher:
        snapshot = await fetcher.fetch_page(url, timeout=options.timeout_seconds)
    return PageAnalyzer(depth).analyze(snapshot)


async def _analyze_whole_site(url: str, options: SiteCrawlOptions, depth: str) -> SiteAnalysisResult:
    """Crawl a site, then analyze and aggregate every crawled page."""
    crawl_result = await SiteCrawler(options=options).crawl_site(url)
    if crawl_result.crawled_pages == 0:
        raise NoPagesCrawledError(
            f"No pages could be crawled from {url} ({len(crawl_result.failed_pages)} failed)"
        )
    return analyze_site(crawl_result, depth=depth)


def _write_output(output: str, output_file: Optional[str]) -> None:
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Results written to {output_file}")
    else:
        print(output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seo-audit",
        description="SEO Audit - Crawl a website and report on-page SEO quality",
    )
    parser.add_argument("url", help="URL to analyze (start URL in site mode)")
    parser.add_argument(
        "--site",
        action="store_true",
        help="Crawl and analyze the whole site instead of a single page",
    )
    parser.add_argument(
        "--depth",
        choices=["basic", "intermediate", "advanced", "all"],
        default="all",
        help="Which checks to run (default: all)",
    )
    parser.add_argument(
        "--format",
        "-o",
        dest="output_format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--executive",
        action="store_true",
        help="Print only the executive summary (site mode, text format)",
    )
    parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file instead of stdout",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        help="Maximum pages to crawl in site mode (default: 50, clamped to 1-500)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Parallel fetches per batch (default: 3)",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        help="Delay between batches in milliseconds (default: 500)",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        help="Per-page timeout in milliseconds (default: 30000)",
    )
    parser.add_argument(
        "--ignore-robots",
        action="store_true",
        help="Crawl URLs even if robots.txt disallows them",
    )
    parser.add_argument(
        "--render-js",
        action="store_true",
        help="Render pages in a headless browser (requires Playwright browsers)",
    )
    parser.add_argument(
        "--fast-render",
        action="store_true",
        help="Render pages in a headless browser, blocking images, fonts and media (implies --render-js)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    config = Config.from_env()

    setup_logging(level=args.log_level or config.log_level, log_file=args.log_file)

    try:
        options = config.to_crawl_options(
            max_pages=args.max_pages,
            concurrency=args.concurrency,
            delay_ms=args.delay_ms,
            timeout=args.timeout_ms,
            respect_robots_txt=False if args.ignore_robots else None,
            render_js=(args.render_js or args.fast_render) or None,
            browser_config=FAST_CONFIG if args.fast_render else None,
        )
    except ValueError as e:
        print(f"Error: invalid options: {e}", file=sys.stderr)
        return 2

    try:
        if args.site:
            report = asyncio.run(_analyze_whole_site(args.url, options, args.depth))
            if args.output_format == "json":
                output = format_site_report_as_json(report)
            elif args.executive:
                output = generate_executive_summary(report)
            else:
                output = format_site_report_as_text(report)
        else:
            analysis = asyncio.run(_analyze_single_page(args.url, options, args.depth))
            if args.output_format == "json":
                output = format_page_report_as_json(analysis)
            else:
                output = format_page_report_as_text(analysis)
    except NoPagesCrawledError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (FetchError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _write_output(output, args.output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
