"""Site-wide SEO aggregation across all crawled pages."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from seo_audit.analyzer import PageAnalyzer
from seo_audit.constants import (
    FAIL_ESCALATION_PERCENT,
    MAX_ISSUE_EXAMPLES,
    PRIORITY_ORDER,
    SITE_WIDE_THRESHOLD_PERCENT,
    WARNING_ESCALATION_PERCENT,
)
from seo_audit.models import (
    AnalysisDepth,
    CrawlStats,
    IssueExample,
    PageAnalysis,
    Recommendations,
    SEOIssue,
    SiteAnalysisResult,
    SiteCrawlResult,
    SiteScores,
    SiteSummary,
    SiteWideIssue,
    TechnicalDetails,
)
from seo_audit.scoring import calculate_category_score, calculate_overall_score, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class _IssueGroup:
    """All occurrences of one category:check:status across pages."""

    issue: SEOIssue
    examples: List[IssueExample] = field(default_factory=list)


class SiteAggregator:
    """Rolls per-page analyses up into a single site-level result.

    Holds no state between calls; each ``aggregate`` call only reads its
    arguments.
    """

    def aggregate(
        self,
        page_analyses: List[PageAnalysis],
        crawl_result: SiteCrawlResult,
        depth: AnalysisDepth = "all",
    ) -> SiteAnalysisResult:
        """Aggregate page analyses into a site analysis.

        Args:
            page_analyses: One analysis per crawled page
            crawl_result: The crawl these pages came from (for crawl
                statistics and technical details)
            depth: Analysis depth the pages were analyzed with

        Returns:
            SiteAnalysisResult with ranked site-wide issues, scores,
            summary counts and recommendations
        """
        groups = self._group_issues(page_analyses)
        site_wide_issues = self._build_site_wide_issues(groups, len(page_analyses))

        logger.info(
            f"Aggregated {len(page_analyses)} pages into {len(site_wide_issues)} site-level issues"
        )

        return SiteAnalysisResult(
            base_url=crawl_result.base_url,
            analyzed_at=datetime.now(timezone.utc).isoformat(),
            depth=depth,
            crawl_stats=CrawlStats(
                total_discovered=crawl_result.total_pages,
                total_crawled=crawl_result.crawled_pages,
                failed_pages=len(crawl_result.failed_pages),
                crawl_duration=crawl_result.crawl_duration,
            ),
            scores=self._calculate_scores(page_analyses, site_wide_issues),
            summary=self._calculate_summary(site_wide_issues, page_analyses),
            site_wide_issues=site_wide_issues,
            page_analyses=list(page_analyses),
            recommendations=self._generate_recommendations(site_wide_issues),
            technical_details=self._calculate_technical_details(crawl_result),
        )

    def _group_issues(self, page_analyses: List[PageAnalysis]) -> Dict[str, _IssueGroup]:
        # dict keeps first-seen order, which is the tie-break for ranking
        groups: Dict[str, _IssueGroup] = {}
        for analysis in page_analyses:
            for issue in analysis.issues:
                key = f"{issue.category}:{issue.check_name}:{issue.status}"
                group = groups.get(key)
                if group is None:
                    group = groups[key] = _IssueGroup(issue=issue)
                group.examples.append(IssueExample(url=analysis.url, value=issue.current_value))
        return groups

    def _build_site_wide_issues(
        self, groups: Dict[str, _IssueGroup], total_pages: int
    ) -> List[SiteWideIssue]:
        site_wide_issues = []
        for group in groups.values():
            issue = group.issue
            affected = len(group.examples)
            if issue.status == "pass" and affected == total_pages:
                continue

            percentage = round_half_up(affected / total_pages * 100)
            issue_type = "site-wide" if percentage >= SITE_WIDE_THRESHOLD_PERCENT else "page-specific"

            priority = issue.priority
            if issue.status == "fail" and percentage >= FAIL_ESCALATION_PERCENT:
                priority = "high"
            elif issue.status == "warning" and percentage >= WARNING_ESCALATION_PERCENT:
                priority = "medium"

            site_wide_issues.append(SiteWideIssue(
                category=issue.category,
                check_name=issue.check_name,
                status=issue.status,
                issue_type=issue_type,
                affected_pages=affected,
                total_pages=total_pages,
                percentage=percentage,
                priority=priority,
                description=describe_site_wide_issue(issue, affected, total_pages, percentage),
                recommendation=issue.recommendation,
                examples=group.examples[:MAX_ISSUE_EXAMPLES],
                reference_url=issue.reference_url,
            ))

        # sorted() is stable, so equal keys keep discovery order
        return sorted(
            site_wide_issues,
            key=lambda i: (PRIORITY_ORDER[i.priority], -i.percentage),
        )

    def _calculate_scores(
        self, page_analyses: List[PageAnalysis], site_wide_issues: List[SiteWideIssue]
    ) -> SiteScores:
        category_scores = {
            category: calculate_category_score(
                i.percentage for i in site_wide_issues if i.category == category
            )
            for category in ("basic", "intermediate", "advanced")
        }

        page_scores = [analysis.score for analysis in page_analyses]
        if page_scores:
            average = round_half_up(sum(page_scores) / len(page_scores))
            lowest, highest = min(page_scores), max(page_scores)
        else:
            average = lowest = highest = 100

        return SiteScores(
            overall=calculate_overall_score(category_scores),
            basic=category_scores["basic"],
            intermediate=category_scores["intermediate"],
            advanced=category_scores["advanced"],
            average_page_score=average,
            lowest_page_score=lowest,
            highest_page_score=highest,
        )

    def _calculate_summary(
        self, site_wide_issues: List[SiteWideIssue], page_analyses: List[PageAnalysis]
    ) -> SiteSummary:
        return SiteSummary(
            total_issues=len(site_wide_issues),
            site_wide_issues=sum(1 for i in site_wide_issues if i.issue_type == "site-wide"),
            critical_issues=sum(1 for i in site_wide_issues if i.priority == "high"),
            warnings=sum(1 for i in site_wide_issues if i.priority == "medium"),
            passed=sum(
                1 for analysis in page_analyses for issue in analysis.issues if issue.status == "pass"
            ),
        )

    def _generate_recommendations(self, site_wide_issues: List[SiteWideIssue]) -> Recommendations:
        buckets: Dict[str, List[str]] = {"high": [], "medium": [], "low": []}
        for issue in site_wide_issues:
            buckets[issue.priority].append(format_recommendation(issue))
        return Recommendations(
            critical=buckets["high"],
            important=buckets["medium"],
            suggestions=buckets["low"],
        )

    def _calculate_technical_details(self, crawl_result: SiteCrawlResult) -> TechnicalDetails:
        pages = crawl_result.pages
        https_pages = sum(1 for page in pages if page.is_https)
        average_load_time = (
            round_half_up(sum(page.load_time_ms for page in pages) / len(pages)) if pages else 0
        )
        return TechnicalDetails(
            has_robots_txt=crawl_result.robots_txt is not None,
            has_sitemap=bool(crawl_result.sitemap_urls),
            sitemap_url_count=len(crawl_result.sitemap_urls),
            https_pages=https_pages,
            http_pages=len(pages) - https_pages,
            average_load_time=average_load_time,
            total_page_size=sum(page.content_length for page in pages),
        )


def describe_site_wide_issue(
    issue: SEOIssue, affected_pages: int, total_pages: int, percentage: int
) -> str:
    """Human-readable description of how widespread a check outcome is."""
    if issue.status == "pass":
        if affected_pages == total_pages:
            return f"All {total_pages} pages pass this check"
        return f"{affected_pages} of {total_pages} pages ({percentage}%) pass this check"

    status_text = "fail" if issue.status == "fail" else "have issues with"
    if affected_pages == total_pages:
        return f"All {total_pages} pages {status_text} this check: {issue.description}"
    return f"{affected_pages} of {total_pages} pages ({percentage}%) {status_text}: {issue.description}"


def format_recommendation(issue: SiteWideIssue) -> str:
    """Render a site-wide issue as a recommendation line with its scope prefix."""
    if issue.issue_type == "site-wide":
        prefix = f"[Site-wide: {issue.percentage}% of pages]"
    else:
        prefix = f"[{issue.affected_pages} pages]"
    return f"{prefix} [{issue.check_name}] {issue.recommendation}"


def analyze_site(
    crawl_result: SiteCrawlResult,
    depth: AnalysisDepth = "all",
    analyzer: Optional[PageAnalyzer] = None,
) -> SiteAnalysisResult:
    """Analyze every crawled page and aggregate the results.

    Args:
        crawl_result: Result of a site crawl
        depth: Analysis depth ('basic', 'intermediate', 'advanced', 'all')
        analyzer: Optional per-page analyzer (one for ``depth`` if None)

    Returns:
        SiteAnalysisResult for the crawl
    """
    analyzer = analyzer or PageAnalyzer(depth)
    page_analyses = [analyzer.analyze(page) for page in crawl_result.pages]
    return SiteAggregator().aggregate(page_analyses, crawl_result, depth=depth)
