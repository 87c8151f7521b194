"""Text and JSON rendering of site and page SEO reports."""

import json
from dataclasses import asdict
from datetime import datetime
from typing import List

from seo_audit.constants import (
    GRADE_THRESHOLDS,
    REPORT_BEST_PAGES_LIMIT,
    REPORT_SITE_WIDE_DETAIL_LIMIT,
    REPORT_SUGGESTION_LIMIT,
    REPORT_WIDTH,
    REPORT_WORST_PAGES_LIMIT,
)
from seo_audit.models import PageAnalysis, SiteAnalysisResult

STATUS_ICONS = {
    "pass": "✓",
    "fail": "✗",
    "warning": "⚠",
    "info": "ℹ",
}

PRIORITY_ICONS = {
    "high": "✗",
    "medium": "⚠",
    "low": "ℹ",
}


def get_score_bar(score: int, length: int = 20) -> str:
    """Visual bar for a 0-100 score, e.g. [██████░░░░]."""
    filled = int(score / 100 * length + 0.5)
    return f"[{'█' * filled}{'░' * (length - filled)}]"


def get_grade(score: int) -> str:
    """Letter grade for a score."""
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def truncate_url(url: str, max_length: int = 60) -> str:
    if len(url) <= max_length:
        return url
    return url[:max_length - 3] + "..."


def _section(lines: List[str], title: str, char: str = "─") -> None:
    lines.append(char * REPORT_WIDTH)
    lines.append(title.center(REPORT_WIDTH).rstrip())
    lines.append(char * REPORT_WIDTH)
    lines.append("")


def _format_timestamp(iso_timestamp: str) -> str:
    try:
        return datetime.fromisoformat(iso_timestamp).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    except ValueError:
        return iso_timestamp


def format_site_report_as_text(report: SiteAnalysisResult) -> str:
    """Render a site analysis as a human-readable text report.

    Args:
        report: Result of a site analysis

    Returns:
        Multi-line report ending with the one-line summary
    """
    lines: List[str] = []
    stats = report.crawl_stats
    scores = report.scores
    technical = report.technical_details
    summary = report.summary

    _section(lines, "SITE-WIDE SEO ANALYSIS REPORT", "═")
    lines.append(f"Website:     {report.base_url}")
    lines.append(f"Analyzed:    {_format_timestamp(report.analyzed_at)}")
    lines.append(f"Depth:       {report.depth}")
    lines.append("")

    _section(lines, "CRAWL STATISTICS")
    lines.append(f"  Pages Discovered:  {stats.total_discovered}")
    lines.append(f"  Pages Crawled:     {stats.total_crawled}")
    lines.append(f"  Failed Pages:      {stats.failed_pages}")
    lines.append(f"  Crawl Duration:    {stats.crawl_duration / 1000:.1f}s")
    lines.append("")

    _section(lines, "OVERALL SCORES")
    lines.append(
        f"  Overall Score:     {get_score_bar(scores.overall)} {scores.overall}/100 ({get_grade(scores.overall)})"
    )
    lines.append("")
    lines.append(f"  Basic SEO:         {get_score_bar(scores.basic)} {scores.basic}/100")
    lines.append(f"  Intermediate SEO:  {get_score_bar(scores.intermediate)} {scores.intermediate}/100")
    lines.append(f"  Advanced SEO:      {get_score_bar(scores.advanced)} {scores.advanced}/100")
    lines.append("")
    lines.append("  Page Scores:")
    lines.append(f"    Average:         {scores.average_page_score}/100")
    lines.append(f"    Highest:         {scores.highest_page_score}/100")
    lines.append(f"    Lowest:          {scores.lowest_page_score}/100")
    lines.append("")

    _section(lines, "TECHNICAL OVERVIEW")
    lines.append(f"  robots.txt:        {'✓ Present' if technical.has_robots_txt else '✗ Missing'}")
    if technical.has_sitemap:
        lines.append(f"  XML Sitemap:       ✓ Present ({technical.sitemap_url_count} URLs)")
    else:
        lines.append("  XML Sitemap:       ✗ Missing")
    https_share = round(technical.https_pages / stats.total_crawled * 100) if stats.total_crawled else 0
    lines.append(
        f"  HTTPS Usage:       {technical.https_pages}/{stats.total_crawled} pages ({https_share}%)"
    )
    lines.append(f"  Avg Load Time:     {technical.average_load_time}ms")
    lines.append(f"  Total Page Size:   {format_bytes(technical.total_page_size)}")
    lines.append("")

    _section(lines, "SUMMARY")
    lines.append(f"  Total Issues Found:   {summary.total_issues}")
    lines.append(f"  Site-Wide Issues:     {summary.site_wide_issues}")
    lines.append(f"  ✗ Critical Issues:    {summary.critical_issues}")
    lines.append(f"  ⚠ Warnings:           {summary.warnings}")
    lines.append(f"  ✓ Checks Passed:      {summary.passed}")
    lines.append("")

    recommendations = report.recommendations
    if recommendations.critical:
        _section(lines, "CRITICAL ISSUES (Fix Immediately)")
        lines.extend(f"  {i}. {rec}" for i, rec in enumerate(recommendations.critical, 1))
        lines.append("")

    if recommendations.important:
        _section(lines, "IMPORTANT ISSUES (Should Fix)")
        lines.extend(f"  {i}. {rec}" for i, rec in enumerate(recommendations.important, 1))
        lines.append("")

    if recommendations.suggestions:
        _section(lines, "SUGGESTIONS (Nice to Have)")
        shown = recommendations.suggestions[:REPORT_SUGGESTION_LIMIT]
        lines.extend(f"  {i}. {rec}" for i, rec in enumerate(shown, 1))
        hidden = len(recommendations.suggestions) - len(shown)
        if hidden > 0:
            lines.append(f"  ... and {hidden} more suggestions")
        lines.append("")

    _section(lines, "SITE-WIDE ISSUES DETAIL")
    site_wide_only = [i for i in report.site_wide_issues if i.issue_type == "site-wide"]
    if not site_wide_only:
        lines.append("  No site-wide issues found. Issues are page-specific.")
    for issue in site_wide_only[:REPORT_SITE_WIDE_DETAIL_LIMIT]:
        lines.append(f"  {PRIORITY_ICONS[issue.priority]} [{issue.category.upper()}] {issue.check_name}")
        lines.append(
            f"     Affected: {issue.affected_pages}/{issue.total_pages} pages ({issue.percentage}%)"
        )
        lines.append(f"     {issue.description}")
        lines.append(f"     → {issue.recommendation}")
        if issue.examples:
            lines.append("     Examples:")
            for example in issue.examples[:3]:
                lines.append(f"       - {truncate_url(example.url, 50)}")
        lines.append("")

    _section(lines, "PAGES NEEDING ATTENTION")
    worst_pages = sorted(report.page_analyses, key=lambda p: p.score)[:REPORT_WORST_PAGES_LIMIT]
    if worst_pages:
        lines.append("  Lowest Scoring Pages:")
        lines.append("")
        for page in worst_pages:
            lines.append(
                f"    {get_score_bar(page.score, 10)} {page.score}/100  {truncate_url(page.url, 45)}"
            )
            lines.append(f"       {page.critical_count} critical, {page.warning_count} warnings")
    lines.append("")

    lines.append("  Highest Scoring Pages:")
    lines.append("")
    best_pages = sorted(report.page_analyses, key=lambda p: -p.score)[:REPORT_BEST_PAGES_LIMIT]
    for page in best_pages:
        lines.append(f"    {get_score_bar(page.score, 10)} {page.score}/100  {truncate_url(page.url, 45)}")
    lines.append("")

    _section(lines, "End of Site-Wide SEO Report", "═")
    lines.append(generate_site_summary_line(report))

    return "\n".join(lines)


def generate_site_summary_line(report: SiteAnalysisResult) -> str:
    """One-line summary: score, grade, page count and issue counts."""
    return (
        f"Site SEO Score: {report.scores.overall}/100 (Grade: {get_grade(report.scores.overall)}) | "
        f"{report.crawl_stats.total_crawled} pages | "
        f"{report.summary.critical_issues} critical, {report.summary.warnings} warnings"
    )


def format_site_report_as_json(report: SiteAnalysisResult) -> str:
    return json.dumps(report.to_dict(), indent=2, default=str)


def generate_executive_summary(report: SiteAnalysisResult) -> str:
    """Condensed summary with key findings and the top three critical fixes."""
    lines = [
        "EXECUTIVE SUMMARY",
        "─" * 40,
        "",
        f"Website: {report.base_url}",
        f"Overall Score: {report.scores.overall}/100 (Grade {get_grade(report.scores.overall)})",
        f"Pages Analyzed: {report.crawl_stats.total_crawled}",
        "",
        "Key Findings:",
    ]

    if report.summary.critical_issues > 0:
        lines.append(f"  • {report.summary.critical_issues} critical issues require immediate attention")
    if report.summary.site_wide_issues > 0:
        lines.append(f"  • {report.summary.site_wide_issues} issues affect multiple pages site-wide")
    if not report.technical_details.has_sitemap:
        lines.append("  • No XML sitemap found")
    if report.technical_details.http_pages > 0:
        lines.append(f"  • {report.technical_details.http_pages} pages not using HTTPS")

    lines.append("")
    lines.append("Top 3 Priorities:")
    for i, rec in enumerate(report.recommendations.critical[:3], 1):
        lines.append(f"  {i}. {rec}")

    return "\n".join(lines)


def format_page_report_as_text(analysis: PageAnalysis) -> str:
    """Render a single page analysis, grouped by category."""
    lines: List[str] = []
    _section(lines, "SEO ANALYSIS REPORT", "═")
    lines.append(f"URL:         {analysis.url}")
    lines.append(
        f"Score:       {get_score_bar(analysis.score)} {analysis.score}/100 ({get_grade(analysis.score)})"
    )
    lines.append(f"Critical:    {analysis.critical_count}")
    lines.append(f"Warnings:    {analysis.warning_count}")
    lines.append("")

    for category in ("basic", "intermediate", "advanced"):
        issues = [issue for issue in analysis.issues if issue.category == category]
        if not issues:
            continue
        _section(lines, f"{category.upper()} SEO")
        for issue in issues:
            lines.append(f"  {STATUS_ICONS[issue.status]} {issue.check_name}: {issue.description}")
            if issue.current_value:
                lines.append(f"     Current: {truncate_url(issue.current_value, 70)}")
            if issue.status != "pass":
                lines.append(f"     → {issue.recommendation}")
        lines.append("")

    return "\n".join(lines)


def format_page_report_as_json(analysis: PageAnalysis) -> str:
    return json.dumps(asdict(analysis), indent=2, default=str)
