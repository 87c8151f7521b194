"""Score calculations shared by the page analyzer and the site aggregator."""

from typing import Iterable, List, Mapping

from seo_audit.constants import CATEGORY_WEIGHTS, STATUS_WEIGHTS
from seo_audit.models import SEOIssue


def round_half_up(value: float) -> int:
    """Round .5 away from zero, unlike Python's banker's rounding."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def calculate_page_score(issues: List[SEOIssue]) -> int:
    """Score a page from its issues.

    Each issue contributes its status weight (pass 1, info 0.9, warning 0.5,
    fail 0). A page with no issues scores 100.

    Args:
        issues: All issues reported for the page

    Returns:
        Score between 0 and 100
    """
    if not issues:
        return 100

    total = sum(STATUS_WEIGHTS.get(issue.status, 0.5) for issue in issues)
    return round_half_up(total / len(issues) * 100)


def calculate_category_score(percentages: Iterable[int]) -> int:
    """Score a category from the affected-page percentages of its issues.

    Args:
        percentages: Percentage of pages affected, one per reported issue

    Returns:
        Mean unaffected share as 0-100; 100 when no issues are reported
    """
    percentages = list(percentages)
    if not percentages:
        return 100

    unaffected = [1 - (p / 100) for p in percentages]
    return round_half_up(sum(unaffected) / len(unaffected) * 100)


def calculate_overall_score(category_scores: Mapping[str, int]) -> int:
    """Weighted overall score: basic 40%, intermediate 35%, advanced 25%."""
    return round_half_up(sum(
        category_scores.get(category, 100) * weight
        for category, weight in CATEGORY_WEIGHTS.items()
    ))
