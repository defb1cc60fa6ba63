"""Dashboard views derived from an Aggregation.

Ranked top-N lists and percentage breakdowns for the administrator
dashboard. Pure; every percentage is 0 when there are no profiles.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from careerlens.shared.utils import safe_percentage
from .aggregator import Aggregation, Counts

DEFAULT_TOP_N = 10
SEGMENT_TOP_CAREERS = 3
NO_CAREER = "N/A"


def rank(counts: Counts, limit: int = 0) -> List[Tuple[str, int]]:
    """Entries by descending count; ties keep first-seen order.

    Args:
        counts: Count map
        limit: Maximum entries to keep, 0 for all
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit] if limit else ranked


def _with_percentages(
    ranked: List[Tuple[str, int]],
    label: str,
    total: int,
) -> List[Dict[str, Any]]:
    return [
        {label: key, "count": count, "percentage": safe_percentage(count, total)}
        for key, count in ranked
    ]


def growth_rate(daily_counts: Counts) -> int:
    """Percent change between the two most recent days; 0 without two days."""
    days = sorted(daily_counts)
    if len(days) < 2:
        return 0
    previous = daily_counts[days[-2]]
    latest = daily_counts[days[-1]]
    return safe_percentage(latest - previous, previous)


@dataclass
class DashboardSummary:
    total_users: int = 0
    total_recommendations: int = 0
    average_match_score: int = 0
    top_career: str = NO_CAREER
    growth_rate: int = 0


@dataclass
class DashboardTrends:
    daily_users: List[Dict[str, Any]] = field(default_factory=list)
    popular_careers: List[Dict[str, Any]] = field(default_factory=list)
    location_distribution: List[Dict[str, Any]] = field(default_factory=list)
    grade_distribution: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class DashboardInsights:
    rural_vs_urban: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    language_preference: Dict[str, Dict[str, int]] = field(default_factory=dict)
    income_impact: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class DashboardView:
    """Presentation-ready projection of an Aggregation. Never persisted."""
    summary: DashboardSummary
    trends: DashboardTrends
    insights: DashboardInsights

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DashboardBuilder:
    """Builds DashboardViews from Aggregations."""

    def __init__(self, top_n: int = DEFAULT_TOP_N):
        self.top_n = top_n

    def build(self, aggregation: Aggregation) -> DashboardView:
        """Derive the dashboard from an aggregation.

        Args:
            aggregation: Result of Aggregator.aggregate

        Returns:
            DashboardView with ranked lists and percentages
        """
        total = aggregation.total_profiles
        demographics = aggregation.demographics
        recommendations = aggregation.recommendations

        top_careers = rank(recommendations.top_careers, self.top_n)
        locations = rank(demographics.by_location, self.top_n)
        grades = rank(demographics.by_grade)

        summary = DashboardSummary(
            total_users=total,
            total_recommendations=sum(recommendations.top_careers.values()),
            average_match_score=recommendations.average_match_scores.overall,
            top_career=top_careers[0][0] if top_careers else NO_CAREER,
            growth_rate=growth_rate(aggregation.daily_counts),
        )

        trends = DashboardTrends(
            daily_users=[
                {"date": day, "count": count}
                for day, count in sorted(aggregation.daily_counts.items())
            ],
            popular_careers=_with_percentages(top_careers, "career", total),
            location_distribution=_with_percentages(locations, "location", total),
            grade_distribution=_with_percentages(grades, "grade", total),
        )

        by_language = demographics.by_language
        insights = DashboardInsights(
            rural_vs_urban={
                segment: {
                    "count": demographics.by_rural_urban.get(segment, 0),
                    "top_careers": self._segment_careers(
                        recommendations.careers_by_rural_urban, segment
                    ),
                }
                for segment in ("rural", "urban")
            },
            language_preference={
                language: {
                    "count": by_language.get(language, 0),
                    "percentage": safe_percentage(by_language.get(language, 0), total),
                }
                for language in ("hindi", "english")
            },
            income_impact=[
                {
                    "range": income_range,
                    "count": count,
                    "average_match_score": recommendations.average_match_scores.by_income_range.get(
                        income_range, 0
                    ),
                    "top_careers": self._segment_careers(
                        recommendations.careers_by_income_range, income_range
                    ),
                }
                for income_range, count in aggregation.socioeconomic.by_income_range.items()
            ],
        )

        return DashboardView(summary=summary, trends=trends, insights=insights)

    @staticmethod
    def _segment_careers(careers_by_segment: Dict[str, Counts], segment: str) -> List[str]:
        return [
            career
            for career, _ in rank(careers_by_segment.get(segment, {}), SEGMENT_TOP_CAREERS)
        ]
