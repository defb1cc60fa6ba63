"""Aggregation of anonymized records into grouped statistics.

Pure computation over a record list; nothing here is persisted.

Every average is a true arithmetic mean (running sum and count, divided
once at the end). Per-group match-score breakdowns (by grade, board,
location, income range) can instead use the legacy pairwise running
average (AveragingMode.PAIRWISE), where each new observation replaces the
stored value with round((stored + new) / 2). That is NOT a mean: later
observations weigh more and the result drifts from the population average
as groups grow. It exists only to reproduce dashboards computed that way.
"""
import logging
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from careerlens.shared.models import AnonymizedRecord, format_timestamp
from careerlens.shared.utils import round_half_up, safe_mean
from .config import AveragingMode
from .filters import AnalyticsFilter

logger = logging.getLogger(__name__)

Counts = Dict[str, int]


def increment(counts: Counts, key: str, amount: int = 1) -> None:
    """Add to a count map, starting missing keys at 0."""
    counts[key] = counts.get(key, 0) + amount


def increment_each(counts: Counts, keys: Iterable[str]) -> None:
    """Count every element of a list-valued field once."""
    for key in keys:
        increment(counts, key)


class GroupAverager:
    """Per-key average of match scores.

    In PAIRWISE mode this reproduces the legacy numerically biased merge;
    in MEAN mode it keeps a (sum, count) pair per key.
    """

    def __init__(self, mode: AveragingMode = AveragingMode.MEAN):
        self.mode = mode
        self._pairwise: Dict[str, int] = OrderedDict()
        self._sums: Dict[str, float] = OrderedDict()
        self._counts: Dict[str, int] = {}

    def add(self, key: str, value: float) -> None:
        if self.mode is AveragingMode.PAIRWISE:
            if key in self._pairwise:
                self._pairwise[key] = round_half_up((self._pairwise[key] + value) / 2)
            else:
                self._pairwise[key] = value
            return

        self._sums[key] = self._sums.get(key, 0) + value
        self._counts[key] = self._counts.get(key, 0) + 1

    def results(self) -> Dict[str, int]:
        if self.mode is AveragingMode.PAIRWISE:
            return dict(self._pairwise)
        return {key: safe_mean(total, self._counts[key]) for key, total in self._sums.items()}


@dataclass
class DemographicBreakdown:
    by_grade: Counts = field(default_factory=dict)
    by_board: Counts = field(default_factory=dict)
    by_location: Counts = field(default_factory=dict)
    by_rural_urban: Counts = field(default_factory=dict)
    by_language: Counts = field(default_factory=dict)
    by_category: Counts = field(default_factory=dict)
    by_gender: Counts = field(default_factory=dict)


@dataclass
class SocioeconomicBreakdown:
    by_income_range: Counts = field(default_factory=dict)
    by_family_background: Counts = field(default_factory=dict)
    by_internet_access: Counts = field(default_factory=dict)
    by_device_access: Counts = field(default_factory=dict)
    economic_factors_trends: Counts = field(default_factory=dict)


@dataclass
class AcademicBreakdown:
    popular_interests: Counts = field(default_factory=dict)
    popular_subjects: Counts = field(default_factory=dict)
    performance_distribution: Counts = field(default_factory=dict)
    extracurricular_trends: Counts = field(default_factory=dict)


@dataclass
class MatchScoreAverages:
    overall: int = 0
    by_grade: Counts = field(default_factory=dict)
    by_board: Counts = field(default_factory=dict)
    by_location: Counts = field(default_factory=dict)
    by_income_range: Counts = field(default_factory=dict)


@dataclass
class SalaryTrends:
    average_entry: int = 0
    average_mid: int = 0
    average_senior: int = 0


@dataclass
class RecommendationBreakdown:
    top_careers: Counts = field(default_factory=dict)
    average_match_scores: MatchScoreAverages = field(default_factory=MatchScoreAverages)
    demand_level_distribution: Counts = field(default_factory=dict)
    salary_trends: SalaryTrends = field(default_factory=SalaryTrends)
    careers_by_rural_urban: Dict[str, Counts] = field(default_factory=dict)
    careers_by_income_range: Dict[str, Counts] = field(default_factory=dict)


@dataclass
class ProcessingBreakdown:
    average_processing_time: int = 0
    ai_model_usage: Counts = field(default_factory=dict)
    # Only successful generations are ever recorded
    success_rate: int = 100


@dataclass
class Aggregation:
    """Statistical summary over a record set. Recomputed on every query."""
    total_profiles: int
    date_from: str
    date_to: str
    demographics: DemographicBreakdown = field(default_factory=DemographicBreakdown)
    socioeconomic: SocioeconomicBreakdown = field(default_factory=SocioeconomicBreakdown)
    academic: AcademicBreakdown = field(default_factory=AcademicBreakdown)
    recommendations: RecommendationBreakdown = field(default_factory=RecommendationBreakdown)
    processing: ProcessingBreakdown = field(default_factory=ProcessingBreakdown)
    daily_counts: Counts = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date_range"] = {"from": data.pop("date_from"), "to": data.pop("date_to")}
        return data


class Aggregator:
    """Computes Aggregations from anonymized records."""

    def __init__(self, group_averaging: AveragingMode = AveragingMode.MEAN):
        """Initialize aggregator.

        Args:
            group_averaging: Strategy for per-group match-score averages
        """
        self.group_averaging = group_averaging

    def aggregate(
        self,
        records: List[AnonymizedRecord],
        record_filter: Optional[AnalyticsFilter] = None,
    ) -> Aggregation:
        """Aggregate a (filtered) record list.

        Args:
            records: Records to summarize
            record_filter: Filter the records came from, used for the date range

        Returns:
            Aggregation; every average is 0 for an empty record list
        """
        now = format_timestamp(datetime.now(timezone.utc))
        f = record_filter or AnalyticsFilter()

        aggregation = Aggregation(
            total_profiles=len(records),
            date_from=f.date_from or (records[0].timestamp if records else now),
            date_to=f.date_to or (records[-1].timestamp if records else now),
        )
        demo_out = aggregation.demographics
        socio_out = aggregation.socioeconomic
        acad_out = aggregation.academic
        recs_out = aggregation.recommendations
        proc_out = aggregation.processing

        by_grade = GroupAverager(self.group_averaging)
        by_board = GroupAverager(self.group_averaging)
        by_location = GroupAverager(self.group_averaging)
        by_income = GroupAverager(self.group_averaging)

        total_match_score = 0.0
        total_processing_time = 0.0
        salary_totals = {"entry": 0.0, "mid": 0.0, "senior": 0.0}
        salary_counts = {"entry": 0, "mid": 0, "senior": 0}

        for record in records:
            demo = record.demographics
            socio = record.socioeconomic
            acad = record.academic
            summary = record.recommendation_summary

            increment(demo_out.by_grade, demo.grade)
            increment(demo_out.by_board, demo.board)
            increment(demo_out.by_location, demo.location)
            increment(demo_out.by_rural_urban, demo.rural_urban)
            increment(demo_out.by_language, demo.language_preference)
            if demo.category:
                increment(demo_out.by_category, demo.category)
            if demo.gender:
                increment(demo_out.by_gender, demo.gender)

            increment(socio_out.by_income_range, socio.income_range)
            increment(socio_out.by_family_background, socio.family_background)
            increment(socio_out.by_internet_access, "true" if socio.internet_access else "false")
            increment_each(socio_out.by_device_access, socio.device_access)
            increment_each(socio_out.economic_factors_trends, socio.economic_factors)

            increment_each(acad_out.popular_interests, acad.interests)
            increment_each(acad_out.popular_subjects, acad.subjects)
            increment(acad_out.performance_distribution, acad.performance)
            increment_each(acad_out.extracurricular_trends, acad.extracurricular_activities)

            increment_each(recs_out.top_careers, summary.top_career_titles)
            increment_each(recs_out.demand_level_distribution, summary.demand_levels)
            increment_each(
                recs_out.careers_by_rural_urban.setdefault(demo.rural_urban, {}),
                summary.top_career_titles,
            )
            increment_each(
                recs_out.careers_by_income_range.setdefault(socio.income_range, {}),
                summary.top_career_titles,
            )

            score = summary.average_match_score
            total_match_score += score
            by_grade.add(demo.grade, score)
            by_board.add(demo.board, score)
            by_location.add(demo.location, score)
            by_income.add(socio.income_range, score)

            for level, salaries in (
                ("entry", summary.entry_salaries),
                ("mid", summary.mid_salaries),
                ("senior", summary.senior_salaries),
            ):
                salary_totals[level] += sum(salaries)
                salary_counts[level] += len(salaries)

            total_processing_time += record.processing.processing_time
            increment(proc_out.ai_model_usage, record.processing.ai_model)
            increment(aggregation.daily_counts, record.partition_key)

        scores = recs_out.average_match_scores
        scores.overall = safe_mean(total_match_score, len(records))
        scores.by_grade = by_grade.results()
        scores.by_board = by_board.results()
        scores.by_location = by_location.results()
        scores.by_income_range = by_income.results()

        recs_out.salary_trends = SalaryTrends(
            average_entry=safe_mean(salary_totals["entry"], salary_counts["entry"]),
            average_mid=safe_mean(salary_totals["mid"], salary_counts["mid"]),
            average_senior=safe_mean(salary_totals["senior"], salary_counts["senior"]),
        )
        proc_out.average_processing_time = safe_mean(total_processing_time, len(records))
        aggregation.daily_counts = dict(sorted(aggregation.daily_counts.items()))

        logger.debug(
            "ANALYTICS_AGGREGATED",
            extra={
                "total_profiles": aggregation.total_profiles,
                "group_averaging": self.group_averaging.value,
            }
        )
        return aggregation
