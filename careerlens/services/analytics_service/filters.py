"""Filter engine for analytics queries.

Pure functions over in-memory record lists. Every present field narrows
the result (AND semantics); pagination applies offset before limit.
"""
from dataclasses import dataclass, asdict
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional

from careerlens.shared.models import AnonymizedRecord, parse_timestamp


@dataclass(frozen=True)
class AnalyticsFilter:
    """Optional predicates plus pagination for one query."""
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    grade: Optional[str] = None
    board: Optional[str] = None
    location: Optional[str] = None
    rural_urban: Optional[str] = None
    language_preference: Optional[str] = None
    income_range: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Only the fields that are set."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def _is_date_only(value: str) -> bool:
    return len(value) == 10 and "T" not in value


def _lower_bound(value: str) -> datetime:
    return parse_timestamp(value)


def _upper_bound(value: str) -> datetime:
    """Inclusive upper bound; a bare date covers the whole day."""
    if _is_date_only(value):
        day = datetime.strptime(value, "%Y-%m-%d").date()
        return datetime.combine(day, time.max, tzinfo=timezone.utc)
    return parse_timestamp(value)


def apply_filters(
    records: List[AnonymizedRecord],
    record_filter: AnalyticsFilter,
) -> List[AnonymizedRecord]:
    """Apply predicates then pagination.

    Args:
        records: Records in storage order
        record_filter: Filter to apply

    Returns:
        Matching records in their original order

    Raises:
        ValueError: If a date bound is not ISO-8601, or offset or limit
            is negative
    """
    f = record_filter
    for name, value in (("offset", f.offset), ("limit", f.limit)):
        if value is not None and value < 0:
            raise ValueError(f"{name} cannot be negative, got {value}")
    filtered = records

    if f.date_from:
        lower = _lower_bound(f.date_from)
        filtered = [r for r in filtered if r.created_at >= lower]
    if f.date_to:
        upper = _upper_bound(f.date_to)
        filtered = [r for r in filtered if r.created_at <= upper]
    if f.grade:
        filtered = [r for r in filtered if r.demographics.grade == f.grade]
    if f.board:
        filtered = [r for r in filtered if r.demographics.board == f.board]
    if f.location:
        filtered = [r for r in filtered if r.demographics.location == f.location]
    if f.rural_urban:
        filtered = [r for r in filtered if r.demographics.rural_urban == f.rural_urban]
    if f.language_preference:
        filtered = [
            r for r in filtered
            if r.demographics.language_preference == f.language_preference
        ]
    if f.income_range:
        filtered = [r for r in filtered if r.socioeconomic.income_range == f.income_range]

    # Offset first, then limit. Zero means "not set" for both.
    if f.offset:
        filtered = filtered[f.offset:]
    if f.limit:
        filtered = filtered[:f.limit]

    return list(filtered)
