"""Export of anonymized records as JSON or CSV."""
import csv
import io
import json
from datetime import date
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from careerlens.shared.models import AnonymizedRecord

LIST_SEPARATOR = ";"


class ExportFormat(Enum):
    JSON = "json"
    CSV = "csv"


def _join(values) -> str:
    return LIST_SEPARATOR.join(str(v) for v in values)


def _optional(value: Any) -> Any:
    return "" if value is None else value


def _bool(value: bool) -> str:
    return "true" if value else "false"


# Column name -> cell value. The header row is exactly these names, in order.
CSV_FIELDS: Tuple[Tuple[str, Callable[[AnonymizedRecord], Any]], ...] = (
    ("id", lambda r: r.id),
    ("timestamp", lambda r: r.timestamp),
    ("profile_hash", lambda r: r.profile_hash),
    ("grade", lambda r: r.demographics.grade),
    ("board", lambda r: r.demographics.board),
    ("location", lambda r: r.demographics.location),
    ("rural_urban", lambda r: r.demographics.rural_urban),
    ("language_preference", lambda r: r.demographics.language_preference),
    ("category", lambda r: _optional(r.demographics.category)),
    ("gender", lambda r: _optional(r.demographics.gender)),
    ("income_range", lambda r: r.socioeconomic.income_range),
    ("family_background", lambda r: r.socioeconomic.family_background),
    ("internet_access", lambda r: _bool(r.socioeconomic.internet_access)),
    ("device_access", lambda r: _join(r.socioeconomic.device_access)),
    ("economic_factors", lambda r: _join(r.socioeconomic.economic_factors)),
    ("interests", lambda r: _join(r.academic.interests)),
    ("subjects", lambda r: _join(r.academic.subjects)),
    ("performance", lambda r: r.academic.performance),
    ("favorite_subjects", lambda r: _join(r.academic.favorite_subjects)),
    ("difficult_subjects", lambda r: _join(r.academic.difficult_subjects)),
    ("extracurricular_activities", lambda r: _join(r.academic.extracurricular_activities)),
    ("total_recommendations", lambda r: r.recommendation_summary.total_count),
    ("average_match_score", lambda r: r.recommendation_summary.average_match_score),
    ("top_career_titles", lambda r: _join(r.recommendation_summary.top_career_titles)),
    ("demand_levels", lambda r: _join(r.recommendation_summary.demand_levels)),
    ("entry_salaries", lambda r: _join(r.recommendation_summary.entry_salaries)),
    ("ai_model", lambda r: r.processing.ai_model),
    ("processing_time", lambda r: r.processing.processing_time),
    ("generated_at", lambda r: r.processing.generated_at),
)

CSV_COLUMNS: Tuple[str, ...] = tuple(name for name, _ in CSV_FIELDS)


def to_json(records: List[AnonymizedRecord]) -> bytes:
    """Records as a JSON array, unmodified."""
    return json.dumps([r.to_dict() for r in records], indent=2).encode("utf-8")


def to_csv(records: List[AnonymizedRecord]) -> bytes:
    """One fully quoted row per record under a fixed header row.

    List fields are joined with ';'; embedded quotes are doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for record in records:
        writer.writerow([value(record) for _, value in CSV_FIELDS])
    return buffer.getvalue().encode("utf-8")


def export_records(records: List[AnonymizedRecord], export_format: ExportFormat) -> bytes:
    """Serialize records in the requested format."""
    if export_format is ExportFormat.CSV:
        return to_csv(records)
    return to_json(records)


def export_filename(export_format: ExportFormat, day: Optional[date] = None) -> str:
    """Download filename, e.g. analytics_export_2024-01-15.csv."""
    day = day or date.today()
    return f"analytics_export_{day.isoformat()}.{export_format.value}"
