"""Anonymization of submission events into analytics records.

Pure transform, no I/O. Strips or generalizes every identifying field:
- Profile id -> 16-char SHA-256 prefix
- Free-text location -> state/region
- Free-text family background -> one of a fixed set of categories
- Numeric family income -> income range bucket
The student's name is dropped entirely.
"""
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

from careerlens.shared.models import (
    Academic,
    AnonymizedRecord,
    CareerRecommendation,
    Demographics,
    ProcessingInfo,
    RecommendationSummary,
    Socioeconomic,
    coerce_metadata,
    coerce_profile,
    coerce_recommendations,
    format_timestamp,
)
from careerlens.shared.models.profile import (
    MetadataInput,
    ProfileInput,
    RecommendationInput,
)
from careerlens.shared.utils import hash_identifier, round_half_up

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

# Ordered: the first category with a matching keyword wins
FAMILY_BACKGROUND_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("business", ("business", "entrepreneur", "shop", "trade")),
    ("service", ("government", "private", "service", "job")),
    ("agriculture", ("farmer", "agriculture", "farming")),
    ("professional", ("doctor", "engineer", "teacher", "lawyer")),
)
DEFAULT_FAMILY_BACKGROUND = "other"

FAMILY_BACKGROUND_VALUES: FrozenSet[str] = frozenset(
    [name for name, _ in FAMILY_BACKGROUND_CATEGORIES] + [DEFAULT_FAMILY_BACKGROUND]
)

# Upper bounds in rupees per year, exclusive
INCOME_BUCKETS: Tuple[Tuple[float, str], ...] = (
    (100_000, "Below 1 Lakh"),
    (300_000, "1-3 Lakhs"),
    (500_000, "3-5 Lakhs"),
    (1_000_000, "5-10 Lakhs"),
    (2_000_000, "10-20 Lakhs"),
    (5_000_000, "20-50 Lakhs"),
)
TOP_INCOME_BUCKET = "Above 50 Lakhs"

# States and union territories accepted as region-level locations
KNOWN_REGIONS: Tuple[str, ...] = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh",
    "Goa", "Gujarat", "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka",
    "Kerala", "Madhya Pradesh", "Maharashtra", "Manipur", "Meghalaya",
    "Mizoram", "Nagaland", "Odisha", "Punjab", "Rajasthan", "Sikkim",
    "Tamil Nadu", "Telangana", "Tripura", "Uttar Pradesh", "Uttarakhand",
    "West Bengal",
    "Andaman and Nicobar Islands", "Chandigarh",
    "Dadra and Nagar Haveli and Daman and Diu", "Delhi", "Jammu and Kashmir",
    "Ladakh", "Lakshadweep", "Puducherry",
)
_REGION_LOOKUP = {region.lower(): region for region in KNOWN_REGIONS}

TOP_TITLES_COUNT = 3

_ID_ALPHABET = string.digits + string.ascii_lowercase


class AnonymizationError(ValueError):
    """Input could not be turned into an anonymized record."""
    pass


def anonymize_id(profile_id: str) -> str:
    """One-way 16-char hex hash of a profile id. Deterministic."""
    return hash_identifier(profile_id)


def anonymize_location(location: str, strict: bool = False) -> str:
    """Reduce a free-text location to its state/region.

    "Andheri, Mumbai, Maharashtra" -> "Maharashtra". A location without a
    comma is kept as given unless ``strict`` is set, in which case anything
    that is not a known state or union territory becomes "unknown".
    """
    if not isinstance(location, str):
        raise TypeError(f"location must be a string, got {type(location).__name__}")

    if "," in location:
        segments = [s.strip() for s in location.split(",") if s.strip()]
        region = segments[-1] if segments else ""
    else:
        region = location

    known = _REGION_LOOKUP.get(region.strip().lower())
    if known is not None:
        return known
    if strict or not region.strip():
        return UNKNOWN
    return region


def anonymize_family_background(background: Optional[str]) -> str:
    """Classify a free-text family background. Total: unmatched -> "other"."""
    lowered = (background or "").lower()
    for category, keywords in FAMILY_BACKGROUND_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_FAMILY_BACKGROUND


def generalize_income(income: Union[str, int, float, None]) -> str:
    """Map a raw income amount to its range bucket.

    Range labels such as "3-5 Lakhs" pass through unchanged; only plain
    numbers (rupees per year) are bucketed.
    """
    if income is None or isinstance(income, bool):
        return UNKNOWN

    if isinstance(income, str):
        text = income.strip()
        digits = text.replace(",", "").replace("_", "")
        if not text:
            return UNKNOWN
        if not digits.replace(".", "", 1).isdigit():
            return text
        amount = float(digits)
    elif isinstance(income, (int, float)):
        amount = float(income)
    else:
        raise TypeError(f"family_income must be a string or number, got {type(income).__name__}")

    if amount < 0:
        raise ValueError(f"family_income cannot be negative, got {amount}")

    for upper, label in INCOME_BUCKETS:
        if amount < upper:
            return label
    return TOP_INCOME_BUCKET


def average_match_score(recommendations: Sequence[CareerRecommendation]) -> int:
    """Mean match score rounded half-up; 0 for no recommendations."""
    if not recommendations:
        return 0
    total = sum(rec.match_score for rec in recommendations)
    return round_half_up(total / len(recommendations))


def summarize_recommendations(
    recommendations: Sequence[CareerRecommendation],
) -> RecommendationSummary:
    """Reduce the recommendation list to counts, scores and salaries.

    Top titles are the first three in the order given, not re-sorted.
    """
    return RecommendationSummary(
        total_count=len(recommendations),
        average_match_score=average_match_score(recommendations),
        top_career_titles=tuple(rec.title for rec in recommendations[:TOP_TITLES_COUNT]),
        demand_levels=tuple(rec.demand_level for rec in recommendations),
        entry_salaries=tuple(rec.entry_salary for rec in recommendations),
        mid_salaries=tuple(rec.mid_salary for rec in recommendations),
        senior_salaries=tuple(rec.senior_salary for rec in recommendations),
    )


def generate_record_id(now_ms: Optional[int] = None) -> str:
    """Record id of the form ``analytics_<epoch-ms>_<6 base36 chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"analytics_{now_ms}_{suffix}"


class Anonymizer:
    """Builds AnonymizedRecords from raw submission data."""

    def __init__(self, strict_location: bool = False):
        """Initialize anonymizer.

        Args:
            strict_location: Fail closed on unrecognized regions
        """
        self.strict_location = strict_location

    def anonymize(
        self,
        profile: ProfileInput,
        recommendations: List[RecommendationInput],
        processing_meta: MetadataInput,
        now: Optional[datetime] = None,
    ) -> AnonymizedRecord:
        """Create the anonymized record for one submission.

        Args:
            profile: Student profile (object or submission JSON)
            recommendations: Generated recommendations
            processing_meta: Generation run metadata
            now: Creation time (defaults to current UTC time)

        Returns:
            AnonymizedRecord with no raw identifiers

        Raises:
            AnonymizationError: If any input is malformed
        """
        try:
            student = coerce_profile(profile)
            recs = coerce_recommendations(list(recommendations))
            meta = coerce_metadata(processing_meta)

            created = now or datetime.now(timezone.utc)
            personal = student.personal_info
            socio = student.socioeconomic_data
            academic = student.academic_data

            record = AnonymizedRecord(
                id=generate_record_id(int(created.timestamp() * 1000)),
                timestamp=format_timestamp(created),
                profile_hash=anonymize_id(student.id),
                demographics=Demographics(
                    grade=personal.grade,
                    board=personal.board,
                    location=anonymize_location(socio.location, strict=self.strict_location),
                    rural_urban=socio.rural_urban,
                    language_preference=personal.language_preference,
                    category=personal.category,
                    gender=personal.gender,
                ),
                socioeconomic=Socioeconomic(
                    income_range=generalize_income(student.family_income),
                    family_background=anonymize_family_background(socio.family_background),
                    internet_access=socio.internet_access,
                    device_access=socio.device_access,
                    economic_factors=socio.economic_factors,
                ),
                academic=Academic(
                    interests=academic.interests,
                    subjects=academic.subjects,
                    performance=academic.performance,
                    favorite_subjects=academic.favorite_subjects,
                    difficult_subjects=academic.difficult_subjects,
                    extracurricular_activities=academic.extracurricular_activities,
                ),
                recommendation_summary=summarize_recommendations(recs),
                processing=ProcessingInfo(
                    ai_model=meta.ai_model,
                    processing_time=meta.processing_time,
                    generated_at=meta.generated_at,
                ),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise AnonymizationError(f"Malformed analytics input: {e!r}") from e

        logger.debug(
            "ANALYTICS_RECORD_ANONYMIZED",
            extra={"record_id": record.id, "profile_hash": record.profile_hash}
        )
        return record
