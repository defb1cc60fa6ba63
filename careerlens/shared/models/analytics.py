"""Anonymized analytics record models.

An AnonymizedRecord is the only shape the analytics store persists. It is
created once by the anonymizer, never modified, and removed only by
retention cleanup. No field holds a raw name, street or city address,
free-text family description or the original profile id.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple


def _tuple(values: Any) -> Tuple[Any, ...]:
    return tuple(values or ())


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the ``Z`` suffix; naive values are taken to be UTC.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with milliseconds and ``Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class Demographics:
    grade: str
    board: str
    location: str                       # State/region level only
    rural_urban: str
    language_preference: str
    category: Optional[str] = None
    gender: Optional[str] = None


@dataclass(frozen=True)
class Socioeconomic:
    income_range: str                   # Bucket label, never a raw amount
    family_background: str              # business/service/agriculture/professional/other
    internet_access: bool
    device_access: Tuple[str, ...] = ()
    economic_factors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Academic:
    interests: Tuple[str, ...] = ()
    subjects: Tuple[str, ...] = ()
    performance: str = ""
    favorite_subjects: Tuple[str, ...] = ()
    difficult_subjects: Tuple[str, ...] = ()
    extracurricular_activities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RecommendationSummary:
    total_count: int
    average_match_score: int
    top_career_titles: Tuple[str, ...] = ()
    demand_levels: Tuple[str, ...] = ()
    entry_salaries: Tuple[float, ...] = ()
    mid_salaries: Tuple[float, ...] = ()
    senior_salaries: Tuple[float, ...] = ()


@dataclass(frozen=True)
class ProcessingInfo:
    ai_model: str
    processing_time: float              # Milliseconds
    generated_at: str


@dataclass(frozen=True)
class AnonymizedRecord:
    """A single privacy-generalized submission event."""
    id: str
    timestamp: str                      # ISO-8601 UTC, decides the partition
    profile_hash: str
    demographics: Demographics
    socioeconomic: Socioeconomic
    academic: Academic
    recommendation_summary: RecommendationSummary
    processing: ProcessingInfo

    @property
    def created_at(self) -> datetime:
        """Creation time as an aware UTC datetime."""
        return parse_timestamp(self.timestamp)

    @property
    def partition_key(self) -> str:
        """UTC calendar day (YYYY-MM-DD) this record is stored under."""
        return self.created_at.strftime("%Y-%m-%d")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready dictionary."""
        demo = self.demographics
        socio = self.socioeconomic
        acad = self.academic
        summary = self.recommendation_summary
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "profile_hash": self.profile_hash,
            "demographics": {
                "grade": demo.grade,
                "board": demo.board,
                "location": demo.location,
                "rural_urban": demo.rural_urban,
                "language_preference": demo.language_preference,
                "category": demo.category,
                "gender": demo.gender,
            },
            "socioeconomic": {
                "income_range": socio.income_range,
                "family_background": socio.family_background,
                "internet_access": socio.internet_access,
                "device_access": list(socio.device_access),
                "economic_factors": list(socio.economic_factors),
            },
            "academic": {
                "interests": list(acad.interests),
                "subjects": list(acad.subjects),
                "performance": acad.performance,
                "favorite_subjects": list(acad.favorite_subjects),
                "difficult_subjects": list(acad.difficult_subjects),
                "extracurricular_activities": list(acad.extracurricular_activities),
            },
            "recommendation_summary": {
                "total_count": summary.total_count,
                "average_match_score": summary.average_match_score,
                "top_career_titles": list(summary.top_career_titles),
                "demand_levels": list(summary.demand_levels),
                "entry_salaries": list(summary.entry_salaries),
                "mid_salaries": list(summary.mid_salaries),
                "senior_salaries": list(summary.senior_salaries),
            },
            "processing": {
                "ai_model": self.processing.ai_model,
                "processing_time": self.processing.processing_time,
                "generated_at": self.processing.generated_at,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnonymizedRecord":
        """Rebuild a record from its stored dictionary.

        Raises:
            KeyError: If a required field is missing
        """
        demo = data["demographics"]
        socio = data["socioeconomic"]
        acad = data["academic"]
        summary = data["recommendation_summary"]
        processing = data["processing"]

        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            profile_hash=data["profile_hash"],
            demographics=Demographics(
                grade=demo["grade"],
                board=demo["board"],
                location=demo["location"],
                rural_urban=demo["rural_urban"],
                language_preference=demo["language_preference"],
                category=demo.get("category"),
                gender=demo.get("gender"),
            ),
            socioeconomic=Socioeconomic(
                income_range=socio["income_range"],
                family_background=socio["family_background"],
                internet_access=socio["internet_access"],
                device_access=_tuple(socio.get("device_access")),
                economic_factors=_tuple(socio.get("economic_factors")),
            ),
            academic=Academic(
                interests=_tuple(acad.get("interests")),
                subjects=_tuple(acad.get("subjects")),
                performance=acad.get("performance", ""),
                favorite_subjects=_tuple(acad.get("favorite_subjects")),
                difficult_subjects=_tuple(acad.get("difficult_subjects")),
                extracurricular_activities=_tuple(acad.get("extracurricular_activities")),
            ),
            recommendation_summary=RecommendationSummary(
                total_count=summary["total_count"],
                average_match_score=summary["average_match_score"],
                top_career_titles=_tuple(summary.get("top_career_titles")),
                demand_levels=_tuple(summary.get("demand_levels")),
                entry_salaries=_tuple(summary.get("entry_salaries")),
                mid_salaries=_tuple(summary.get("mid_salaries")),
                senior_salaries=_tuple(summary.get("senior_salaries")),
            ),
            processing=ProcessingInfo(
                ai_model=processing["ai_model"],
                processing_time=processing["processing_time"],
                generated_at=processing["generated_at"],
            ),
        )
