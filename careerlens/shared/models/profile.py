"""Submission-side domain models.

These are the shapes handed to the analytics core by the submission
pipeline: the student profile, the generated career recommendations and
the processing metadata of the generation run. They carry raw PII and are
never persisted by the analytics service.
"""
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union


def _as_text(value: Any, field_name: str, default: Optional[str] = None) -> str:
    """Require a JSON string. A missing value takes ``default`` when one is given."""
    if value is None and default is not None:
        return default
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value).__name__}")
    return value


def _as_optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    return _as_text(value, field_name)


def _as_number(value: Any, field_name: str) -> Union[int, float]:
    """Coerce a JSON number or numeric string. Missing means 0.

    Raises:
        TypeError: If the value is neither a number nor a string
        ValueError: If a string is not numeric or the value is not finite
    """
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise TypeError(f"{field_name} must be a number, got {type(value).__name__}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{field_name} must be finite, got {value!r}")
    return int(number) if number.is_integer() else number


def _as_tuple(values: Any, field_name: str) -> Tuple[str, ...]:
    """Coerce a JSON list of strings into a tuple."""
    if values is None:
        return ()
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise TypeError(f"{field_name} must be a list, got {type(values).__name__}")
    return tuple(str(v) for v in values)


@dataclass(frozen=True)
class PersonalInfo:
    """Identity and demographic block of a student profile."""
    name: str
    grade: str
    board: str
    language_preference: str            # "hindi" or "english"
    age: Optional[int] = None
    gender: Optional[str] = None
    category: Optional[str] = None      # General, OBC, SC, ST, EWS


@dataclass(frozen=True)
class AcademicData:
    """Academic interests and performance of a student."""
    interests: Tuple[str, ...] = ()
    subjects: Tuple[str, ...] = ()
    performance: str = ""
    favorite_subjects: Tuple[str, ...] = ()
    difficult_subjects: Tuple[str, ...] = ()
    extracurricular_activities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SocioeconomicData:
    """Household and access information of a student."""
    location: str                       # Free text, e.g. "Andheri, Mumbai, Maharashtra"
    family_background: str              # Free text description
    rural_urban: str                    # "rural", "urban" or "semi-urban"
    internet_access: bool = False
    device_access: Tuple[str, ...] = ()
    economic_factors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StudentProfile:
    """A submitted student profile.

    The id, name, street-level location and family description are raw
    PII and must be generalized before anything is stored.
    """
    id: str
    personal_info: PersonalInfo
    academic_data: AcademicData
    socioeconomic_data: SocioeconomicData
    family_income: Union[str, int, float]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StudentProfile":
        """Build a profile from the submission JSON.

        Raises:
            KeyError: If a required field is missing
            TypeError: If a text or list field has the wrong type
        """
        personal = data["personal_info"]
        academic = data.get("academic_data") or {}
        socio = data["socioeconomic_data"]

        return cls(
            id=str(data["id"]),
            personal_info=PersonalInfo(
                name=personal.get("name", ""),
                grade=str(personal["grade"]),
                board=str(personal["board"]),
                language_preference=_as_text(
                    personal["language_preference"], "language_preference"
                ),
                age=personal.get("age"),
                gender=_as_optional_text(personal.get("gender"), "gender"),
                category=_as_optional_text(personal.get("category"), "category"),
            ),
            academic_data=AcademicData(
                interests=_as_tuple(academic.get("interests"), "interests"),
                subjects=_as_tuple(academic.get("subjects"), "subjects"),
                performance=_as_text(academic.get("performance"), "performance", default=""),
                favorite_subjects=_as_tuple(
                    academic.get("favorite_subjects"), "favorite_subjects"
                ),
                difficult_subjects=_as_tuple(
                    academic.get("difficult_subjects"), "difficult_subjects"
                ),
                extracurricular_activities=_as_tuple(
                    academic.get("extracurricular_activities"),
                    "extracurricular_activities",
                ),
            ),
            socioeconomic_data=SocioeconomicData(
                location=_as_text(socio["location"], "location"),
                family_background=socio.get("family_background", ""),
                rural_urban=_as_text(socio["rural_urban"], "rural_urban"),
                internet_access=bool(socio.get("internet_access", False)),
                device_access=_as_tuple(socio.get("device_access"), "device_access"),
                economic_factors=_as_tuple(
                    socio.get("economic_factors"), "economic_factors"
                ),
            ),
            family_income=data["family_income"],
        )


@dataclass(frozen=True)
class CareerRecommendation:
    """One generated career recommendation, reduced to the analytics fields."""
    title: str
    match_score: float                  # 0-100 match with the student profile
    demand_level: str                   # "high", "medium" or "low"
    entry_salary: float = 0
    mid_salary: float = 0
    senior_salary: float = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CareerRecommendation":
        """Build a recommendation from generator output.

        Accepts either flat salary keys or the generator's nested
        ``prospects.average_salary`` block. Salaries may arrive as numeric
        strings; a missing or null salary counts as 0.

        Raises:
            KeyError: If title or match_score is missing
            TypeError: If a field has the wrong type
            ValueError: If a salary or score is not numeric
        """
        prospects = data.get("prospects") or {}
        salary = prospects.get("average_salary") or {}
        return cls(
            title=_as_text(data["title"], "title"),
            match_score=float(_as_number(data["match_score"], "match_score")),
            demand_level=_as_text(
                data.get("demand_level", prospects.get("demand_level")), "demand_level", default=""
            ),
            entry_salary=_as_number(data.get("entry_salary", salary.get("entry")), "entry_salary"),
            mid_salary=_as_number(data.get("mid_salary", salary.get("mid")), "mid_salary"),
            senior_salary=_as_number(
                data.get("senior_salary", salary.get("senior")), "senior_salary"
            ),
        )


@dataclass(frozen=True)
class ProcessingMetadata:
    """Metadata of the recommendation generation run."""
    ai_model: str
    processing_time: float              # Milliseconds
    generated_at: str                   # ISO-8601

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProcessingMetadata":
        return cls(
            ai_model=_as_text(data.get("ai_model"), "ai_model", default="unknown"),
            processing_time=_as_number(data.get("processing_time"), "processing_time"),
            generated_at=_as_text(data["generated_at"], "generated_at"),
        )


ProfileInput = Union[StudentProfile, Mapping[str, Any]]
RecommendationInput = Union[CareerRecommendation, Mapping[str, Any]]
MetadataInput = Union[ProcessingMetadata, Mapping[str, Any]]


def coerce_profile(profile: ProfileInput) -> StudentProfile:
    """Accept either a StudentProfile or its JSON dict."""
    if isinstance(profile, StudentProfile):
        return profile
    return StudentProfile.from_dict(profile)


def coerce_recommendations(
    recommendations: List[RecommendationInput],
) -> List[CareerRecommendation]:
    """Accept a list mixing CareerRecommendation objects and dicts."""
    return [
        rec if isinstance(rec, CareerRecommendation) else CareerRecommendation.from_dict(rec)
        for rec in recommendations
    ]


def coerce_metadata(metadata: MetadataInput) -> ProcessingMetadata:
    """Accept either ProcessingMetadata or its JSON dict."""
    if isinstance(metadata, ProcessingMetadata):
        return metadata
    return ProcessingMetadata.from_dict(metadata)
