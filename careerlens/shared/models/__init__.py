"""Shared domain models for CareerLens platform."""
from .profile import (
    PersonalInfo,
    AcademicData,
    SocioeconomicData,
    StudentProfile,
    CareerRecommendation,
    ProcessingMetadata,
    coerce_profile,
    coerce_recommendations,
    coerce_metadata,
)
from .analytics import (
    Demographics,
    Socioeconomic,
    Academic,
    RecommendationSummary,
    ProcessingInfo,
    AnonymizedRecord,
    parse_timestamp,
    format_timestamp,
)

__all__ = [
    "PersonalInfo",
    "AcademicData",
    "SocioeconomicData",
    "StudentProfile",
    "CareerRecommendation",
    "ProcessingMetadata",
    "coerce_profile",
    "coerce_recommendations",
    "coerce_metadata",
    "Demographics",
    "Socioeconomic",
    "Academic",
    "RecommendationSummary",
    "ProcessingInfo",
    "AnonymizedRecord",
    "parse_timestamp",
    "format_timestamp",
]
