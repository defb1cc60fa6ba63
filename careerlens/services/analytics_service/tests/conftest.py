"""Shared fixtures for Analytics Service tests."""
from datetime import datetime, timezone

import pytest

from careerlens.shared.models import (
    Academic,
    AnonymizedRecord,
    Demographics,
    ProcessingInfo,
    RecommendationSummary,
    Socioeconomic,
    format_timestamp,
)
from careerlens.shared.storage import StorageConfig
from careerlens.services.analytics_service.config import AnalyticsConfig
from careerlens.services.analytics_service.partition_store import PartitionStore
from careerlens.services.analytics_service.service import AnalyticsService


def build_profile(**overrides):
    """Submission JSON for one student."""
    profile = {
        "id": "profile_001",
        "personal_info": {
            "name": "Asha Verma",
            "grade": "12",
            "board": "CBSE",
            "language_preference": "english",
            "gender": "female",
            "category": "General",
        },
        "academic_data": {
            "interests": ["Science", "Technology"],
            "subjects": ["Physics", "Mathematics"],
            "performance": "excellent",
            "favorite_subjects": ["Physics"],
            "difficult_subjects": ["History"],
            "extracurricular_activities": ["Robotics", "Debate"],
        },
        "socioeconomic_data": {
            "location": "Andheri, Mumbai, Maharashtra",
            "family_background": "Father is a government clerk",
            "rural_urban": "urban",
            "internet_access": True,
            "device_access": ["smartphone", "laptop"],
            "economic_factors": ["stable income"],
        },
        "family_income": "5-10 Lakhs",
    }
    profile.update(overrides)
    return profile


def build_recommendations():
    """Generator output for four careers, best match first."""
    return [
        {
            "title": "Software Engineer",
            "match_score": 92,
            "prospects": {
                "demand_level": "high",
                "average_salary": {"entry": 600000, "mid": 1500000, "senior": 3000000},
            },
        },
        {
            "title": "Data Scientist",
            "match_score": 88,
            "prospects": {
                "demand_level": "high",
                "average_salary": {"entry": 800000, "mid": 1800000, "senior": 3500000},
            },
        },
        {
            "title": "Mechanical Engineer",
            "match_score": 75,
            "prospects": {
                "demand_level": "medium",
                "average_salary": {"entry": 400000, "mid": 900000, "senior": 1800000},
            },
        },
        {
            "title": "Architect",
            "match_score": 70,
            "prospects": {
                "demand_level": "low",
                "average_salary": {"entry": 350000, "mid": 800000, "senior": 1500000},
            },
        },
    ]


PROCESSING_META = {
    "ai_model": "gpt-4",
    "processing_time": 1500,
    "generated_at": "2024-01-15T10:30:00.000Z",
}


def build_record(
    created=None,
    record_id="analytics_1_abcdef",
    grade="12",
    board="CBSE",
    location="Maharashtra",
    rural_urban="urban",
    language="english",
    income_range="5-10 Lakhs",
    match_score=80,
    titles=("Software Engineer", "Data Scientist", "Doctor"),
    entry_salaries=(500000, 700000),
    processing_time=1000,
    ai_model="gpt-4",
    device_access=("smartphone",),
    interests=("Science",),
):
    """AnonymizedRecord with sensible defaults, built directly."""
    created = created or datetime.now(timezone.utc)
    return AnonymizedRecord(
        id=record_id,
        timestamp=format_timestamp(created),
        profile_hash="0123456789abcdef",
        demographics=Demographics(
            grade=grade,
            board=board,
            location=location,
            rural_urban=rural_urban,
            language_preference=language,
            category="General",
            gender="female",
        ),
        socioeconomic=Socioeconomic(
            income_range=income_range,
            family_background="service",
            internet_access=True,
            device_access=tuple(device_access),
            economic_factors=("stable income",),
        ),
        academic=Academic(
            interests=tuple(interests),
            subjects=("Physics",),
            performance="good",
            favorite_subjects=("Physics",),
            difficult_subjects=(),
            extracurricular_activities=("Robotics",),
        ),
        recommendation_summary=RecommendationSummary(
            total_count=len(titles),
            average_match_score=match_score,
            top_career_titles=tuple(titles),
            demand_levels=("high",) * len(titles),
            entry_salaries=tuple(entry_salaries),
        ),
        processing=ProcessingInfo(
            ai_model=ai_model,
            processing_time=processing_time,
            generated_at=format_timestamp(created),
        ),
    )


@pytest.fixture
def storage_config(tmp_path):
    return StorageConfig(data_dir=str(tmp_path / "analytics"))


@pytest.fixture
def store(storage_config):
    """Initialized store in a temporary directory."""
    s = PartitionStore(storage_config)
    s.initialize()
    return s


@pytest.fixture
def service(store):
    """Service over the temporary store; writer threads stopped afterwards."""
    svc = AnalyticsService(config=AnalyticsConfig(writer_threads=4), store=store)
    yield svc
    svc.close()


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def make_profile():
    return build_profile


@pytest.fixture
def recommendations():
    return build_recommendations()


@pytest.fixture
def processing_meta():
    return dict(PROCESSING_META)
