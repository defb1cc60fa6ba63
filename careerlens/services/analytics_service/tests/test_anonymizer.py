"""Tests for anonymization of submission events."""
import json
import re
from datetime import datetime, timezone

import pytest

from careerlens.shared.models import CareerRecommendation
from careerlens.services.analytics_service.anonymizer import (
    FAMILY_BACKGROUND_VALUES,
    UNKNOWN,
    Anonymizer,
    AnonymizationError,
    anonymize_family_background,
    anonymize_id,
    anonymize_location,
    average_match_score,
    generalize_income,
    generate_record_id,
    summarize_recommendations,
)


@pytest.fixture
def anonymizer():
    return Anonymizer()


class TestAnonymizeId:

    def test_sixteen_hex_chars(self):
        result = anonymize_id("profile_001")

        assert re.fullmatch(r"[0-9a-f]{16}", result)

    def test_deterministic(self):
        assert anonymize_id("profile_001") == anonymize_id("profile_001")

    def test_does_not_contain_input(self):
        assert "profile" not in anonymize_id("profile_001")


class TestAnonymizeLocation:

    def test_last_segment_kept(self):
        assert anonymize_location("Andheri, Mumbai, Maharashtra") == "Maharashtra"

    def test_two_segments(self):
        assert anonymize_location("Mumbai, Maharashtra") == "Maharashtra"

    def test_no_comma_passes_through(self):
        assert anonymize_location("Springfield") == "Springfield"

    def test_trailing_comma_ignored(self):
        assert anonymize_location("Pune, Maharashtra, ") == "Maharashtra"

    def test_known_region_canonicalized(self):
        assert anonymize_location("Bengaluru, karnataka") == "Karnataka"
        assert anonymize_location("tamil nadu") == "Tamil Nadu"

    def test_empty_is_unknown(self):
        assert anonymize_location("") == UNKNOWN
        assert anonymize_location(" , ") == UNKNOWN

    def test_strict_mode_rejects_unknown_region(self):
        assert anonymize_location("Springfield", strict=True) == UNKNOWN
        assert anonymize_location("Mumbai, Springfield", strict=True) == UNKNOWN

    def test_strict_mode_keeps_known_region(self):
        assert anonymize_location("Mumbai, Maharashtra", strict=True) == "Maharashtra"

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            anonymize_location(None)


class TestAnonymizeFamilyBackground:

    @pytest.mark.parametrize("text,expected", [
        ("Family runs a small shop", "business"),
        ("Father is an entrepreneur", "business"),
        ("Mother works a government job", "service"),
        ("Private sector employee", "service"),
        ("Farmer family", "agriculture"),
        ("Parents are doctors", "professional"),
        ("Mother is a Teacher", "professional"),
        ("Artist", "other"),
        ("", "other"),
    ])
    def test_categories(self, text, expected):
        assert anonymize_family_background(text) == expected

    def test_first_matching_category_wins(self):
        # "business" is checked before "professional"
        assert anonymize_family_background("Engineer who owns a business") == "business"

    def test_none_is_other(self):
        assert anonymize_family_background(None) == "other"

    @pytest.mark.parametrize("text", ["", "xyz", "DOCTOR", "farmer's trade", "किसान"])
    def test_result_always_in_fixed_set(self, text):
        assert anonymize_family_background(text) in FAMILY_BACKGROUND_VALUES


class TestGeneralizeIncome:

    @pytest.mark.parametrize("amount,expected", [
        (50000, "Below 1 Lakh"),
        (100000, "1-3 Lakhs"),
        (299999, "1-3 Lakhs"),
        (450000, "3-5 Lakhs"),
        (750000, "5-10 Lakhs"),
        (1500000, "10-20 Lakhs"),
        (4000000, "20-50 Lakhs"),
        (5000000, "Above 50 Lakhs"),
    ])
    def test_numeric_bucketed(self, amount, expected):
        assert generalize_income(amount) == expected

    def test_numeric_string_bucketed(self):
        assert generalize_income("2,50,000") == "1-3 Lakhs"

    def test_label_passes_through(self):
        assert generalize_income("5-10 Lakhs") == "5-10 Lakhs"

    def test_missing_is_unknown(self):
        assert generalize_income(None) == UNKNOWN
        assert generalize_income("  ") == UNKNOWN

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            generalize_income(-1)


class TestRecommendationSummary:

    def test_average_rounds_half_up(self):
        recs = [
            CareerRecommendation(title="A", match_score=80, demand_level="high"),
            CareerRecommendation(title="B", match_score=81, demand_level="low"),
        ]

        assert average_match_score(recs) == 81

    def test_average_of_nothing_is_zero(self):
        assert average_match_score([]) == 0

    def test_top_titles_keep_given_order(self):
        recs = [
            CareerRecommendation(title=t, match_score=s, demand_level="high")
            for t, s in [("Low", 10), ("High", 90), ("Mid", 50), ("Extra", 99)]
        ]

        summary = summarize_recommendations(recs)

        assert summary.top_career_titles == ("Low", "High", "Mid")
        assert summary.total_count == 4
        assert len(summary.demand_levels) == 4


class TestGenerateRecordId:

    def test_format(self):
        assert re.fullmatch(r"analytics_1705314600000_[0-9a-z]{6}", generate_record_id(1705314600000))

    def test_unique(self):
        assert len({generate_record_id(1) for _ in range(50)}) > 1


class TestAnonymizer:

    def test_full_record(self, anonymizer, make_profile, recommendations, processing_meta):
        now = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

        record = anonymizer.anonymize(make_profile(), recommendations, processing_meta, now=now)

        assert record.timestamp == "2024-01-15T10:30:00.000Z"
        assert record.id.startswith("analytics_1705314600000_")
        assert record.profile_hash == anonymize_id("profile_001")
        assert record.demographics.location == "Maharashtra"
        assert record.demographics.grade == "12"
        assert record.socioeconomic.family_background == "service"
        assert record.socioeconomic.income_range == "5-10 Lakhs"
        assert record.recommendation_summary.total_count == 4
        # (92 + 88 + 75 + 70) / 4 = 81.25
        assert record.recommendation_summary.average_match_score == 81
        assert record.recommendation_summary.top_career_titles == (
            "Software Engineer", "Data Scientist", "Mechanical Engineer",
        )
        assert record.recommendation_summary.entry_salaries == (600000, 800000, 400000, 350000)
        assert record.processing.ai_model == "gpt-4"

    def test_no_raw_identifiers_in_output(self, anonymizer, make_profile, recommendations, processing_meta):
        record = anonymizer.anonymize(make_profile(), recommendations, processing_meta)
        serialized = json.dumps(record.to_dict())

        assert "Asha Verma" not in serialized
        assert "profile_001" not in serialized
        assert "Andheri" not in serialized
        assert "Mumbai" not in serialized
        assert "government clerk" not in serialized

    def test_numeric_income_bucketed(self, anonymizer, make_profile, recommendations, processing_meta):
        record = anonymizer.anonymize(
            make_profile(family_income=250000), recommendations, processing_meta
        )

        assert record.socioeconomic.income_range == "1-3 Lakhs"

    def test_no_recommendations(self, anonymizer, make_profile, processing_meta):
        record = anonymizer.anonymize(make_profile(), [], processing_meta)

        assert record.recommendation_summary.total_count == 0
        assert record.recommendation_summary.average_match_score == 0

    def test_strict_location(self, make_profile, recommendations, processing_meta):
        profile = make_profile()
        profile["socioeconomic_data"] = dict(profile["socioeconomic_data"], location="Springfield")

        record = Anonymizer(strict_location=True).anonymize(profile, recommendations, processing_meta)

        assert record.demographics.location == UNKNOWN

    def test_malformed_profile_raises(self, anonymizer, recommendations, processing_meta):
        with pytest.raises(AnonymizationError):
            anonymizer.anonymize({"id": "p1"}, recommendations, processing_meta)

    def test_malformed_recommendation_raises(self, anonymizer, make_profile, processing_meta):
        with pytest.raises(AnonymizationError):
            anonymizer.anonymize(make_profile(), [{"match_score": 90}], processing_meta)

    @pytest.mark.parametrize("field", ["rural_urban", "location"])
    def test_null_segment_field_raises(self, anonymizer, make_profile, recommendations, processing_meta, field):
        profile = make_profile()
        profile["socioeconomic_data"] = dict(profile["socioeconomic_data"], **{field: None})

        with pytest.raises(AnonymizationError):
            anonymizer.anonymize(profile, recommendations, processing_meta)

    def test_null_language_raises(self, anonymizer, make_profile, recommendations, processing_meta):
        profile = make_profile()
        profile["personal_info"] = dict(profile["personal_info"], language_preference=None)

        with pytest.raises(AnonymizationError):
            anonymizer.anonymize(profile, recommendations, processing_meta)

    def test_string_and_null_salaries_coerced(self, anonymizer, make_profile, processing_meta):
        recs = [
            {"title": "Nurse", "match_score": "80",
             "prospects": {"average_salary": {"entry": "300000", "mid": None}}},
            {"title": "Chef", "match_score": 60, "entry_salary": 250000.5},
        ]

        summary = anonymizer.anonymize(make_profile(), recs, processing_meta).recommendation_summary

        assert summary.entry_salaries == (300000, 250000.5)
        assert summary.mid_salaries == (0, 0)
        assert all(isinstance(s, (int, float)) for s in summary.entry_salaries)
        assert summary.average_match_score == 70

    @pytest.mark.parametrize("salary", ["three lakh", "NaN", {"amount": 1}, True])
    def test_non_numeric_salary_raises(self, anonymizer, make_profile, processing_meta, salary):
        recs = [{"title": "Nurse", "match_score": 80, "entry_salary": salary}]

        with pytest.raises(AnonymizationError):
            anonymizer.anonymize(make_profile(), recs, processing_meta)

    def test_string_processing_time_coerced(self, anonymizer, make_profile, recommendations):
        meta = {"ai_model": "gpt-4", "processing_time": "1250", "generated_at": "2024-01-15T10:30:00.000Z"}

        record = anonymizer.anonymize(make_profile(), recommendations, meta)

        assert record.processing.processing_time == 1250

    def test_non_numeric_processing_time_raises(self, anonymizer, make_profile, recommendations):
        meta = {"ai_model": "gpt-4", "processing_time": "slow", "generated_at": "2024-01-15T10:30:00.000Z"}

        with pytest.raises(AnonymizationError):
            anonymizer.anonymize(make_profile(), recommendations, meta)

    def test_anonymization_error_is_value_error(self):
        assert issubclass(AnonymizationError, ValueError)
