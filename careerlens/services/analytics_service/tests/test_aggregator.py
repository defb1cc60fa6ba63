"""Tests for record aggregation."""
from datetime import datetime, timedelta, timezone

import pytest

from careerlens.services.analytics_service.aggregator import Aggregator, GroupAverager
from careerlens.services.analytics_service.config import AveragingMode
from careerlens.services.analytics_service.filters import AnalyticsFilter

BASE = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def aggregator():
    return Aggregator()


@pytest.fixture
def records(make_record):
    return [
        make_record(
            created=BASE,
            grade="12",
            location="Maharashtra",
            rural_urban="urban",
            language="english",
            match_score=90,
            titles=("Software Engineer", "Data Scientist", "Doctor"),
            entry_salaries=(600000, 800000),
            processing_time=1000,
            device_access=("smartphone", "laptop"),
        ),
        make_record(
            created=BASE + timedelta(hours=2),
            grade="12",
            location="Karnataka",
            rural_urban="rural",
            language="hindi",
            income_range="1-3 Lakhs",
            match_score=70,
            titles=("Teacher", "Software Engineer", "Nurse"),
            entry_salaries=(300000,),
            processing_time=2000,
            ai_model="gpt-3.5",
            device_access=("smartphone",),
        ),
        make_record(
            created=BASE + timedelta(days=1),
            grade="10",
            location="Maharashtra",
            rural_urban="urban",
            language="english",
            match_score=81,
            titles=("Software Engineer",),
            entry_salaries=(500000,),
            processing_time=1500,
            device_access=(),
        ),
    ]


class TestGroupAverager:

    def test_pairwise_is_biased_toward_latest(self):
        averager = GroupAverager(AveragingMode.PAIRWISE)
        for value in (60, 80, 100):
            averager.add("12", value)

        # round((round((60 + 80) / 2) + 100) / 2) = 85, true mean is 80
        assert averager.results() == {"12": 85}

    def test_pairwise_first_value_stored_as_is(self):
        averager = GroupAverager(AveragingMode.PAIRWISE)
        averager.add("10", 73)

        assert averager.results() == {"10": 73}

    def test_pairwise_zero_is_a_real_value(self):
        averager = GroupAverager(AveragingMode.PAIRWISE)
        averager.add("10", 0)
        averager.add("10", 50)

        assert averager.results() == {"10": 25}

    def test_mean(self):
        averager = GroupAverager(AveragingMode.MEAN)
        for value in (60, 80, 100):
            averager.add("12", value)

        assert averager.results() == {"12": 80}

    def test_mean_rounds_half_up(self):
        averager = GroupAverager(AveragingMode.MEAN)
        averager.add("12", 80)
        averager.add("12", 81)

        assert averager.results() == {"12": 81}


class TestEmptyAggregation:

    def test_zeros(self, aggregator):
        result = aggregator.aggregate([])

        assert result.total_profiles == 0
        assert result.recommendations.average_match_scores.overall == 0
        assert result.recommendations.salary_trends.average_entry == 0
        assert result.processing.average_processing_time == 0
        assert result.processing.success_rate == 100
        assert result.demographics.by_grade == {}
        assert result.daily_counts == {}

    def test_date_range_defaults_to_now(self, aggregator):
        result = aggregator.aggregate([])

        assert result.date_from == result.date_to
        assert result.date_from.endswith("Z")

    def test_date_range_from_filter(self, aggregator):
        f = AnalyticsFilter(date_from="2024-01-01", date_to="2024-01-31")

        result = aggregator.aggregate([], f)

        assert (result.date_from, result.date_to) == ("2024-01-01", "2024-01-31")


class TestAggregate:

    def test_total(self, aggregator, records):
        assert aggregator.aggregate(records).total_profiles == 3

    def test_date_range_from_records(self, aggregator, records):
        result = aggregator.aggregate(records)

        assert result.date_from == records[0].timestamp
        assert result.date_to == records[-1].timestamp

    def test_demographic_counts(self, aggregator, records):
        demo = aggregator.aggregate(records).demographics

        assert demo.by_grade == {"12": 2, "10": 1}
        assert demo.by_location == {"Maharashtra": 2, "Karnataka": 1}
        assert demo.by_rural_urban == {"urban": 2, "rural": 1}
        assert demo.by_language == {"english": 2, "hindi": 1}
        assert demo.by_gender == {"female": 3}

    def test_socioeconomic_counts(self, aggregator, records):
        socio = aggregator.aggregate(records).socioeconomic

        assert socio.by_income_range == {"5-10 Lakhs": 2, "1-3 Lakhs": 1}
        assert socio.by_internet_access == {"true": 3}
        assert socio.by_device_access == {"smartphone": 2, "laptop": 1}
        assert socio.by_family_background == {"service": 3}

    def test_list_fields_counted_per_element(self, aggregator, records):
        result = aggregator.aggregate(records)

        assert result.recommendations.top_careers == {
            "Software Engineer": 3,
            "Data Scientist": 1,
            "Doctor": 1,
            "Teacher": 1,
            "Nurse": 1,
        }
        assert result.academic.popular_interests == {"Science": 3}

    def test_overall_score_is_true_mean(self, aggregator, records):
        # (90 + 70 + 81) / 3 = 80.33
        assert aggregator.aggregate(records).recommendations.average_match_scores.overall == 80

    def test_group_scores(self, aggregator, records):
        scores = aggregator.aggregate(records).recommendations.average_match_scores

        assert scores.by_grade == {"12": 80, "10": 81}
        assert scores.by_location == {"Maharashtra": 86, "Karnataka": 70}
        assert scores.by_income_range == {"5-10 Lakhs": 86, "1-3 Lakhs": 70}

    def test_group_scores_mean_by_default(self, aggregator, records, make_record):
        extra = make_record(created=BASE + timedelta(days=2), location="Maharashtra", match_score=60)

        scores = aggregator.aggregate(records + [extra]).recommendations.average_match_scores

        # (90 + 81 + 60) / 3 = 77, pairwise would give round((86 + 60) / 2) = 73
        assert scores.by_location["Maharashtra"] == 77

    def test_group_scores_legacy_pairwise_mode(self, records, make_record):
        extra = make_record(created=BASE + timedelta(days=2), location="Maharashtra", match_score=60)

        scores = Aggregator(AveragingMode.PAIRWISE).aggregate(
            records + [extra]
        ).recommendations.average_match_scores

        assert scores.by_location["Maharashtra"] == 73
        assert scores.overall == 75

    def test_salary_mean_over_all_values(self, aggregator, records):
        trends = aggregator.aggregate(records).recommendations.salary_trends

        # (600000 + 800000 + 300000 + 500000) / 4
        assert trends.average_entry == 550000
        assert trends.average_mid == 0

    def test_processing(self, aggregator, records):
        processing = aggregator.aggregate(records).processing

        assert processing.average_processing_time == 1500
        assert processing.ai_model_usage == {"gpt-4": 2, "gpt-3.5": 1}

    def test_careers_by_segment(self, aggregator, records):
        recs = aggregator.aggregate(records).recommendations

        assert recs.careers_by_rural_urban["rural"] == {
            "Teacher": 1, "Software Engineer": 1, "Nurse": 1,
        }
        assert recs.careers_by_income_range["5-10 Lakhs"]["Software Engineer"] == 2

    def test_daily_counts(self, aggregator, records):
        assert aggregator.aggregate(records).daily_counts == {"2024-01-15": 2, "2024-01-16": 1}

    def test_to_dict_nests_date_range(self, aggregator, records):
        data = aggregator.aggregate(records).to_dict()

        assert data["date_range"] == {"from": records[0].timestamp, "to": records[-1].timestamp}
        assert "date_from" not in data
        assert data["recommendations"]["average_match_scores"]["overall"] == 80
