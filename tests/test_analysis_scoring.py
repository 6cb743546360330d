"""Tests for the recency score calculator."""

from datetime import date, datetime, timedelta, timezone

import pytest

from citation_recency.analysis.scoring import VALID_SCORES, age_in_days, calculate_recency_score

NOW = date(2024, 6, 15)


def _days_ago(days: int) -> date:
    return NOW - timedelta(days=days)


class TestCalculateRecencyScore:
    """Bucket boundaries are inclusive of the upper age."""

    @pytest.mark.parametrize(
        ("age", "score"),
        [
            (0, 100),
            (30, 100),
            (31, 90),
            (90, 90),
            (91, 80),
            (180, 80),
            (365, 70),
            (366, 50),
            (730, 50),
            (1095, 30),
            (1825, 20),
            (3650, 10),
            (3651, 0),
        ],
    )
    def test_buckets(self, age, score):
        assert calculate_recency_score(_days_ago(age), NOW) == score

    def test_future_date(self):
        assert calculate_recency_score(NOW + timedelta(days=10), NOW) == 100

    def test_datetime_now(self):
        now = datetime(2024, 6, 15, 23, 59, tzinfo=timezone.utc)
        assert calculate_recency_score(_days_ago(31), now) == 90

    def test_scores_are_valid(self):
        for age in range(0, 4000, 37):
            assert calculate_recency_score(_days_ago(age), NOW) in VALID_SCORES


class TestAgeInDays:
    def test_calendar_days(self):
        assert age_in_days(date(2024, 6, 1), NOW) == 14

    def test_future_is_negative(self):
        assert age_in_days(date(2024, 6, 20), NOW) == -5
