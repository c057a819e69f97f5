from datetime import date
from itertools import islice

import pytest

from lesson_scheduling.core.enums import RecurrenceType
from lesson_scheduling.core.exceptions import ValidationException
from lesson_scheduling.domain.recurrence import (
    RecurrenceRule,
    first_occurrence,
    iter_candidate_dates,
    next_occurrence,
    week_start,
)

MON, WED = 1, 3


def _take(rule, n):
    return list(islice(iter_candidate_dates(rule), n))


class TestBuild:
    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationException):
            RecurrenceRule.build("yearly", date(2025, 1, 6))

    def test_weekly_requires_days(self):
        with pytest.raises(ValidationException):
            RecurrenceRule.build("weekly", date(2025, 1, 6), [])
        with pytest.raises(ValidationException):
            RecurrenceRule.build("biweekly", date(2025, 1, 6), None)

    def test_day_out_of_range_rejected(self):
        with pytest.raises(ValidationException):
            RecurrenceRule.build("weekly", date(2025, 1, 6), [1, 7])

    def test_days_are_deduplicated(self):
        rule = RecurrenceRule.build("weekly", date(2025, 1, 6), [3, 1, 1])
        assert rule.recurrence_type is RecurrenceType.WEEKLY
        assert rule.days_of_week == frozenset({1, 3})

    def test_daily_and_monthly_ignore_days(self):
        assert RecurrenceRule.build("daily", date(2025, 1, 6)).days_of_week == frozenset()


def test_week_start_is_sunday():
    assert week_start(date(2025, 1, 8)) == date(2025, 1, 5)
    assert week_start(date(2025, 1, 5)) == date(2025, 1, 5)


def test_daily_steps_one_day():
    rule = RecurrenceRule.build("daily", date(2025, 2, 27))
    assert _take(rule, 3) == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1)]


class TestWeekly:
    def test_first_occurrence_aligns_to_matching_weekday(self):
        # Starts on a Sunday; first Mon/Wed is the next day
        rule = RecurrenceRule.build("weekly", date(2025, 1, 5), [MON, WED])
        assert first_occurrence(rule) == date(2025, 1, 6)

    def test_mon_wed_sequence(self):
        rule = RecurrenceRule.build("weekly", date(2025, 1, 6), [MON, WED])
        assert _take(rule, 5) == [
            date(2025, 1, 6),
            date(2025, 1, 8),
            date(2025, 1, 13),
            date(2025, 1, 15),
            date(2025, 1, 20),
        ]

    def test_next_is_strictly_after_current(self):
        rule = RecurrenceRule.build("weekly", date(2025, 1, 6), [MON])
        assert next_occurrence(rule, date(2025, 1, 6)) == date(2025, 1, 13)


class TestBiweekly:
    def test_start_week_is_active_and_next_week_skipped(self):
        rule = RecurrenceRule.build("biweekly", date(2025, 1, 6), [MON, WED])
        assert _take(rule, 5) == [
            date(2025, 1, 6),
            date(2025, 1, 8),
            date(2025, 1, 20),
            date(2025, 1, 22),
            date(2025, 2, 3),
        ]

    def test_start_after_last_matching_day_of_anchor_week(self):
        # Thursday start: Monday of week 0 has passed and week 1 is inactive
        rule = RecurrenceRule.build("biweekly", date(2025, 1, 9), [MON])
        assert first_occurrence(rule) == date(2025, 1, 20)
        assert next_occurrence(rule, date(2025, 1, 20)) == date(2025, 2, 3)

    def test_single_sunday_rule(self):
        rule = RecurrenceRule.build("biweekly", date(2025, 1, 5), [0])
        assert _take(rule, 3) == [date(2025, 1, 5), date(2025, 1, 19), date(2025, 2, 2)]


class TestMonthly:
    def test_same_day_each_month(self):
        rule = RecurrenceRule.build("monthly", date(2025, 1, 15))
        assert _take(rule, 3) == [date(2025, 1, 15), date(2025, 2, 15), date(2025, 3, 15)]

    def test_short_months_clamp_without_drifting(self):
        rule = RecurrenceRule.build("monthly", date(2025, 1, 31))
        assert _take(rule, 4) == [
            date(2025, 1, 31),
            date(2025, 2, 28),
            date(2025, 3, 31),
            date(2025, 4, 30),
        ]

    def test_leap_year_february(self):
        rule = RecurrenceRule.build("monthly", date(2024, 1, 30))
        assert _take(rule, 2) == [date(2024, 1, 30), date(2024, 2, 29)]

    def test_december_rolls_into_next_year(self):
        rule = RecurrenceRule.build("monthly", date(2025, 12, 10))
        assert _take(rule, 2) == [date(2025, 12, 10), date(2026, 1, 10)]

    def test_anchor_survives_consecutive_short_months(self):
        rule = RecurrenceRule.build("monthly", date(2025, 8, 31))
        assert _take(rule, 5) == [
            date(2025, 8, 31),
            date(2025, 9, 30),
            date(2025, 10, 31),
            date(2025, 11, 30),
            date(2025, 12, 31),
        ]
