"""Date stepping rules for recurring lesson patterns.

Rules:
    daily     every calendar day from the start date.
    weekly    every date whose weekday (0=Sunday) is in the pattern's set.
    biweekly  as weekly, restricted to alternate weeks. Weeks run Sunday to
              Saturday; the week containing the start date is week 0 and
              only even-numbered weeks produce occurrences.
    monthly   the start date's day-of-month in each following month, clamped
              to the month's last day. The start day stays the anchor, so
              Jan 31 -> Feb 28 (or 29) -> Mar 31.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import FrozenSet, Iterable, Iterator, Optional

from dateutil.relativedelta import relativedelta

from ..core.enums import RecurrenceType
from ..core.exceptions import ValidationException
from ..utils.time_helpers import day_of_week


@dataclass(frozen=True)
class RecurrenceRule:
    recurrence_type: RecurrenceType
    start_date: date
    days_of_week: FrozenSet[int] = frozenset()

    @classmethod
    def build(
        cls,
        recurrence_type: str,
        start_date: date,
        days_of_week: Optional[Iterable[int]] = None,
    ) -> "RecurrenceRule":
        try:
            kind = RecurrenceType(recurrence_type)
        except ValueError:
            raise ValidationException(
                f"Unknown recurrence type: {recurrence_type!r}", code="INVALID_RECURRENCE"
            )

        days = frozenset(int(d) for d in (days_of_week or []))
        if any(d < 0 or d > 6 for d in days):
            raise ValidationException(
                "days_of_week values must be between 0 (Sunday) and 6 (Saturday)",
                code="INVALID_RECURRENCE",
            )
        if kind.uses_days_of_week and not days:
            raise ValidationException(
                f"{kind.value} patterns require at least one day of week",
                code="INVALID_RECURRENCE",
            )
        return cls(recurrence_type=kind, start_date=start_date, days_of_week=days)


def week_start(value: date) -> date:
    """Sunday of the week containing ``value``."""
    return value - timedelta(days=day_of_week(value))


def _in_active_week(rule: RecurrenceRule, value: date) -> bool:
    if rule.recurrence_type is not RecurrenceType.BIWEEKLY:
        return True
    weeks = (week_start(value) - week_start(rule.start_date)).days // 7
    return weeks % 2 == 0


def _matches(rule: RecurrenceRule, value: date) -> bool:
    return day_of_week(value) in rule.days_of_week and _in_active_week(rule, value)


def _next_monthly(rule: RecurrenceRule, current: date) -> date:
    # Offset from the start date; a clamped month never moves the anchor
    months = (current.year - rule.start_date.year) * 12 + current.month - rule.start_date.month
    return rule.start_date + relativedelta(months=months + 1)


def first_occurrence(rule: RecurrenceRule) -> date:
    if not rule.recurrence_type.uses_days_of_week:
        return rule.start_date
    candidate = rule.start_date
    # At most two weeks ahead for biweekly rules
    while not _matches(rule, candidate):
        candidate += timedelta(days=1)
    return candidate


def next_occurrence(rule: RecurrenceRule, current: date) -> date:
    """Next candidate date strictly after ``current``."""
    if rule.recurrence_type is RecurrenceType.DAILY:
        return current + timedelta(days=1)
    if rule.recurrence_type is RecurrenceType.MONTHLY:
        return _next_monthly(rule, current)

    candidate = current + timedelta(days=1)
    for _ in range(14):
        if _matches(rule, candidate):
            return candidate
        candidate += timedelta(days=1)
    # Unreachable for a validated rule
    raise ValidationException("Recurrence rule produces no dates", code="INVALID_RECURRENCE")


def iter_candidate_dates(rule: RecurrenceRule) -> Iterator[date]:
    """Endless stream of candidate dates; callers bound it."""
    current = first_occurrence(rule)
    while True:
        yield current
        current = next_occurrence(rule, current)
