"""Wall-clock and calendar helpers at minute resolution."""

from datetime import date, datetime, time, timedelta
import re
from typing import Union

from ..core.exceptions import InvalidTimeFormatException

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

TimeLike = Union[str, time]


def to_minutes(value: TimeLike) -> int:
    """Parse "HH:MM" or "HH:MM:SS" (or a time) into minutes since midnight.

    Seconds are accepted but truncated; the core works at minute resolution.
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise InvalidTimeFormatException(value)

    match = _TIME_RE.match(value.strip())
    if not match:
        raise InvalidTimeFormatException(value)

    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidTimeFormatException(value)
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> time:
    """Convert minutes since midnight back into a time (0 <= minutes < 1440)."""
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise InvalidTimeFormatException(minutes)
    return time(minutes // 60, minutes % 60)


def time_to_string(t: time) -> str:
    """Always return HH:MM:SS format"""
    return t.strftime("%H:%M:%S")


def day_of_week(value: Union[date, datetime]) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def date_key(value: Union[date, datetime]) -> str:
    """Format a date as YYYY-MM-DD."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def combine_minutes(target_date: date, minutes: int) -> datetime:
    """Resolve a date plus minutes since midnight into a naive datetime."""
    return datetime.combine(target_date, time(0, 0)) + timedelta(minutes=minutes)


def datetime_to_minutes(value: datetime) -> int:
    return value.hour * 60 + value.minute


def date_range(start_date: date, end_date: date):
    """Yield each date from start_date through end_date inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)
