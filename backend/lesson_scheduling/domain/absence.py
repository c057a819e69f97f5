"""Approved time off as a closed variant: all-day or bounded by times."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ..core.exceptions import ValidationException
from ..utils.time_helpers import to_minutes
from .intervals import BusyInterval, half_open_overlap


@dataclass(frozen=True)
class AllDayAbsence:
    time_off_id: str


@dataclass(frozen=True)
class BoundedAbsence:
    time_off_id: str
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return half_open_overlap(start, end, self.start, self.end)

    def as_busy_interval(self) -> BusyInterval:
        return BusyInterval(self.start, self.end, buffer_after=0, source_id=self.time_off_id)


Absence = Union[AllDayAbsence, BoundedAbsence]


def absence_from_record(record: Any) -> Absence:
    """Build the variant from a time-off row (start_time/end_time set together or not at all)."""
    start_time = getattr(record, "start_time", None)
    end_time = getattr(record, "end_time", None)
    if start_time is None and end_time is None:
        return AllDayAbsence(time_off_id=record.id)
    if start_time is None or end_time is None:
        raise ValidationException(
            "Time off must set both start and end time or neither",
            code="INVALID_TIME_OFF",
            details={"time_off_id": record.id},
        )
    start, end = to_minutes(start_time), to_minutes(end_time)
    if start >= end:
        raise ValidationException(
            "Time off start time must be before end time",
            code="INVALID_TIME_OFF",
            details={"time_off_id": record.id},
        )
    return BoundedAbsence(time_off_id=record.id, start=start, end=end)
