"""Minute-resolution interval arithmetic: overlap rules and the gap finder.

All values are minutes since midnight on a single calendar date.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..core.exceptions import ValidationException


@dataclass(frozen=True)
class TimeWindow:
    """An open [start, end) window of minutes on one date."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValidationException(
                f"Window start ({self.start}) must be before end ({self.end})",
                code="INVALID_WINDOW",
            )

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


@dataclass(frozen=True)
class BusyInterval:
    """A committed interval; buffer_after of None means "use the scope default"."""

    start: int
    end: int
    buffer_after: Optional[int] = None
    source_id: Optional[str] = None

    def effective_end(self, default_buffer: int) -> int:
        buffer = self.buffer_after if self.buffer_after is not None else default_buffer
        return self.end + buffer


def intervals_overlap(existing_start: int, existing_end: int, start: int, end: int) -> bool:
    """Overlap test used for double-booking checks.

    Any overlap counts, containment included; intervals that only touch at a
    boundary do not overlap.
    """
    return (
        (existing_start <= start and existing_end > start)
        or (existing_start < end and existing_end >= end)
        or (existing_start >= start and existing_end <= end)
    )


def half_open_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def violates_buffer(
    existing_start: int, existing_end: int, start: int, end: int, buffer_minutes: int
) -> bool:
    """True when an existing interval ends within ``buffer_minutes`` before
    ``start`` (inclusive of ``start``) or begins within ``buffer_minutes``
    after ``end`` (inclusive of ``end``)."""
    if buffer_minutes <= 0:
        return False
    ends_too_close = start - buffer_minutes < existing_end <= start
    starts_too_close = end <= existing_start < end + buffer_minutes
    return ends_too_close or starts_too_close


def find_gaps(
    window: TimeWindow,
    busy: Iterable[BusyInterval],
    duration: int,
    default_buffer: int = 0,
) -> List[TimeWindow]:
    """Return the earliest-fitting ``duration`` slot in each free gap of ``window``.

    Exactly one candidate is emitted per gap. Busy intervals are walked in
    start order with a cursor that only moves forward, so intervals lying
    entirely before the window (or before an earlier interval's buffer) are
    absorbed and no candidate ever leaves the window.
    """
    if duration <= 0:
        raise ValidationException("Duration must be positive", code="INVALID_DURATION")

    slots: List[TimeWindow] = []
    cursor = window.start

    for interval in sorted(busy, key=lambda iv: (iv.start, iv.end)):
        if interval.start >= window.end:
            break
        if interval.start - cursor >= duration:
            slots.append(TimeWindow(cursor, cursor + duration))
        cursor = max(cursor, interval.effective_end(default_buffer))
        if cursor >= window.end:
            return slots

    if window.end - cursor >= duration:
        slots.append(TimeWindow(cursor, cursor + duration))
    return slots
