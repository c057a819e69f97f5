# backend/lesson_scheduling/schemas/recurring_pattern.py
"""Recurring pattern request and generation result schemas."""

import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.enums import RecurrenceType
from ._strict_base import StrictModel, StrictRequestModel
from .scheduling import SchedulingConflict

DateType = datetime.date
TimeType = datetime.time


class RecurringPatternCreate(StrictRequestModel):
    pattern_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    student_id: str
    instructor_id: str
    vehicle_id: Optional[str] = None
    lesson_type: str = "behind_wheel"
    duration: int = Field(gt=0)
    cost: Optional[Decimal] = Field(default=None, ge=0)
    recurrence_type: RecurrenceType
    days_of_week: Optional[List[int]] = None
    time_of_day: TimeType
    start_date: DateType
    end_date: Optional[DateType] = None
    max_occurrences: Optional[int] = Field(default=None, gt=0)

    @field_validator("days_of_week")
    @classmethod
    def _normalize_days(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is None:
            return None
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @model_validator(mode="after")
    def _check_rule(self) -> "RecurringPatternCreate":
        if self.recurrence_type.uses_days_of_week and not self.days_of_week:
            raise ValueError(f"{self.recurrence_type.value} patterns require days_of_week")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class GeneratedOccurrence(StrictModel):
    occurrence_number: int
    scheduled_date: DateType
    lesson_id: Optional[str] = None
    created: bool = False
    conflicts: List[SchedulingConflict] = Field(default_factory=list)


class GenerationResult(StrictModel):
    pattern_id: str
    lessons_generated: int = 0
    occurrences_counted: int = 0
    skipped_exception_dates: List[DateType] = Field(default_factory=list)
    occurrences: List[GeneratedOccurrence] = Field(default_factory=list)
    safety_cap_reached: bool = False

    @property
    def lesson_ids(self) -> List[str]:
        return [o.lesson_id for o in self.occurrences if o.created and o.lesson_id]
