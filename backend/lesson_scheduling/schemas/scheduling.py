# backend/lesson_scheduling/schemas/scheduling.py
"""
Slot search and conflict detection schemas.

Instants are naive datetimes in the tenant's single implicit timezone,
at minute resolution.
"""

import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.enums import ConflictType
from ._strict_base import FrozenModel, StrictModel, StrictRequestModel

DateType = datetime.date
DateTimeType = datetime.datetime


class AvailabilityRequest(StrictRequestModel):
    """Request to find open slots."""

    tenant_id: str
    instructor_id: Optional[str] = None  # None searches every active instructor
    vehicle_id: Optional[str] = None
    start_date: DateType
    end_date: DateType
    duration: int = Field(gt=0, description="Lesson length in minutes")
    # Informational only; student conflicts are reported at validation time
    student_id: Optional[str] = None
    respect_advance_window: bool = False
    now: Optional[DateTimeType] = None

    @model_validator(mode="after")
    def _check_range(self) -> "AvailabilityRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if self.respect_advance_window and self.now is None:
            raise ValueError("now is required when respect_advance_window is set")
        return self


class TimeSlot(FrozenModel):
    """Candidate, not-yet-committed lesson time."""

    date: DateType
    start_time: DateTimeType
    end_time: DateTimeType
    instructor_id: str
    vehicle_id: Optional[str] = None
    duration: int


class SchedulingConflict(FrozenModel):
    type: ConflictType
    message: str
    conflicting_lesson_id: Optional[str] = None
    conflicting_time_off_id: Optional[str] = None


class ValidationResult(StrictModel):
    valid: bool
    conflicts: List[SchedulingConflict] = Field(default_factory=list)

    @classmethod
    def from_conflicts(cls, conflicts: List[SchedulingConflict]) -> "ValidationResult":
        return cls(valid=len(conflicts) == 0, conflicts=conflicts)


class ProposedLesson(StrictRequestModel):
    """A fully specified lesson to validate or commit."""

    tenant_id: str
    instructor_id: str
    student_id: str
    vehicle_id: Optional[str] = None
    start_time: DateTimeType
    end_time: DateTimeType
    exclude_lesson_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _minute_resolution(cls, v: DateTimeType) -> DateTimeType:
        return v.replace(second=0, microsecond=0)

    @model_validator(mode="after")
    def _check_order(self) -> "ProposedLesson":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.end_time.date() != self.start_time.date():
            raise ValueError("A lesson must start and end on the same date")
        return self

    @property
    def duration(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


class LessonCreate(ProposedLesson):
    lesson_type: str = "behind_wheel"
    cost: Optional[Decimal] = Field(default=None, ge=0)
    buffer_time_after: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
