# backend/lesson_scheduling/schemas/scheduling_settings.py
"""
Scheduling settings schemas.

SchedulingSettingsSnapshot is the immutable value passed into every
scheduling computation. SchedulingSettingsUpdate is the typed partial
update: only fields the caller explicitly set are applied.
"""

import datetime
from typing import Any, Dict, Optional

from pydantic import Field, model_validator

from ._strict_base import FrozenModel, StrictRequestModel


class SchedulingSettingsSnapshot(FrozenModel):
    tenant_id: str
    buffer_time_between_lessons: int = Field(ge=0)
    buffer_time_before_first_lesson: int = Field(ge=0)
    buffer_time_after_last_lesson: int = Field(ge=0)
    min_hours_advance_booking: int = Field(ge=0)
    max_days_advance_booking: int = Field(ge=0)
    default_lesson_duration: int = Field(gt=0)
    allow_back_to_back_lessons: bool
    default_work_start_time: datetime.time
    default_work_end_time: datetime.time

    @property
    def enforced_buffer_minutes(self) -> int:
        """Spacing the conflict checker enforces between lessons (0 when back-to-back is allowed)."""
        return 0 if self.allow_back_to_back_lessons else self.buffer_time_between_lessons


class SchedulingSettingsUpdate(StrictRequestModel):
    buffer_time_between_lessons: Optional[int] = Field(default=None, ge=0)
    buffer_time_before_first_lesson: Optional[int] = Field(default=None, ge=0)
    buffer_time_after_last_lesson: Optional[int] = Field(default=None, ge=0)
    min_hours_advance_booking: Optional[int] = Field(default=None, ge=0)
    max_days_advance_booking: Optional[int] = Field(default=None, ge=0)
    default_lesson_duration: Optional[int] = Field(default=None, gt=0)
    allow_back_to_back_lessons: Optional[bool] = None
    default_work_start_time: Optional[datetime.time] = None
    default_work_end_time: Optional[datetime.time] = None

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> "SchedulingSettingsUpdate":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be set to null")
        if (
            self.default_work_start_time is not None
            and self.default_work_end_time is not None
            and self.default_work_start_time >= self.default_work_end_time
        ):
            raise ValueError("default_work_start_time must be before default_work_end_time")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields the caller explicitly set."""
        return {name: getattr(self, name) for name in self.model_fields_set}
