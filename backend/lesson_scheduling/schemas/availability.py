# backend/lesson_scheduling/schemas/availability.py
"""Weekly availability and time-off request schemas."""

import datetime
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from ..core.enums import TimeOffReason
from ._strict_base import StrictRequestModel

DateType = datetime.date
TimeType = datetime.time


class AvailabilityBlockCreate(StrictRequestModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday .. 6 = Saturday")
    start_time: TimeType
    end_time: TimeType
    notes: Optional[str] = None

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: TimeType, info: Any) -> TimeType:
        """Ensure end time is after start time."""
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("start_time")
            and v <= info.data["start_time"]
        ):
            raise ValueError("End time must be after start time")
        return v


class TimeOffCreate(StrictRequestModel):
    start_date: DateType
    end_date: DateType
    start_time: Optional[TimeType] = None
    end_time: Optional[TimeType] = None
    reason: TimeOffReason = TimeOffReason.OTHER
    notes: Optional[str] = None
    is_approved: bool = True
    approved_by: Optional[str] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "TimeOffCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be before or equal to end_date")
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self
