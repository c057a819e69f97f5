# backend/lesson_scheduling/core/enums.py
"""
Core enums for the lesson scheduling core.

Values match the strings stored in the database so that enum members
compare equal to raw column values.
"""

from enum import Enum


class LessonStatus(str, Enum):
    """Lesson lifecycle statuses."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def inactive(cls) -> tuple["LessonStatus", ...]:
        """Statuses that no longer occupy calendar time."""
        return (cls.CANCELLED, cls.NO_SHOW)


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def uses_days_of_week(self) -> bool:
        return self in (RecurrenceType.WEEKLY, RecurrenceType.BIWEEKLY)


class ConflictType(str, Enum):
    """Kinds of scheduling conflicts reported by the conflict checker."""

    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    TIME_OFF = "time_off"
    INSTRUCTOR_BUSY = "instructor_busy"
    BUFFER_VIOLATION = "buffer_violation"
    VEHICLE_BUSY = "vehicle_busy"
    STUDENT_BUSY = "student_busy"


class InstructorStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class VehicleOwnership(str, Enum):
    SCHOOL_OWNED = "school_owned"
    INSTRUCTOR_OWNED = "instructor_owned"
    LEASED = "leased"


class TimeOffReason(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    TRAINING = "training"
    OTHER = "other"
