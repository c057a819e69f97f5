# backend/lesson_scheduling/schemas/__init__.py
"""
Pydantic schemas for the lesson scheduling core.

Request DTOs validate caller input; frozen result DTOs are what the core
hands back (slots, conflicts, generation results, settings snapshots).
"""

from .availability import AvailabilityBlockCreate, TimeOffCreate
from .recurring_pattern import GeneratedOccurrence, GenerationResult, RecurringPatternCreate
from .scheduling import (
    AvailabilityRequest,
    LessonCreate,
    ProposedLesson,
    SchedulingConflict,
    TimeSlot,
    ValidationResult,
)
from .scheduling_settings import SchedulingSettingsSnapshot, SchedulingSettingsUpdate

__all__ = [
    "AvailabilityBlockCreate",
    "AvailabilityRequest",
    "GeneratedOccurrence",
    "GenerationResult",
    "LessonCreate",
    "ProposedLesson",
    "RecurringPatternCreate",
    "SchedulingConflict",
    "SchedulingSettingsSnapshot",
    "SchedulingSettingsUpdate",
    "TimeOffCreate",
    "TimeSlot",
    "ValidationResult",
]
