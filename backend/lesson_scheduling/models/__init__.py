"""
Database models for the lesson scheduling core.

This module exports all SQLAlchemy models so that importing the package
populates Base.metadata:
- Instructor and vehicle records (read-only inputs)
- Weekly availability and time off
- Lessons
- Per-tenant scheduling settings
- Recurring patterns, their exceptions and generated-lesson links
"""

from .availability import InstructorAvailability, InstructorTimeOff
from .instructor import Instructor, Vehicle
from .lesson import Lesson
from .recurring_pattern import (
    PatternGeneratedLesson,
    RecurringLessonPattern,
    RecurringPatternException,
)
from .scheduling_settings import SchedulingSettings

__all__ = [
    "Instructor",
    "InstructorAvailability",
    "InstructorTimeOff",
    "Lesson",
    "PatternGeneratedLesson",
    "RecurringLessonPattern",
    "RecurringPatternException",
    "SchedulingSettings",
    "Vehicle",
]
