# backend/lesson_scheduling/repositories/__init__.py
"""
Repository layer for the lesson scheduling core.

Repositories hold every SQL query the core issues. They flush but never
commit; services own transaction boundaries.
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .instructor_repository import InstructorRepository
from .lesson_repository import LessonRepository
from .recurring_pattern_repository import RecurringPatternRepository
from .scheduling_settings_repository import SchedulingSettingsRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "InstructorRepository",
    "LessonRepository",
    "RecurringPatternRepository",
    "RepositoryFactory",
    "SchedulingSettingsRepository",
]
