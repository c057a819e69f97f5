# backend/lesson_scheduling/repositories/factory.py
"""
Repository Factory for the lesson scheduling core.

Provides centralized creation of repository instances so services never
construct them directly.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .instructor_repository import InstructorRepository
    from .lesson_repository import LessonRepository
    from .recurring_pattern_repository import RecurringPatternRepository
    from .scheduling_settings_repository import SchedulingSettingsRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.
    """

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for weekly availability and time off."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_instructor_repository(db: Session) -> "InstructorRepository":
        from .instructor_repository import InstructorRepository

        return InstructorRepository(db)

    @staticmethod
    def create_lesson_repository(db: Session) -> "LessonRepository":
        """Create repository for lesson queries."""
        from .lesson_repository import LessonRepository

        return LessonRepository(db)

    @staticmethod
    def create_scheduling_settings_repository(db: Session) -> "SchedulingSettingsRepository":
        from .scheduling_settings_repository import SchedulingSettingsRepository

        return SchedulingSettingsRepository(db)

    @staticmethod
    def create_recurring_pattern_repository(db: Session) -> "RecurringPatternRepository":
        """Create repository for recurring patterns, exceptions and links."""
        from .recurring_pattern_repository import RecurringPatternRepository

        return RecurringPatternRepository(db)
