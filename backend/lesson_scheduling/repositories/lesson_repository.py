# backend/lesson_scheduling/repositories/lesson_repository.py
"""
LessonRepository - lesson reads for conflict checks and slot search.

All scheduling reads return only lessons that still occupy time
(status not cancelled / no_show), for a single date, ordered by start.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import LessonStatus
from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_INACTIVE_STATUSES = [status.value for status in LessonStatus.inactive()]


class LessonRepository(BaseRepository[Lesson]):
    """
    Repository for lesson data access.
    """

    def __init__(self, db: Session):
        """Initialize with Lesson model as primary."""
        super().__init__(db, Lesson)
        self.logger = logging.getLogger(__name__)

    def get_active_lessons_for_date(
        self,
        tenant_id: str,
        target_date: date,
        *,
        instructor_id: Optional[str] = None,
        vehicle_id: Optional[str] = None,
        student_id: Optional[str] = None,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[Lesson]:
        """
        Lessons occupying time on target_date, filtered by whichever of
        instructor / vehicle / student is given.

        Args:
            tenant_id: Tenant scope
            target_date: The date to check
            instructor_id: Optional instructor filter
            vehicle_id: Optional vehicle filter
            student_id: Optional student filter
            exclude_lesson_id: Optional lesson ID to leave out (re-validating an edit)

        Returns:
            List of lessons ordered by start time
        """
        try:
            query = self.db.query(Lesson).filter(
                Lesson.tenant_id == tenant_id,
                Lesson.lesson_date == target_date,
                Lesson.status.notin_(_INACTIVE_STATUSES),
            )
            if instructor_id is not None:
                query = query.filter(Lesson.instructor_id == instructor_id)
            if vehicle_id is not None:
                query = query.filter(Lesson.vehicle_id == vehicle_id)
            if student_id is not None:
                query = query.filter(Lesson.student_id == student_id)
            if exclude_lesson_id:
                query = query.filter(Lesson.id != exclude_lesson_id)

            return cast(List[Lesson], query.order_by(Lesson.start_time, Lesson.id).all())

        except SQLAlchemyError as e:
            self.logger.error(f"Error getting lessons for date: {str(e)}")
            raise RepositoryException(f"Failed to get lessons: {str(e)}")

    def get_for_tenant(self, tenant_id: str, lesson_id: str) -> Optional[Lesson]:
        try:
            return cast(
                Optional[Lesson],
                self.db.query(Lesson)
                .filter(Lesson.id == lesson_id, Lesson.tenant_id == tenant_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting lesson {lesson_id}: {str(e)}")
            raise RepositoryException(f"Failed to get lesson: {str(e)}")
