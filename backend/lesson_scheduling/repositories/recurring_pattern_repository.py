# backend/lesson_scheduling/repositories/recurring_pattern_repository.py
"""
RecurringPatternRepository - patterns, exception dates and generated-lesson links.
"""

from datetime import date
import logging
from typing import Dict, List, Optional, Set, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson
from ..models.recurring_pattern import (
    PatternGeneratedLesson,
    RecurringLessonPattern,
    RecurringPatternException,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class RecurringPatternRepository(BaseRepository[RecurringLessonPattern]):
    def __init__(self, db: Session):
        super().__init__(db, RecurringLessonPattern)
        self.logger = logging.getLogger(__name__)

    # Patterns

    def get_for_tenant(self, tenant_id: str, pattern_id: str) -> Optional[RecurringLessonPattern]:
        try:
            return cast(
                Optional[RecurringLessonPattern],
                self.db.query(RecurringLessonPattern)
                .filter(
                    RecurringLessonPattern.id == pattern_id,
                    RecurringLessonPattern.tenant_id == tenant_id,
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting pattern {pattern_id}: {str(e)}")
            raise RepositoryException(f"Failed to get pattern: {str(e)}")

    def list_active(self, tenant_id: str) -> List[RecurringLessonPattern]:
        try:
            return cast(
                List[RecurringLessonPattern],
                self.db.query(RecurringLessonPattern)
                .filter(
                    RecurringLessonPattern.tenant_id == tenant_id,
                    RecurringLessonPattern.is_active.is_(True),
                )
                .order_by(RecurringLessonPattern.id.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing patterns: {str(e)}")
            raise RepositoryException(f"Failed to list patterns: {str(e)}")

    # Exceptions

    def get_exception_dates(self, pattern_id: str) -> Set[date]:
        try:
            rows = (
                self.db.query(RecurringPatternException.exception_date)
                .filter(RecurringPatternException.pattern_id == pattern_id)
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting pattern exceptions: {str(e)}")
            raise RepositoryException(f"Failed to get pattern exceptions: {str(e)}")

    def add_exception(
        self, tenant_id: str, pattern_id: str, exception_date: date, reason: Optional[str] = None
    ) -> Optional[RecurringPatternException]:
        """
        Insert an exception date. Returns None when the date is already an exception.
        """
        try:
            existing = (
                self.db.query(RecurringPatternException)
                .filter(
                    RecurringPatternException.pattern_id == pattern_id,
                    RecurringPatternException.exception_date == exception_date,
                )
                .first()
            )
            if existing is not None:
                return None
            with self.db.begin_nested():
                row = RecurringPatternException(
                    tenant_id=tenant_id,
                    pattern_id=pattern_id,
                    exception_date=exception_date,
                    reason=reason,
                )
                self.db.add(row)
            return row
        except IntegrityError:
            # Inserted concurrently between the check and the insert
            return None
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding pattern exception: {str(e)}")
            raise RepositoryException(f"Failed to add pattern exception: {str(e)}")

    # Generated lesson links

    def get_links(self, pattern_id: str) -> Dict[int, PatternGeneratedLesson]:
        """Existing links keyed by occurrence number."""
        try:
            rows = (
                self.db.query(PatternGeneratedLesson)
                .filter(PatternGeneratedLesson.pattern_id == pattern_id)
                .all()
            )
            return {row.occurrence_number: row for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting generated lessons: {str(e)}")
            raise RepositoryException(f"Failed to get generated lessons: {str(e)}")

    def get_link(self, pattern_id: str, occurrence_number: int) -> Optional[PatternGeneratedLesson]:
        try:
            return cast(
                Optional[PatternGeneratedLesson],
                self.db.query(PatternGeneratedLesson)
                .filter(
                    PatternGeneratedLesson.pattern_id == pattern_id,
                    PatternGeneratedLesson.occurrence_number == occurrence_number,
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting generated lesson link: {str(e)}")
            raise RepositoryException(f"Failed to get generated lesson link: {str(e)}")

    def create_occurrence(
        self, lesson: Lesson, pattern_id: str, occurrence_number: int
    ) -> Optional[PatternGeneratedLesson]:
        """
        Insert a lesson and its link in one savepoint.

        Returns None, leaving nothing behind, when the link already exists
        (another run materialized this occurrence first).
        """
        try:
            with self.db.begin_nested():
                self.db.add(lesson)
                self.db.flush()
                link = PatternGeneratedLesson(
                    tenant_id=lesson.tenant_id,
                    pattern_id=pattern_id,
                    lesson_id=lesson.id,
                    occurrence_number=occurrence_number,
                    scheduled_date=lesson.lesson_date,
                )
                self.db.add(link)
                self.db.flush()
            return link
        except IntegrityError as e:
            if self.get_link(pattern_id, occurrence_number) is None:
                self.logger.error(f"Integrity error creating occurrence: {str(e)}")
                raise RepositoryException(f"Invalid occurrence: {str(e)}")
            self.logger.info(f"Occurrence {occurrence_number} of pattern {pattern_id} already linked")
            return None
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating occurrence: {str(e)}")
            raise RepositoryException(f"Failed to create occurrence: {str(e)}")
