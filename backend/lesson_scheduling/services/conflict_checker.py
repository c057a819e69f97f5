# backend/lesson_scheduling/services/conflict_checker.py
"""
Conflict Checker Service for the lesson scheduling core.

Handles all lesson conflict detection for a proposed lesson:
- Working hours (an active weekly block must contain the whole lesson)
- Approved time off (all-day, or overlapping the bounded hours)
- Instructor double-booking
- Buffer spacing between lessons (unless back-to-back is allowed)
- Shared vehicle double-booking
- Student double-booking

Every check runs regardless of earlier results. Conflicts are returned
as data; nothing here raises on a conflict or writes to the database.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import ConflictType
from ..core.exceptions import NotFoundException
from ..domain.absence import AllDayAbsence, absence_from_record
from ..domain.intervals import intervals_overlap, violates_buffer
from ..models.lesson import Lesson
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..schemas.scheduling import ProposedLesson, SchedulingConflict, ValidationResult
from ..schemas.scheduling_settings import SchedulingSettingsSnapshot
from ..utils.time_helpers import datetime_to_minutes, day_of_week, to_minutes
from .base import BaseService
from .scheduling_settings_service import SchedulingSettingsService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Service for checking lesson conflicts.

    Works entirely from lesson rows (date, start_time, end_time); the
    proposed interval is compared at minute resolution.
    """

    def __init__(
        self,
        db: Session,
        settings_service: Optional[SchedulingSettingsService] = None,
    ):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            settings_service: Optional settings service (shares the session)
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.settings_service = settings_service or SchedulingSettingsService(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @BaseService.measure_operation("check_scheduling_conflicts")
    def check_scheduling_conflicts(
        self,
        proposed: ProposedLesson,
        settings: Optional[SchedulingSettingsSnapshot] = None,
    ) -> List[SchedulingConflict]:
        """
        Run every conflict check against a proposed lesson.

        Args:
            proposed: The lesson to check (exclude_lesson_id skips an existing lesson being edited)
            settings: Optional settings snapshot; loaded for the tenant if omitted

        Returns:
            List of conflicts, empty when the lesson can be booked

        Raises:
            NotFoundException: If the instructor does not exist in the tenant
        """
        if self.instructor_repository.get_for_tenant(proposed.tenant_id, proposed.instructor_id) is None:
            raise NotFoundException(
                f"Instructor {proposed.instructor_id} not found",
                code="INSTRUCTOR_NOT_FOUND",
                details={"instructor_id": proposed.instructor_id},
            )

        snapshot = settings or self.settings_service.get_settings(proposed.tenant_id)
        lesson_date = proposed.start_time.date()
        start = datetime_to_minutes(proposed.start_time)
        end = datetime_to_minutes(proposed.end_time)

        instructor_lessons = self.lesson_repository.get_active_lessons_for_date(
            proposed.tenant_id,
            lesson_date,
            instructor_id=proposed.instructor_id,
            exclude_lesson_id=proposed.exclude_lesson_id,
        )

        conflicts: List[SchedulingConflict] = []
        for found in (
            self._check_working_hours(proposed, lesson_date, start, end),
            self._check_time_off(proposed, lesson_date, start, end),
            self._check_instructor_busy(instructor_lessons, start, end),
            self._check_buffer(instructor_lessons, start, end, snapshot),
            self._check_vehicle(proposed, lesson_date, start, end),
            self._check_student(proposed, lesson_date, start, end),
        ):
            if found is not None:
                conflicts.append(found)

        if conflicts:
            for conflict in conflicts:
                prometheus_metrics.record_conflict(conflict.type.value)
            self.logger.warning(
                f"Found {len(conflicts)} scheduling conflicts for instructor "
                f"{proposed.instructor_id} on {lesson_date} "
                f"{proposed.start_time.time()}-{proposed.end_time.time()}: "
                f"{[c.type.value for c in conflicts]}"
            )

        return conflicts

    @BaseService.measure_operation("validate_lesson_booking")
    def validate_lesson_booking(
        self,
        proposed: ProposedLesson,
        settings: Optional[SchedulingSettingsSnapshot] = None,
    ) -> ValidationResult:
        """Wrapper around check_scheduling_conflicts: valid when no conflicts."""
        return ValidationResult.from_conflicts(self.check_scheduling_conflicts(proposed, settings))

    # Individual checks

    def _check_working_hours(
        self, proposed: ProposedLesson, lesson_date: date, start: int, end: int
    ) -> Optional[SchedulingConflict]:
        blocks = self.availability_repository.get_active_blocks_for_day(
            proposed.tenant_id, proposed.instructor_id, day_of_week(lesson_date)
        )
        for block in blocks:
            if to_minutes(block.start_time) <= start and end <= to_minutes(block.end_time):
                return None
        return SchedulingConflict(
            type=ConflictType.OUTSIDE_WORKING_HOURS,
            message="Instructor is not available during this time",
        )

    def _check_time_off(
        self, proposed: ProposedLesson, lesson_date: date, start: int, end: int
    ) -> Optional[SchedulingConflict]:
        records = self.availability_repository.get_approved_time_off_for_date(
            proposed.tenant_id, proposed.instructor_id, lesson_date
        )
        for record in records:
            absence = absence_from_record(record)
            if isinstance(absence, AllDayAbsence):
                return SchedulingConflict(
                    type=ConflictType.TIME_OFF,
                    message="Instructor has time off on this day",
                    conflicting_time_off_id=absence.time_off_id,
                )
            if absence.overlaps(start, end):
                return SchedulingConflict(
                    type=ConflictType.TIME_OFF,
                    message="Instructor has time off during this period",
                    conflicting_time_off_id=absence.time_off_id,
                )
        return None

    @staticmethod
    def _first_overlapping(lessons: List[Lesson], start: int, end: int) -> Optional[Lesson]:
        for lesson in lessons:
            if intervals_overlap(to_minutes(lesson.start_time), to_minutes(lesson.end_time), start, end):
                return lesson
        return None

    def _check_instructor_busy(
        self, lessons: List[Lesson], start: int, end: int
    ) -> Optional[SchedulingConflict]:
        clash = self._first_overlapping(lessons, start, end)
        if clash is None:
            return None
        return SchedulingConflict(
            type=ConflictType.INSTRUCTOR_BUSY,
            message="Instructor already has a lesson during this time",
            conflicting_lesson_id=clash.id,
        )

    def _check_buffer(
        self,
        lessons: List[Lesson],
        start: int,
        end: int,
        settings: SchedulingSettingsSnapshot,
    ) -> Optional[SchedulingConflict]:
        buffer_minutes = settings.enforced_buffer_minutes
        if not buffer_minutes:
            return None
        for lesson in lessons:
            if violates_buffer(
                to_minutes(lesson.start_time), to_minutes(lesson.end_time), start, end, buffer_minutes
            ):
                return SchedulingConflict(
                    type=ConflictType.BUFFER_VIOLATION,
                    message=f"Insufficient buffer time ({buffer_minutes} minutes required)",
                    conflicting_lesson_id=lesson.id,
                )
        return None

    def _check_vehicle(
        self, proposed: ProposedLesson, lesson_date: date, start: int, end: int
    ) -> Optional[SchedulingConflict]:
        if not proposed.vehicle_id:
            return None
        vehicle = self.instructor_repository.get_vehicle(proposed.tenant_id, proposed.vehicle_id)
        # Instructor-assigned vehicles follow their instructor, whose own check already applies
        if vehicle is None or not vehicle.is_shared:
            return None

        lessons = self.lesson_repository.get_active_lessons_for_date(
            proposed.tenant_id,
            lesson_date,
            vehicle_id=proposed.vehicle_id,
            exclude_lesson_id=proposed.exclude_lesson_id,
        )
        clash = self._first_overlapping(lessons, start, end)
        if clash is None:
            return None
        return SchedulingConflict(
            type=ConflictType.VEHICLE_BUSY,
            message="Vehicle is already assigned to another lesson",
            conflicting_lesson_id=clash.id,
        )

    def _check_student(
        self, proposed: ProposedLesson, lesson_date: date, start: int, end: int
    ) -> Optional[SchedulingConflict]:
        lessons = self.lesson_repository.get_active_lessons_for_date(
            proposed.tenant_id,
            lesson_date,
            student_id=proposed.student_id,
            exclude_lesson_id=proposed.exclude_lesson_id,
        )
        clash = self._first_overlapping(lessons, start, end)
        if clash is None:
            return None
        return SchedulingConflict(
            type=ConflictType.STUDENT_BUSY,
            message="Student already has a lesson scheduled during this time",
            conflicting_lesson_id=clash.id,
        )
