# backend/lesson_scheduling/services/booking_service.py
"""
Booking Service for the lesson scheduling core.

The conflict checker is advisory: two callers can both see a free slot.
commit_checked is the serialization point that makes booking safe under
concurrency. Manual bookings and recurring-pattern occurrences both go
through it:

1. Optional Redis mutexes per (instructor, date), (student, date) and
   (vehicle, date), taken in sorted order; fails open.
2. One transaction that locks the instructor and vehicle rows, re-runs
   every conflict check and writes only if none are found.

Lifecycle changes (cancel, complete, no-show) are soft state changes;
lessons are never deleted.
"""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

from sqlalchemy.orm import Session

from ..core.booking_lock import booking_resource_ids, resource_locks
from ..core.enums import LessonStatus
from ..core.exceptions import BookingConflictException, ConflictException, NotFoundException
from ..models.lesson import Lesson
from ..repositories import RepositoryFactory
from ..schemas.scheduling import LessonCreate
from ..schemas.scheduling_settings import SchedulingSettingsSnapshot
from .base import BaseService
from .conflict_checker import ConflictChecker
from .scheduling_settings_service import SchedulingSettingsService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def lesson_fields(data: LessonCreate) -> Dict[str, Any]:
    """Column values for a new lesson row."""
    return {
        "tenant_id": data.tenant_id,
        "student_id": data.student_id,
        "instructor_id": data.instructor_id,
        "vehicle_id": data.vehicle_id,
        "lesson_date": data.start_time.date(),
        "start_time": data.start_time.time(),
        "end_time": data.end_time.time(),
        "duration": data.duration,
        "lesson_type": data.lesson_type,
        "cost": data.cost,
        "buffer_time_after": data.buffer_time_after,
        "notes": data.notes,
        "status": LessonStatus.SCHEDULED.value,
    }


class BookingService(BaseService):
    """
    Service layer for committing lessons and moving them through their lifecycle.
    """

    def __init__(
        self,
        db: Session,
        conflict_checker: Optional[ConflictChecker] = None,
        settings_service: Optional[SchedulingSettingsService] = None,
    ):
        super().__init__(db)
        self.settings_service = settings_service or SchedulingSettingsService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.settings_service)
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @BaseService.measure_operation("create_lesson")
    def create_lesson(
        self,
        data: LessonCreate,
        settings: Optional[SchedulingSettingsSnapshot] = None,
    ) -> Lesson:
        """
        Book a lesson if, and only if, it has no conflicts.

        When no vehicle is given, the instructor's own vehicle is used if
        they prefer it.

        Raises:
            NotFoundException: Unknown instructor
            BookingConflictException: Any conflict was found; details carry the list
            ConflictException: Another booking for the same resources and date holds the mutex
        """
        # Loaded before any lock: a first read for a tenant commits
        snapshot = settings or self.settings_service.get_settings(data.tenant_id)
        lesson = self.commit_checked(data, snapshot, self._insert_lesson)

        self.logger.info(
            f"Created lesson {lesson.id} for instructor {lesson.instructor_id} "
            f"on {lesson.lesson_date} {lesson.start_time}-{lesson.end_time}"
        )
        return lesson

    def _insert_lesson(self, data: LessonCreate) -> Lesson:
        return self.lesson_repository.create(**lesson_fields(data))

    def commit_checked(
        self,
        data: LessonCreate,
        snapshot: SchedulingSettingsSnapshot,
        insert: Callable[[LessonCreate], T],
    ) -> T:
        """
        Re-check one lesson and run insert(data) under the booking serialization point.

        Mutexes are taken for the instructor, the student and the vehicle
        (sorted, all or none), then one transaction locks the instructor and
        vehicle rows, re-runs every conflict check and calls insert with the
        vehicle-resolved lesson. Whatever insert returns is committed and
        returned.

        Raises:
            NotFoundException: Unknown instructor
            BookingConflictException: Any conflict was found; nothing is written
            ConflictException: A mutex is held by another booking (BOOKING_IN_PROGRESS)
        """
        instructor = self.instructor_repository.get_for_tenant(data.tenant_id, data.instructor_id)
        if instructor is None:
            raise NotFoundException(
                f"Instructor {data.instructor_id} not found",
                code="INSTRUCTOR_NOT_FOUND",
                details={"instructor_id": data.instructor_id},
            )
        if data.vehicle_id is None and instructor.preferred_vehicle_id:
            data = data.model_copy(update={"vehicle_id": instructor.preferred_vehicle_id})

        lesson_date = data.start_time.date()
        resource_ids = booking_resource_ids(data.instructor_id, data.student_id, data.vehicle_id)

        with resource_locks(resource_ids, lesson_date) as acquired:
            if not acquired:
                raise ConflictException(
                    "Another booking for these resources is in progress",
                    code="BOOKING_IN_PROGRESS",
                    details={"resources": sorted(resource_ids), "date": lesson_date.isoformat()},
                )

            with self.transaction():
                locked = self.instructor_repository.lock_for_booking(
                    data.tenant_id, data.instructor_id
                )
                if locked is None:
                    raise NotFoundException(
                        f"Instructor {data.instructor_id} not found",
                        code="INSTRUCTOR_NOT_FOUND",
                        details={"instructor_id": data.instructor_id},
                    )
                if data.vehicle_id:
                    self.instructor_repository.lock_vehicle_for_booking(
                        data.tenant_id, data.vehicle_id
                    )

                conflicts = self.conflict_checker.check_scheduling_conflicts(data, snapshot)
                if conflicts:
                    raise BookingConflictException(
                        conflicts=[conflict.model_dump(mode="json") for conflict in conflicts]
                    )

                result = insert(data)

        return result

    def _get_lesson(self, tenant_id: str, lesson_id: str) -> Lesson:
        lesson = self.lesson_repository.get_for_tenant(tenant_id, lesson_id)
        if lesson is None:
            raise NotFoundException(
                f"Lesson {lesson_id} not found",
                code="LESSON_NOT_FOUND",
                details={"lesson_id": lesson_id},
            )
        return lesson

    @BaseService.measure_operation("cancel_lesson")
    def cancel_lesson(self, tenant_id: str, lesson_id: str, reason: Optional[str] = None) -> Lesson:
        with self.transaction():
            lesson = self._get_lesson(tenant_id, lesson_id)
            lesson.cancel(reason)
        return lesson

    @BaseService.measure_operation("complete_lesson")
    def complete_lesson(self, tenant_id: str, lesson_id: str) -> Lesson:
        with self.transaction():
            lesson = self._get_lesson(tenant_id, lesson_id)
            lesson.complete()
        return lesson

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, tenant_id: str, lesson_id: str) -> Lesson:
        with self.transaction():
            lesson = self._get_lesson(tenant_id, lesson_id)
            lesson.mark_no_show()
        return lesson
