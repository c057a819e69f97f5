# backend/lesson_scheduling/services/slot_search_service.py
"""
Slot Search Service for the lesson scheduling core.

Walks every date in the requested range and, for each candidate
instructor, runs the gap finder over each open window. Output order is
(date, instructor iteration order, window order); slots from different
instructors are not merged or re-sorted by time.

The student on the request is informational: slots are never hidden
because the student is busy elsewhere. That check happens when the
lesson is validated.
"""

from datetime import date, datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..domain.intervals import BusyInterval, find_gaps
from ..models.instructor import Instructor
from ..repositories import RepositoryFactory
from ..schemas.scheduling import AvailabilityRequest, TimeSlot
from ..schemas.scheduling_settings import SchedulingSettingsSnapshot
from ..utils.time_helpers import combine_minutes, date_range, to_minutes
from .availability_service import AvailabilityService
from .base import BaseService
from .scheduling_settings_service import SchedulingSettingsService

logger = logging.getLogger(__name__)


class SlotSearchService(BaseService):
    """
    Finds open lesson slots across instructors and dates.
    """

    def __init__(
        self,
        db: Session,
        availability_service: Optional[AvailabilityService] = None,
        settings_service: Optional[SchedulingSettingsService] = None,
    ):
        super().__init__(db)
        self.availability_service = availability_service or AvailabilityService(db)
        self.settings_service = settings_service or SchedulingSettingsService(db)
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    def _candidate_instructors(self, request: AvailabilityRequest) -> List[Instructor]:
        if request.instructor_id is None:
            return self.instructor_repository.get_active_instructors(request.tenant_id)

        instructor = self.instructor_repository.get_for_tenant(
            request.tenant_id, request.instructor_id
        )
        if instructor is None:
            raise NotFoundException(
                f"Instructor {request.instructor_id} not found",
                code="INSTRUCTOR_NOT_FOUND",
                details={"instructor_id": request.instructor_id},
            )
        return [instructor]

    def _busy_intervals(
        self, tenant_id: str, instructor_id: str, target_date: date
    ) -> List[BusyInterval]:
        lessons = self.lesson_repository.get_active_lessons_for_date(
            tenant_id, target_date, instructor_id=instructor_id
        )
        return [
            BusyInterval(
                start=to_minutes(lesson.start_time),
                end=to_minutes(lesson.end_time),
                buffer_after=lesson.buffer_time_after,
                source_id=lesson.id,
            )
            for lesson in lessons
        ]

    @BaseService.measure_operation("find_available_slots")
    def find_available_slots(
        self,
        request: AvailabilityRequest,
        settings: Optional[SchedulingSettingsSnapshot] = None,
    ) -> List[TimeSlot]:
        """
        Find open slots of request.duration minutes.

        Args:
            request: Search parameters
            settings: Optional settings snapshot; loaded for the tenant if omitted

        Returns:
            One slot per free gap per open window, in (date, instructor, window) order

        Raises:
            NotFoundException: If a specific instructor was requested and does not exist
        """
        snapshot = settings or self.settings_service.get_settings(request.tenant_id)
        instructors = self._candidate_instructors(request)
        # Lessons without their own trailing buffer fall back to the tenant buffer,
        # whether or not back-to-back booking is allowed
        default_buffer = snapshot.buffer_time_between_lessons

        slots: List[TimeSlot] = []
        for target_date in date_range(request.start_date, request.end_date):
            for instructor in instructors:
                day = self.availability_service.resolve_day(
                    request.tenant_id, instructor.id, target_date
                )
                if not day.is_bookable:
                    continue

                busy = self._busy_intervals(request.tenant_id, instructor.id, target_date)
                busy.extend(absence.as_busy_interval() for absence in day.absences)
                vehicle_id = request.vehicle_id or instructor.preferred_vehicle_id

                for window in day.windows:
                    for gap in find_gaps(window, busy, request.duration, default_buffer):
                        slots.append(
                            TimeSlot(
                                date=target_date,
                                start_time=combine_minutes(target_date, gap.start),
                                end_time=combine_minutes(target_date, gap.end),
                                instructor_id=instructor.id,
                                vehicle_id=vehicle_id,
                                duration=request.duration,
                            )
                        )

        if request.respect_advance_window and request.now is not None:
            slots = self.filter_advance_window(slots, snapshot, request.now)

        self.logger.debug(
            f"Found {len(slots)} slots for tenant {request.tenant_id} "
            f"{request.start_date}..{request.end_date} ({len(instructors)} instructors)"
        )
        return slots

    @staticmethod
    def filter_advance_window(
        slots: List[TimeSlot], settings: SchedulingSettingsSnapshot, now: datetime
    ) -> List[TimeSlot]:
        """Drop slots sooner than the minimum notice or beyond the booking horizon."""
        earliest = now + timedelta(hours=settings.min_hours_advance_booking)
        latest_date = now.date() + timedelta(days=settings.max_days_advance_booking)
        return [
            slot for slot in slots if slot.start_time >= earliest and slot.date <= latest_date
        ]
