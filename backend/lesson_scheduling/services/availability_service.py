# backend/lesson_scheduling/services/availability_service.py
"""
Availability Service for the lesson scheduling core.

Resolves an instructor's open working windows for a date from weekly
availability blocks and approved time off, and maintains both.

Resolution rules:
- Windows come from active blocks matching the date's weekday (0=Sunday).
- Any approved all-day absence covering the date empties the result.
- Time-bounded absences never remove a window; they are returned
  separately and treated as busy intervals by slot search.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..domain.absence import AllDayAbsence, BoundedAbsence, absence_from_record
from ..domain.intervals import TimeWindow
from ..models.availability import InstructorAvailability, InstructorTimeOff
from ..models.instructor import Instructor
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..schemas.availability import AvailabilityBlockCreate, TimeOffCreate
from ..utils.time_helpers import day_of_week, to_minutes
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class DayAvailability:
    """Open windows and bounded absences for one instructor on one date."""

    windows: List[TimeWindow] = field(default_factory=list)
    absences: List[BoundedAbsence] = field(default_factory=list)
    all_day_absence: Optional[AllDayAbsence] = None

    @property
    def is_bookable(self) -> bool:
        return bool(self.windows) and self.all_day_absence is None


class AvailabilityService(BaseService):
    """
    Service layer for availability operations.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)

    def _require_instructor(self, tenant_id: str, instructor_id: str) -> Instructor:
        instructor = self.instructor_repository.get_for_tenant(tenant_id, instructor_id)
        if instructor is None:
            raise NotFoundException(
                f"Instructor {instructor_id} not found",
                code="INSTRUCTOR_NOT_FOUND",
                details={"instructor_id": instructor_id},
            )
        return instructor

    def resolve_day(self, tenant_id: str, instructor_id: str, target_date: date) -> DayAvailability:
        """Resolve windows and absences without checking the instructor exists."""
        blocks = self.repository.get_active_blocks_for_day(
            tenant_id, instructor_id, day_of_week(target_date)
        )
        if not blocks:
            return DayAvailability()

        result = DayAvailability()
        for record in self.repository.get_approved_time_off_for_date(
            tenant_id, instructor_id, target_date
        ):
            absence = absence_from_record(record)
            if isinstance(absence, AllDayAbsence):
                result.all_day_absence = absence
                return result
            result.absences.append(absence)

        result.windows = [
            TimeWindow(to_minutes(block.start_time), to_minutes(block.end_time)) for block in blocks
        ]
        return result

    @BaseService.measure_operation("get_open_windows")
    def get_open_windows(
        self, tenant_id: str, instructor_id: str, target_date: date
    ) -> List[TimeWindow]:
        """
        Ordered open windows for the instructor on target_date.

        Raises:
            NotFoundException: If the instructor does not exist in the tenant
        """
        self._require_instructor(tenant_id, instructor_id)
        return self.resolve_day(tenant_id, instructor_id, target_date).windows

    @BaseService.measure_operation("get_absences")
    def get_absences(
        self, tenant_id: str, instructor_id: str, target_date: date
    ) -> List[BoundedAbsence]:
        """Time-bounded approved absences on target_date."""
        self._require_instructor(tenant_id, instructor_id)
        return [
            absence
            for absence in (
                absence_from_record(record)
                for record in self.repository.get_approved_time_off_for_date(
                    tenant_id, instructor_id, target_date
                )
            )
            if isinstance(absence, BoundedAbsence)
        ]

    # Weekly schedule maintenance

    @BaseService.measure_operation("get_weekly_schedule")
    def get_weekly_schedule(self, tenant_id: str, instructor_id: str) -> List[InstructorAvailability]:
        self._require_instructor(tenant_id, instructor_id)
        return self.repository.get_active_blocks(tenant_id, instructor_id)

    @BaseService.measure_operation("set_weekly_schedule")
    def set_weekly_schedule(
        self, tenant_id: str, instructor_id: str, blocks: List[AvailabilityBlockCreate]
    ) -> List[InstructorAvailability]:
        """
        Replace the instructor's weekly schedule.

        Existing active blocks are deactivated (kept for history) and the
        new set is inserted in one transaction.
        """
        self._require_instructor(tenant_id, instructor_id)

        with self.transaction():
            deactivated = self.repository.deactivate_all_blocks(tenant_id, instructor_id)
            created = [
                self.repository.create_block(tenant_id, instructor_id, **block.model_dump())
                for block in blocks
            ]

        self.logger.info(
            f"Replaced weekly schedule for instructor {instructor_id}: "
            f"{deactivated} deactivated, {len(created)} created"
        )
        return created

    @BaseService.measure_operation("add_availability_block")
    def add_availability_block(
        self, tenant_id: str, instructor_id: str, block: AvailabilityBlockCreate
    ) -> InstructorAvailability:
        self._require_instructor(tenant_id, instructor_id)
        with self.transaction():
            created = self.repository.create_block(tenant_id, instructor_id, **block.model_dump())
        return created

    @BaseService.measure_operation("deactivate_availability_block")
    def deactivate_availability_block(self, tenant_id: str, block_id: str) -> None:
        with self.transaction():
            found = self.repository.deactivate_block(tenant_id, block_id)
        if not found:
            raise NotFoundException(
                f"Availability block {block_id} not found",
                code="AVAILABILITY_NOT_FOUND",
                details={"block_id": block_id},
            )

    # Time off maintenance

    @BaseService.measure_operation("get_time_off")
    def get_time_off(
        self,
        tenant_id: str,
        instructor_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[InstructorTimeOff]:
        """All time off (approved or not) overlapping the optional date range."""
        self._require_instructor(tenant_id, instructor_id)
        return self.repository.get_time_off(tenant_id, instructor_id, start_date, end_date)

    @BaseService.measure_operation("add_time_off")
    def add_time_off(
        self, tenant_id: str, instructor_id: str, time_off: TimeOffCreate
    ) -> InstructorTimeOff:
        self._require_instructor(tenant_id, instructor_id)
        fields = time_off.model_dump()
        fields["reason"] = time_off.reason.value
        with self.transaction():
            created = self.repository.create_time_off(tenant_id, instructor_id, **fields)

        self.logger.info(
            f"Added time off for instructor {instructor_id}: "
            f"{time_off.start_date}..{time_off.end_date}"
        )
        return created

    @BaseService.measure_operation("approve_time_off")
    def approve_time_off(
        self, tenant_id: str, time_off_id: str, approved_by: Optional[str] = None
    ) -> InstructorTimeOff:
        with self.transaction():
            record = self.repository.get_time_off_by_id(tenant_id, time_off_id)
            if record is None:
                raise NotFoundException(
                    f"Time off {time_off_id} not found",
                    code="TIME_OFF_NOT_FOUND",
                    details={"time_off_id": time_off_id},
                )
            record.is_approved = True
            record.approved_by = approved_by
            record.approved_at = datetime.now(timezone.utc)
        return record

    @BaseService.measure_operation("delete_time_off")
    def delete_time_off(self, tenant_id: str, time_off_id: str) -> None:
        with self.transaction():
            deleted = self.repository.delete_time_off(tenant_id, time_off_id)
        if not deleted:
            raise NotFoundException(
                f"Time off {time_off_id} not found",
                code="TIME_OFF_NOT_FOUND",
                details={"time_off_id": time_off_id},
            )
