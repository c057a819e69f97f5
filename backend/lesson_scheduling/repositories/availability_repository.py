# backend/lesson_scheduling/repositories/availability_repository.py
"""
AvailabilityRepository - weekly availability blocks and time off.

Weekly blocks are soft-deleted (is_active=False); time off rows are
hard-deleted. Only approved time off is returned for scheduling reads.
"""

from datetime import date, datetime, timezone
import logging
from typing import List, Optional, cast

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import InstructorAvailability, InstructorTimeOff

logger = logging.getLogger(__name__)


class AvailabilityRepository:
    """
    Repository for weekly availability and time-off management.
    """

    def __init__(self, db: Session):
        """Initialize repository."""
        self.db = db
        self.logger = logging.getLogger(__name__)

    # Weekly availability

    def get_active_blocks_for_day(
        self, tenant_id: str, instructor_id: str, day_of_week: int
    ) -> List[InstructorAvailability]:
        """
        Active weekly blocks for one weekday, ordered by start time.

        Args:
            tenant_id: Tenant scope
            instructor_id: The instructor ID
            day_of_week: 0 = Sunday .. 6 = Saturday
        """
        try:
            return cast(
                List[InstructorAvailability],
                self.db.query(InstructorAvailability)
                .filter(
                    InstructorAvailability.tenant_id == tenant_id,
                    InstructorAvailability.instructor_id == instructor_id,
                    InstructorAvailability.day_of_week == day_of_week,
                    InstructorAvailability.is_active.is_(True),
                )
                .order_by(InstructorAvailability.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting availability blocks: {str(e)}")
            raise RepositoryException(f"Failed to get availability: {str(e)}")

    def get_active_blocks(self, tenant_id: str, instructor_id: str) -> List[InstructorAvailability]:
        try:
            return cast(
                List[InstructorAvailability],
                self.db.query(InstructorAvailability)
                .filter(
                    InstructorAvailability.tenant_id == tenant_id,
                    InstructorAvailability.instructor_id == instructor_id,
                    InstructorAvailability.is_active.is_(True),
                )
                .order_by(InstructorAvailability.day_of_week, InstructorAvailability.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting weekly schedule: {str(e)}")
            raise RepositoryException(f"Failed to get weekly schedule: {str(e)}")

    def create_block(self, tenant_id: str, instructor_id: str, **fields) -> InstructorAvailability:
        try:
            block = InstructorAvailability(tenant_id=tenant_id, instructor_id=instructor_id, **fields)
            self.db.add(block)
            self.db.flush()
            return block
        except IntegrityError as e:
            self.logger.error(f"Integrity error creating availability: {str(e)}")
            raise RepositoryException(f"Invalid availability block: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating availability: {str(e)}")
            raise RepositoryException(f"Failed to create availability: {str(e)}")

    def deactivate_all_blocks(self, tenant_id: str, instructor_id: str) -> int:
        try:
            count = (
                self.db.query(InstructorAvailability)
                .filter(
                    InstructorAvailability.tenant_id == tenant_id,
                    InstructorAvailability.instructor_id == instructor_id,
                    InstructorAvailability.is_active.is_(True),
                )
                .update({InstructorAvailability.is_active: False}, synchronize_session="fetch")
            )
            self.db.flush()
            return int(count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deactivating availability: {str(e)}")
            raise RepositoryException(f"Failed to deactivate availability: {str(e)}")

    def deactivate_block(self, tenant_id: str, block_id: str) -> bool:
        try:
            count = (
                self.db.query(InstructorAvailability)
                .filter(
                    InstructorAvailability.id == block_id,
                    InstructorAvailability.tenant_id == tenant_id,
                )
                .update({InstructorAvailability.is_active: False}, synchronize_session="fetch")
            )
            self.db.flush()
            return bool(count > 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deactivating availability block: {str(e)}")
            raise RepositoryException(f"Failed to deactivate availability block: {str(e)}")

    # Time off

    def get_approved_time_off_for_date(
        self, tenant_id: str, instructor_id: str, target_date: date
    ) -> List[InstructorTimeOff]:
        """Approved time off whose date range covers target_date."""
        try:
            return cast(
                List[InstructorTimeOff],
                self.db.query(InstructorTimeOff)
                .filter(
                    and_(
                        InstructorTimeOff.tenant_id == tenant_id,
                        InstructorTimeOff.instructor_id == instructor_id,
                        InstructorTimeOff.start_date <= target_date,
                        InstructorTimeOff.end_date >= target_date,
                        InstructorTimeOff.is_approved.is_(True),
                    )
                )
                .order_by(InstructorTimeOff.start_date, InstructorTimeOff.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting time off: {str(e)}")
            raise RepositoryException(f"Failed to get time off: {str(e)}")

    def get_time_off(
        self,
        tenant_id: str,
        instructor_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[InstructorTimeOff]:
        try:
            query = self.db.query(InstructorTimeOff).filter(
                InstructorTimeOff.tenant_id == tenant_id,
                InstructorTimeOff.instructor_id == instructor_id,
            )
            if start_date:
                query = query.filter(InstructorTimeOff.end_date >= start_date)
            if end_date:
                query = query.filter(InstructorTimeOff.start_date <= end_date)
            return cast(
                List[InstructorTimeOff],
                query.order_by(InstructorTimeOff.start_date, InstructorTimeOff.start_time).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing time off: {str(e)}")
            raise RepositoryException(f"Failed to list time off: {str(e)}")

    def get_time_off_by_id(self, tenant_id: str, time_off_id: str) -> Optional[InstructorTimeOff]:
        try:
            return cast(
                Optional[InstructorTimeOff],
                self.db.query(InstructorTimeOff)
                .filter(
                    InstructorTimeOff.id == time_off_id, InstructorTimeOff.tenant_id == tenant_id
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting time off {time_off_id}: {str(e)}")
            raise RepositoryException(f"Failed to get time off: {str(e)}")

    def create_time_off(self, tenant_id: str, instructor_id: str, **fields) -> InstructorTimeOff:
        try:
            if fields.get("is_approved") and not fields.get("approved_at"):
                fields["approved_at"] = datetime.now(timezone.utc)
            time_off = InstructorTimeOff(tenant_id=tenant_id, instructor_id=instructor_id, **fields)
            self.db.add(time_off)
            self.db.flush()
            return time_off
        except IntegrityError as e:
            self.logger.error(f"Integrity error creating time off: {str(e)}")
            raise RepositoryException(f"Invalid time off: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating time off: {str(e)}")
            raise RepositoryException(f"Failed to create time off: {str(e)}")

    def delete_time_off(self, tenant_id: str, time_off_id: str) -> bool:
        try:
            result = (
                self.db.query(InstructorTimeOff)
                .filter(
                    and_(
                        InstructorTimeOff.id == time_off_id,
                        InstructorTimeOff.tenant_id == tenant_id,
                    )
                )
                .delete()
            )
            self.db.flush()
            return bool(result > 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting time off: {str(e)}")
            raise RepositoryException(f"Failed to delete time off: {str(e)}")
