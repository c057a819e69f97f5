# backend/lesson_scheduling/repositories/instructor_repository.py
"""
InstructorRepository - read access to instructors and vehicles.

The scheduling core never creates or edits these records; it needs the
active instructor list, preferred vehicles, vehicle ownership, and the
row locks that serialize lesson commits per instructor and vehicle.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import InstructorStatus
from ..core.exceptions import RepositoryException
from ..models.instructor import Instructor, Vehicle
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class InstructorRepository(BaseRepository[Instructor]):
    def __init__(self, db: Session):
        super().__init__(db, Instructor)
        self.logger = logging.getLogger(__name__)

    def get_for_tenant(self, tenant_id: str, instructor_id: str) -> Optional[Instructor]:
        try:
            return cast(
                Optional[Instructor],
                self.db.query(Instructor)
                .filter(Instructor.id == instructor_id, Instructor.tenant_id == tenant_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting instructor {instructor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get instructor: {str(e)}")

    def get_active_instructors(self, tenant_id: str) -> List[Instructor]:
        """Active instructors in a stable order (ULID order, i.e. creation order)."""
        try:
            return cast(
                List[Instructor],
                self.db.query(Instructor)
                .filter(
                    Instructor.tenant_id == tenant_id,
                    Instructor.status == InstructorStatus.ACTIVE.value,
                )
                .order_by(Instructor.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting active instructors: {str(e)}")
            raise RepositoryException(f"Failed to get active instructors: {str(e)}")

    def lock_for_booking(self, tenant_id: str, instructor_id: str) -> Optional[Instructor]:
        """
        Load the instructor row with a write lock held until the transaction ends.

        SQLite has no row locks; there the database-wide write lock applies.
        """
        try:
            query = self.db.query(Instructor).filter(
                Instructor.id == instructor_id, Instructor.tenant_id == tenant_id
            )
            if self.dialect_name != "sqlite":
                query = query.with_for_update()
            return cast(Optional[Instructor], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking instructor {instructor_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock instructor: {str(e)}")

    def lock_vehicle_for_booking(self, tenant_id: str, vehicle_id: str) -> Optional[Vehicle]:
        """Vehicle counterpart of lock_for_booking; callers lock the instructor first."""
        try:
            query = self.db.query(Vehicle).filter(
                Vehicle.id == vehicle_id, Vehicle.tenant_id == tenant_id
            )
            if self.dialect_name != "sqlite":
                query = query.with_for_update()
            return cast(Optional[Vehicle], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking vehicle {vehicle_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock vehicle: {str(e)}")

    def get_vehicle(self, tenant_id: str, vehicle_id: str) -> Optional[Vehicle]:
        try:
            return cast(
                Optional[Vehicle],
                self.db.query(Vehicle)
                .filter(Vehicle.id == vehicle_id, Vehicle.tenant_id == tenant_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting vehicle {vehicle_id}: {str(e)}")
            raise RepositoryException(f"Failed to get vehicle: {str(e)}")
