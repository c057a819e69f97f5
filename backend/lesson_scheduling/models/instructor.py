# backend/lesson_scheduling/models/instructor.py
"""
Instructor and vehicle records as seen by the scheduling core.

Both tables are owned by the surrounding CRUD layer; the core only reads
the columns declared here (status, preferred vehicle, vehicle ownership).
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import InstructorStatus, VehicleOwnership
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Instructor(Base):
    """Bookable resource."""

    __tablename__ = "instructors"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False)
    display_name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=InstructorStatus.ACTIVE.value)
    default_vehicle_id = Column(String(26), nullable=True)
    prefers_own_vehicle = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    availability = relationship(
        "InstructorAvailability", back_populates="instructor", cascade="all, delete-orphan"
    )
    time_off = relationship(
        "InstructorTimeOff", back_populates="instructor", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'on_leave', 'terminated')",
            name="ck_instructors_status",
        ),
        Index("idx_instructors_tenant_status", "tenant_id", "status"),
    )

    @property
    def preferred_vehicle_id(self):
        """The instructor's own vehicle when they prefer to use it."""
        if self.prefers_own_vehicle and self.default_vehicle_id:
            return self.default_vehicle_id
        return None

    def __repr__(self) -> str:
        return f"<Instructor {self.id} tenant={self.tenant_id} status={self.status}>"


class Vehicle(Base):
    """Secondary resource."""

    __tablename__ = "vehicles"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False, index=True)
    label = Column(String(255), nullable=True)
    ownership_type = Column(String(20), nullable=False, default=VehicleOwnership.SCHOOL_OWNED.value)
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "ownership_type IN ('school_owned', 'instructor_owned', 'leased')",
            name="ck_vehicles_ownership_type",
        ),
    )

    @property
    def is_shared(self) -> bool:
        """Pool vehicles can be double-booked across instructors and must be checked."""
        return self.ownership_type == VehicleOwnership.SCHOOL_OWNED.value or not self.instructor_id

    def __repr__(self) -> str:
        return f"<Vehicle {self.id} {self.ownership_type}>"
