# backend/lesson_scheduling/models/availability.py
"""
Availability models for the lesson scheduling core.

This module defines the database models for managing instructor availability,
including approved time off.

Classes:
    InstructorAvailability: Recurring weekly working block (0=Sunday..6=Saturday)
    InstructorTimeOff: Vacation/unavailable period, all-day or time-bounded
"""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import TimeOffReason
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class InstructorAvailability(Base):
    """Recurring weekly availability block"""

    __tablename__ = "instructor_availability"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False)
    instructor_id = Column(
        String(26), ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    instructor = relationship("Instructor", back_populates="availability")

    # Constraints
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
        Index(
            "idx_availability_instructor_day",
            "tenant_id",
            "instructor_id",
            "day_of_week",
            "is_active",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<InstructorAvailability {self.instructor_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time}>"
        )


class InstructorTimeOff(Base):
    """Instructor vacation/unavailable period. No start/end time means all day."""

    __tablename__ = "instructor_time_off"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False)
    instructor_id = Column(
        String(26), ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    reason = Column(String(20), nullable=False, default=TimeOffReason.OTHER.value)
    notes = Column(Text, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=True)
    approved_by = Column(String(26), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    instructor = relationship("Instructor", back_populates="time_off")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_time_off_date_order"),
        CheckConstraint(
            "reason IN ('vacation', 'sick', 'personal', 'training', 'other')",
            name="ck_time_off_reason",
        ),
        Index("idx_time_off_instructor_dates", "tenant_id", "instructor_id", "start_date", "end_date"),
    )

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None and self.end_time is None

    def __repr__(self) -> str:
        return f"<InstructorTimeOff {self.start_date}..{self.end_date} - {self.reason}>"
