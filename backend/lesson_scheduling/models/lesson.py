# backend/lesson_scheduling/models/lesson.py
"""
Lesson model for the lesson scheduling core.

Lessons are self-contained booking records: instructor, student, vehicle,
date and wall-clock times are stored directly on the row. Cancelled and
no-show lessons stay in the table (soft states) but no longer occupy time.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.sql import func

from ..core.enums import LessonStatus
from ..core.exceptions import BusinessRuleException
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class Lesson(Base):
    """Committed reservation of an instructor (and optionally a vehicle) for a student."""

    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False)

    student_id = Column(String(26), nullable=False)
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=False)
    vehicle_id = Column(String(26), nullable=True)

    lesson_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)
    lesson_type = Column(String(50), nullable=False, default="behind_wheel")
    cost = Column(Numeric(10, 2), nullable=True)

    status = Column(String(20), nullable=False, default=LessonStatus.SCHEDULED.value, index=True)
    # Minutes of idle time required after this lesson; NULL uses the tenant default
    buffer_time_after = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'no_show')",
            name="ck_lessons_status",
        ),
        CheckConstraint("duration > 0", name="check_duration_positive"),
        CheckConstraint("start_time < end_time", name="check_time_order"),
        CheckConstraint("buffer_time_after IS NULL OR buffer_time_after >= 0", name="check_buffer"),
        Index("idx_lessons_instructor_date", "tenant_id", "instructor_id", "lesson_date"),
        Index("idx_lessons_vehicle_date", "tenant_id", "vehicle_id", "lesson_date"),
        Index("idx_lessons_student_date", "tenant_id", "student_id", "lesson_date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = LessonStatus.SCHEDULED.value

    def __repr__(self) -> str:
        return (
            f"<Lesson {self.id}: student={self.student_id}, "
            f"instructor={self.instructor_id}, date={self.lesson_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status not in {s.value for s in LessonStatus.inactive()}

    def _require_scheduled(self, action: str) -> None:
        if self.status != LessonStatus.SCHEDULED.value:
            raise BusinessRuleException(
                f"Cannot {action} a lesson in status {self.status}",
                code="INVALID_LESSON_TRANSITION",
                details={"lesson_id": self.id, "status": self.status},
            )

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel this lesson."""
        self._require_scheduled("cancel")
        self.status = LessonStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancellation_reason = reason
        logger.info(f"Lesson {self.id} cancelled")

    def complete(self) -> None:
        """Mark lesson as completed."""
        self._require_scheduled("complete")
        self.status = LessonStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Lesson {self.id} marked as completed")

    def mark_no_show(self) -> None:
        """Mark that the student did not attend."""
        self._require_scheduled("mark as no-show")
        self.status = LessonStatus.NO_SHOW.value
        logger.info(f"Lesson {self.id} marked as no-show")
