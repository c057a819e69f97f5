# backend/lesson_scheduling/models/recurring_pattern.py
"""
Recurring lesson pattern models.

Classes:
    RecurringLessonPattern: Rule that expands into lessons over time
    RecurringPatternException: Date on which a pattern must not produce a lesson
    PatternGeneratedLesson: Link from an occurrence number to the lesson it created

The (pattern_id, occurrence_number) unique constraint is what makes
generation safe to replay: a second insert for the same occurrence fails
at the database instead of duplicating the lesson.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class RecurringLessonPattern(Base):
    __tablename__ = "recurring_lesson_patterns"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False, index=True)
    pattern_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    student_id = Column(String(26), nullable=False)
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=False)
    vehicle_id = Column(String(26), nullable=True)

    lesson_type = Column(String(50), nullable=False, default="behind_wheel")
    duration = Column(Integer, nullable=False)
    cost = Column(Numeric(10, 2), nullable=True)

    recurrence_type = Column(String(20), nullable=False)
    days_of_week = Column(JSON, nullable=True)
    time_of_day = Column(Time, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    max_occurrences = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    exceptions = relationship(
        "RecurringPatternException", back_populates="pattern", cascade="all, delete-orphan"
    )
    generated_lessons = relationship(
        "PatternGeneratedLesson", back_populates="pattern", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "recurrence_type IN ('daily', 'weekly', 'biweekly', 'monthly')",
            name="ck_patterns_recurrence_type",
        ),
        CheckConstraint("duration > 0", name="ck_patterns_duration"),
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_patterns_dates"),
        CheckConstraint(
            "max_occurrences IS NULL OR max_occurrences > 0", name="ck_patterns_max_occurrences"
        ),
    )

    def __repr__(self) -> str:
        return f"<RecurringLessonPattern {self.id} {self.recurrence_type} from {self.start_date}>"


class RecurringPatternException(Base):
    __tablename__ = "recurring_pattern_exceptions"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False)
    pattern_id = Column(
        String(26), ForeignKey("recurring_lesson_patterns.id", ondelete="CASCADE"), nullable=False
    )
    exception_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    pattern = relationship("RecurringLessonPattern", back_populates="exceptions")

    __table_args__ = (
        UniqueConstraint("pattern_id", "exception_date", name="unique_pattern_exception_date"),
    )


class PatternGeneratedLesson(Base):
    __tablename__ = "pattern_generated_lessons"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False)
    pattern_id = Column(
        String(26), ForeignKey("recurring_lesson_patterns.id", ondelete="CASCADE"), nullable=False
    )
    lesson_id = Column(String(26), ForeignKey("lessons.id"), nullable=False)
    occurrence_number = Column(Integer, nullable=False)
    scheduled_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    pattern = relationship("RecurringLessonPattern", back_populates="generated_lessons")

    __table_args__ = (
        UniqueConstraint("pattern_id", "occurrence_number", name="unique_pattern_occurrence"),
        CheckConstraint("occurrence_number > 0", name="ck_generated_occurrence_positive"),
    )
