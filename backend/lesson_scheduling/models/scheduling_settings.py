# backend/lesson_scheduling/models/scheduling_settings.py
"""Per-tenant scheduling settings (one row per tenant)."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, Time
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class SchedulingSettings(Base):
    __tablename__ = "scheduling_settings"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tenant_id = Column(String(64), nullable=False, unique=True)

    buffer_time_between_lessons = Column(Integer, nullable=False)
    buffer_time_before_first_lesson = Column(Integer, nullable=False)
    buffer_time_after_last_lesson = Column(Integer, nullable=False)
    min_hours_advance_booking = Column(Integer, nullable=False)
    max_days_advance_booking = Column(Integer, nullable=False)
    default_lesson_duration = Column(Integer, nullable=False)
    allow_back_to_back_lessons = Column(Boolean, nullable=False)
    default_work_start_time = Column(Time, nullable=False)
    default_work_end_time = Column(Time, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("buffer_time_between_lessons >= 0", name="ck_settings_buffer"),
        CheckConstraint("default_lesson_duration > 0", name="ck_settings_duration"),
        CheckConstraint(
            "default_work_start_time < default_work_end_time", name="ck_settings_work_window"
        ),
    )

    def __repr__(self) -> str:
        return f"<SchedulingSettings tenant={self.tenant_id} buffer={self.buffer_time_between_lessons}>"
