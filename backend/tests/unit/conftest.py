from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lesson_scheduling.database import Base, enable_sqlite_savepoints

# Import models so Base.metadata is populated for create_all.
import lesson_scheduling.models  # noqa: F401
from lesson_scheduling.models import (
    Instructor,
    InstructorAvailability,
    InstructorTimeOff,
    Lesson,
    SchedulingSettings,
    Vehicle,
)

TENANT_ID = "tenant-unit"  # mirrored in test modules
STUDENT_ID = "01STUDENTAAAAAAAAAAAAAAAAA"
OTHER_STUDENT_ID = "01STUDENTBBBBBBBBBBBBBBBBB"

# 2025-01-06 is a Monday (day_of_week == 1)
MONDAY = date(2025, 1, 6)


@pytest.fixture(scope="session")
def _unit_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def unit_db(_unit_engine) -> Session:
    """
    Provide a transactional session bound to the shared in-memory engine.

    Service commits and rollbacks act on savepoints; the outer transaction
    is rolled back after each test.
    """
    connection = _unit_engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        expire_on_commit=False,
        future=True,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def instructor(unit_db) -> Instructor:
    record = Instructor(tenant_id=TENANT_ID, display_name="Avery Instructor")
    unit_db.add(record)
    unit_db.commit()
    return record


@pytest.fixture
def monday_schedule(unit_db, instructor) -> InstructorAvailability:
    """Monday 09:00-12:00."""
    block = InstructorAvailability(
        tenant_id=TENANT_ID,
        instructor_id=instructor.id,
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(12, 0),
    )
    unit_db.add(block)
    unit_db.commit()
    return block


@pytest.fixture
def tenant_settings(unit_db) -> SchedulingSettings:
    """Explicit settings row: buffer 15, back-to-back not allowed."""
    row = SchedulingSettings(
        tenant_id=TENANT_ID,
        buffer_time_between_lessons=15,
        buffer_time_before_first_lesson=0,
        buffer_time_after_last_lesson=0,
        min_hours_advance_booking=24,
        max_days_advance_booking=90,
        default_lesson_duration=60,
        allow_back_to_back_lessons=False,
        default_work_start_time=time(8, 0),
        default_work_end_time=time(18, 0),
    )
    unit_db.add(row)
    unit_db.commit()
    return row


@pytest.fixture
def add_lesson(unit_db, instructor):
    def _add(
        start: time,
        end: time,
        *,
        lesson_date: date = MONDAY,
        student_id: str = STUDENT_ID,
        instructor_id=None,
        vehicle_id=None,
        buffer_time_after=None,
        status: str = "scheduled",
    ) -> Lesson:
        lesson = Lesson(
            tenant_id=TENANT_ID,
            student_id=student_id,
            instructor_id=instructor_id or instructor.id,
            vehicle_id=vehicle_id,
            lesson_date=lesson_date,
            start_time=start,
            end_time=end,
            duration=(end.hour * 60 + end.minute) - (start.hour * 60 + start.minute),
            buffer_time_after=buffer_time_after,
            status=status,
        )
        unit_db.add(lesson)
        unit_db.commit()
        return lesson

    return _add


@pytest.fixture
def add_time_off(unit_db, instructor):
    def _add(
        start_date: date = MONDAY,
        end_date: date = MONDAY,
        start_time=None,
        end_time=None,
        is_approved: bool = True,
    ) -> InstructorTimeOff:
        record = InstructorTimeOff(
            tenant_id=TENANT_ID,
            instructor_id=instructor.id,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
            is_approved=is_approved,
        )
        unit_db.add(record)
        unit_db.commit()
        return record

    return _add


@pytest.fixture
def add_vehicle(unit_db):
    def _add(ownership_type: str = "school_owned", instructor_id=None) -> Vehicle:
        vehicle = Vehicle(
            tenant_id=TENANT_ID, ownership_type=ownership_type, instructor_id=instructor_id
        )
        unit_db.add(vehicle)
        unit_db.commit()
        return vehicle

    return _add
