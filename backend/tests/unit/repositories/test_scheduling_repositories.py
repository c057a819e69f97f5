from datetime import date, time
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from lesson_scheduling.core.exceptions import RepositoryException
from lesson_scheduling.models import Lesson
from lesson_scheduling.repositories import (
    AvailabilityRepository,
    InstructorRepository,
    LessonRepository,
    RecurringPatternRepository,
    RepositoryFactory,
    SchedulingSettingsRepository,
)

TENANT_ID = "tenant-unit"
MONDAY = date(2025, 1, 6)


def _broken_session():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))
    return db


def _repo_with_broken_session(cls):
    repo = cls.__new__(cls)
    repo.db = _broken_session()
    repo.logger = MagicMock()
    return repo


class TestFactory:
    def test_factory_builds_each_repository(self, unit_db):
        assert isinstance(RepositoryFactory.create_availability_repository(unit_db), AvailabilityRepository)
        assert isinstance(RepositoryFactory.create_instructor_repository(unit_db), InstructorRepository)
        assert isinstance(RepositoryFactory.create_lesson_repository(unit_db), LessonRepository)
        assert isinstance(
            RepositoryFactory.create_scheduling_settings_repository(unit_db),
            SchedulingSettingsRepository,
        )
        assert isinstance(
            RepositoryFactory.create_recurring_pattern_repository(unit_db),
            RecurringPatternRepository,
        )


class TestLessonRepository:
    def test_active_lessons_exclude_cancelled_and_no_show(self, unit_db, add_lesson):
        kept = add_lesson(time(10, 0), time(11, 0))
        add_lesson(time(12, 0), time(13, 0), status="cancelled")
        add_lesson(time(14, 0), time(15, 0), status="no_show")
        completed = add_lesson(time(8, 0), time(9, 0), status="completed")

        repo = LessonRepository(unit_db)
        lessons = repo.get_active_lessons_for_date(TENANT_ID, MONDAY, instructor_id=kept.instructor_id)

        assert [lesson.id for lesson in lessons] == [completed.id, kept.id]

    def test_filters_and_exclusion(self, unit_db, add_lesson):
        first = add_lesson(time(10, 0), time(11, 0), student_id="student-a", vehicle_id="vehicle-1")
        second = add_lesson(time(11, 0), time(12, 0), student_id="student-b", vehicle_id="vehicle-1")
        add_lesson(time(10, 0), time(11, 0), lesson_date=date(2025, 1, 7), student_id="student-a")

        repo = LessonRepository(unit_db)
        by_student = repo.get_active_lessons_for_date(TENANT_ID, MONDAY, student_id="student-a")
        by_vehicle = repo.get_active_lessons_for_date(
            TENANT_ID, MONDAY, vehicle_id="vehicle-1", exclude_lesson_id=first.id
        )

        assert [lesson.id for lesson in by_student] == [first.id]
        assert [lesson.id for lesson in by_vehicle] == [second.id]

    def test_other_tenant_is_invisible(self, unit_db, add_lesson):
        lesson = add_lesson(time(10, 0), time(11, 0))
        repo = LessonRepository(unit_db)
        assert repo.get_for_tenant("tenant-other", lesson.id) is None
        assert repo.get_for_tenant(TENANT_ID, lesson.id).id == lesson.id

    def test_query_error_wrapped(self):
        repo = _repo_with_broken_session(LessonRepository)
        with pytest.raises(RepositoryException):
            repo.get_active_lessons_for_date(TENANT_ID, MONDAY, instructor_id="x")


class TestAvailabilityRepository:
    def test_blocks_for_day_ordered_and_active_only(self, unit_db, instructor):
        repo = AvailabilityRepository(unit_db)
        late = repo.create_block(TENANT_ID, instructor.id, day_of_week=1, start_time=time(13, 0), end_time=time(17, 0))
        early = repo.create_block(TENANT_ID, instructor.id, day_of_week=1, start_time=time(8, 0), end_time=time(12, 0))
        repo.create_block(TENANT_ID, instructor.id, day_of_week=2, start_time=time(8, 0), end_time=time(12, 0))

        assert [b.id for b in repo.get_active_blocks_for_day(TENANT_ID, instructor.id, 1)] == [early.id, late.id]

        assert repo.deactivate_block(TENANT_ID, late.id) is True
        assert [b.id for b in repo.get_active_blocks_for_day(TENANT_ID, instructor.id, 1)] == [early.id]
        assert repo.deactivate_block(TENANT_ID, "missing") is False

    def test_deactivate_all_blocks_counts(self, unit_db, instructor):
        repo = AvailabilityRepository(unit_db)
        for dow in (1, 2, 3):
            repo.create_block(TENANT_ID, instructor.id, day_of_week=dow, start_time=time(8, 0), end_time=time(12, 0))
        assert repo.deactivate_all_blocks(TENANT_ID, instructor.id) == 3
        assert repo.get_active_blocks(TENANT_ID, instructor.id) == []

    def test_only_approved_time_off_covering_date(self, unit_db, add_time_off, instructor):
        covering = add_time_off(start_date=date(2025, 1, 5), end_date=date(2025, 1, 7))
        add_time_off(is_approved=False)
        add_time_off(start_date=date(2025, 1, 7), end_date=date(2025, 1, 8))

        repo = AvailabilityRepository(unit_db)
        records = repo.get_approved_time_off_for_date(TENANT_ID, instructor.id, MONDAY)
        assert [r.id for r in records] == [covering.id]

    def test_time_off_range_listing_and_delete(self, unit_db, add_time_off, instructor):
        january = add_time_off(start_date=date(2025, 1, 6), end_date=date(2025, 1, 6))
        march = add_time_off(start_date=date(2025, 3, 3), end_date=date(2025, 3, 4))

        repo = AvailabilityRepository(unit_db)
        listed = repo.get_time_off(TENANT_ID, instructor.id, date(2025, 3, 1), date(2025, 3, 31))
        assert [r.id for r in listed] == [march.id]
        assert len(repo.get_time_off(TENANT_ID, instructor.id)) == 2

        assert repo.delete_time_off(TENANT_ID, january.id) is True
        assert repo.delete_time_off(TENANT_ID, january.id) is False

    def test_create_time_off_stamps_approval(self, unit_db, instructor):
        repo = AvailabilityRepository(unit_db)
        record = repo.create_time_off(
            TENANT_ID, instructor.id, start_date=MONDAY, end_date=MONDAY, is_approved=True
        )
        assert record.approved_at is not None

    def test_query_error_wrapped(self):
        repo = _repo_with_broken_session(AvailabilityRepository)
        with pytest.raises(RepositoryException):
            repo.get_active_blocks_for_day(TENANT_ID, "x", 1)
        with pytest.raises(RepositoryException):
            repo.get_approved_time_off_for_date(TENANT_ID, "x", MONDAY)


class TestInstructorRepository:
    def test_active_instructors_only(self, unit_db, instructor):
        from lesson_scheduling.models import Instructor

        unit_db.add(Instructor(tenant_id=TENANT_ID, status="inactive"))
        unit_db.add(Instructor(tenant_id="tenant-other"))
        unit_db.flush()

        repo = InstructorRepository(unit_db)
        assert [i.id for i in repo.get_active_instructors(TENANT_ID)] == [instructor.id]

    def test_lock_for_booking_on_sqlite_returns_row(self, unit_db, instructor):
        repo = InstructorRepository(unit_db)
        assert repo.dialect_name == "sqlite"
        assert repo.lock_for_booking(TENANT_ID, instructor.id).id == instructor.id
        assert repo.lock_for_booking("tenant-other", instructor.id) is None

    def test_lock_for_booking_uses_for_update_elsewhere(self):
        repo = InstructorRepository.__new__(InstructorRepository)
        repo.db = MagicMock()
        repo.db.get_bind.return_value.dialect.name = "postgresql"
        repo.logger = MagicMock()

        repo.lock_for_booking(TENANT_ID, "instr")

        query = repo.db.query.return_value.filter.return_value
        query.with_for_update.assert_called_once()

    def test_vehicle_lookup(self, unit_db, add_vehicle):
        vehicle = add_vehicle()
        repo = InstructorRepository(unit_db)
        assert repo.get_vehicle(TENANT_ID, vehicle.id).is_shared is True
        assert repo.get_vehicle("tenant-other", vehicle.id) is None


class TestSchedulingSettingsRepository:
    def test_get_or_create_inserts_once(self, unit_db):
        repo = SchedulingSettingsRepository(unit_db)
        defaults = {
            "buffer_time_between_lessons": 10,
            "buffer_time_before_first_lesson": 0,
            "buffer_time_after_last_lesson": 0,
            "min_hours_advance_booking": 24,
            "max_days_advance_booking": 90,
            "default_lesson_duration": 60,
            "allow_back_to_back_lessons": False,
            "default_work_start_time": time(8, 0),
            "default_work_end_time": time(18, 0),
        }
        first = repo.get_or_create(TENANT_ID, defaults)
        second = repo.get_or_create(TENANT_ID, {**defaults, "buffer_time_between_lessons": 99})
        assert first.id == second.id
        assert second.buffer_time_between_lessons == 10

    def test_query_error_wrapped(self):
        repo = _repo_with_broken_session(SchedulingSettingsRepository)
        with pytest.raises(RepositoryException):
            repo.get_by_tenant(TENANT_ID)


class TestRecurringPatternRepository:
    @pytest.fixture
    def pattern(self, unit_db, instructor):
        repo = RecurringPatternRepository(unit_db)
        return repo.create(
            tenant_id=TENANT_ID,
            student_id="student-a",
            instructor_id=instructor.id,
            duration=60,
            recurrence_type="weekly",
            days_of_week=[1, 3],
            time_of_day=time(16, 0),
            start_date=MONDAY,
        )

    def test_duplicate_exception_is_noop(self, unit_db, pattern):
        repo = RecurringPatternRepository(unit_db)
        assert repo.add_exception(TENANT_ID, pattern.id, MONDAY, "holiday") is not None
        assert repo.add_exception(TENANT_ID, pattern.id, MONDAY) is None
        assert repo.get_exception_dates(pattern.id) == {MONDAY}

    def test_duplicate_occurrence_link_leaves_no_lesson(self, unit_db, pattern):
        repo = RecurringPatternRepository(unit_db)

        def _lesson():
            return Lesson(
                tenant_id=TENANT_ID,
                student_id="student-a",
                instructor_id=pattern.instructor_id,
                lesson_date=MONDAY,
                start_time=time(16, 0),
                end_time=time(17, 0),
                duration=60,
            )

        assert repo.create_occurrence(_lesson(), pattern.id, 1) is not None
        assert repo.create_occurrence(_lesson(), pattern.id, 1) is None

        assert list(repo.get_links(pattern.id)) == [1]
        assert unit_db.query(Lesson).filter(Lesson.tenant_id == TENANT_ID).count() == 1

    def test_invalid_lesson_in_occurrence_raises(self, unit_db, pattern):
        repo = RecurringPatternRepository(unit_db)
        broken = Lesson(
            tenant_id=TENANT_ID,
            student_id="student-a",
            instructor_id=pattern.instructor_id,
            lesson_date=MONDAY,
            start_time=time(16, 0),
            end_time=time(17, 0),
            duration=0,
        )

        with pytest.raises(RepositoryException):
            repo.create_occurrence(broken, pattern.id, 1)

        assert repo.get_link(pattern.id, 1) is None
        assert unit_db.query(Lesson).filter(Lesson.tenant_id == TENANT_ID).count() == 0

    def test_list_active_skips_inactive(self, unit_db, pattern):
        repo = RecurringPatternRepository(unit_db)
        assert [p.id for p in repo.list_active(TENANT_ID)] == [pattern.id]
        pattern.is_active = False
        unit_db.flush()
        assert repo.list_active(TENANT_ID) == []

    def test_query_error_wrapped(self):
        repo = _repo_with_broken_session(RecurringPatternRepository)
        with pytest.raises(RepositoryException):
            repo.get_links("p")
        with pytest.raises(RepositoryException):
            repo.get_exception_dates("p")


def test_base_repository_wraps_sqlalchemy_errors():
    repo = LessonRepository.__new__(LessonRepository)
    repo.db = MagicMock()
    repo.db.get.side_effect = SQLAlchemyError("boom")
    repo.model = Lesson
    repo.logger = MagicMock()
    with pytest.raises(RepositoryException):
        repo.get_by_id("anything")
