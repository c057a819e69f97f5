import pytest
from pydantic import ValidationError

from lesson_scheduling.core.config import Settings
from lesson_scheduling.core.enums import LessonStatus, RecurrenceType
from lesson_scheduling.core.exceptions import (
    BookingConflictException,
    ConflictException,
    DomainException,
    InvalidTimeFormatException,
    NotFoundException,
    ValidationException,
)
from lesson_scheduling.core.ulid_helper import generate_ulid, is_valid_ulid


class TestSettings:
    def test_scheduling_defaults(self, monkeypatch):
        for name in ("REDIS_URL", "DEFAULT_BUFFER_TIME_BETWEEN_LESSONS", "RECURRENCE_SAFETY_CAP"):
            monkeypatch.delenv(name, raising=False)
        cfg = Settings(_env_file=None)
        assert cfg.default_buffer_time_between_lessons == 15
        assert cfg.default_min_hours_advance_booking == 24
        assert cfg.default_max_days_advance_booking == 90
        assert cfg.default_lesson_duration == 60
        assert cfg.default_allow_back_to_back_lessons is False
        assert cfg.recurrence_safety_cap == 366

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_BUFFER_TIME_BETWEEN_LESSONS", "30")
        monkeypatch.setenv("REDIS_URL", "   ")
        cfg = Settings(_env_file=None)
        assert cfg.default_buffer_time_between_lessons == 30
        assert cfg.redis_url is None

    def test_negative_buffer_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_buffer_time_between_lessons=-1)

    def test_zero_safety_cap_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, recurrence_safety_cap=0)


class TestExceptions:
    def test_domain_exception_defaults_code_to_class_name(self):
        exc = NotFoundException("missing")
        assert exc.code == "NotFoundException"
        assert exc.to_dict() == {"message": "missing", "code": "NotFoundException", "details": {}}

    def test_invalid_time_format_is_validation_error(self):
        exc = InvalidTimeFormatException("25:99")
        assert isinstance(exc, ValidationException)
        assert exc.details == {"value": "25:99"}

    def test_booking_conflict_carries_conflicts(self):
        conflicts = [{"type": "instructor_busy", "message": "busy"}]
        exc = BookingConflictException(conflicts=conflicts)
        assert isinstance(exc, ConflictException)
        assert isinstance(exc, DomainException)
        assert exc.code == "BOOKING_CONFLICT"
        assert exc.details["conflicts"] == conflicts


def test_enum_values_match_stored_strings():
    assert LessonStatus.inactive() == (LessonStatus.CANCELLED, LessonStatus.NO_SHOW)
    assert LessonStatus.NO_SHOW == "no_show"
    assert RecurrenceType.BIWEEKLY.uses_days_of_week
    assert not RecurrenceType.MONTHLY.uses_days_of_week


def test_generated_ids_are_ulids():
    value = generate_ulid()
    assert len(value) == 26
    assert is_valid_ulid(value)
    assert not is_valid_ulid("not-a-ulid")
