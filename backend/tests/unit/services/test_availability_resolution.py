from datetime import date, time

import pytest
from pydantic import ValidationError

from lesson_scheduling.core.exceptions import NotFoundException
from lesson_scheduling.domain.intervals import TimeWindow
from lesson_scheduling.schemas.availability import AvailabilityBlockCreate, TimeOffCreate
from lesson_scheduling.services.availability_service import AvailabilityService

TENANT_ID = "tenant-unit"
MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)


@pytest.fixture
def service(unit_db):
    return AvailabilityService(unit_db)


class TestOpenWindows:
    def test_windows_for_matching_weekday(self, service, instructor, monday_schedule):
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == [TimeWindow(540, 720)]
        assert service.get_open_windows(TENANT_ID, instructor.id, TUESDAY) == []

    def test_windows_are_ordered(self, service, instructor, monday_schedule):
        service.add_availability_block(
            TENANT_ID,
            instructor.id,
            AvailabilityBlockCreate(day_of_week=1, start_time=time(7, 0), end_time=time(8, 30)),
        )
        windows = service.get_open_windows(TENANT_ID, instructor.id, MONDAY)
        assert windows == [TimeWindow(420, 510), TimeWindow(540, 720)]

    def test_all_day_absence_empties_the_date(self, service, instructor, monday_schedule, add_time_off):
        add_time_off()
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == []

    def test_unapproved_absence_is_ignored(self, service, instructor, monday_schedule, add_time_off):
        add_time_off(is_approved=False)
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == [TimeWindow(540, 720)]

    def test_bounded_absence_keeps_window_and_is_reported_separately(
        self, service, instructor, monday_schedule, add_time_off
    ):
        record = add_time_off(start_time=time(10, 0), end_time=time(11, 0))

        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == [TimeWindow(540, 720)]
        absences = service.get_absences(TENANT_ID, instructor.id, MONDAY)
        assert [(a.time_off_id, a.start, a.end) for a in absences] == [(record.id, 600, 660)]

    def test_unknown_instructor(self, service):
        with pytest.raises(NotFoundException):
            service.get_open_windows(TENANT_ID, "01UNKNOWNAAAAAAAAAAAAAAAAA", MONDAY)


class TestWeeklyScheduleMaintenance:
    def test_set_weekly_schedule_replaces_active_blocks(self, service, instructor, monday_schedule):
        created = service.set_weekly_schedule(
            TENANT_ID,
            instructor.id,
            [
                AvailabilityBlockCreate(day_of_week=2, start_time=time(8, 0), end_time=time(12, 0)),
                AvailabilityBlockCreate(day_of_week=2, start_time=time(13, 0), end_time=time(17, 0)),
            ],
        )

        assert len(created) == 2
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == []
        assert service.get_open_windows(TENANT_ID, instructor.id, TUESDAY) == [
            TimeWindow(480, 720),
            TimeWindow(780, 1020),
        ]
        assert len(service.get_weekly_schedule(TENANT_ID, instructor.id)) == 2

    def test_deactivate_block(self, service, instructor, monday_schedule):
        service.deactivate_availability_block(TENANT_ID, monday_schedule.id)
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == []
        with pytest.raises(NotFoundException):
            service.deactivate_availability_block(TENANT_ID, "01MISSINGAAAAAAAAAAAAAAAAA")

    def test_block_schema_rejects_inverted_times(self):
        with pytest.raises(ValidationError):
            AvailabilityBlockCreate(day_of_week=1, start_time=time(12, 0), end_time=time(9, 0))
        with pytest.raises(ValidationError):
            AvailabilityBlockCreate(day_of_week=7, start_time=time(9, 0), end_time=time(12, 0))


class TestTimeOffMaintenance:
    def test_add_and_list_time_off(self, service, instructor):
        created = service.add_time_off(
            TENANT_ID,
            instructor.id,
            TimeOffCreate(start_date=MONDAY, end_date=TUESDAY, reason="vacation"),
        )
        assert created.reason == "vacation"
        assert created.is_all_day
        listed = service.get_time_off(TENANT_ID, instructor.id, MONDAY, MONDAY)
        assert [r.id for r in listed] == [created.id]

    def test_pending_time_off_applies_after_approval(self, service, instructor, monday_schedule):
        pending = service.add_time_off(
            TENANT_ID,
            instructor.id,
            TimeOffCreate(start_date=MONDAY, end_date=MONDAY, is_approved=False),
        )
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == [TimeWindow(540, 720)]

        approved = service.approve_time_off(TENANT_ID, pending.id, approved_by="admin")
        assert approved.is_approved is True
        assert approved.approved_at is not None
        assert service.get_open_windows(TENANT_ID, instructor.id, MONDAY) == []

    def test_delete_time_off(self, service, instructor, add_time_off):
        record = add_time_off()
        service.delete_time_off(TENANT_ID, record.id)
        with pytest.raises(NotFoundException):
            service.delete_time_off(TENANT_ID, record.id)

    def test_approve_unknown_time_off(self, service):
        with pytest.raises(NotFoundException):
            service.approve_time_off(TENANT_ID, "01MISSINGAAAAAAAAAAAAAAAAA")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_date": TUESDAY, "end_date": MONDAY},
            {"start_date": MONDAY, "end_date": MONDAY, "start_time": time(10, 0)},
            {"start_date": MONDAY, "end_date": MONDAY, "start_time": time(11, 0), "end_time": time(10, 0)},
        ],
    )
    def test_time_off_schema_rejects_invalid_bounds(self, kwargs):
        with pytest.raises(ValidationError):
            TimeOffCreate(**kwargs)
