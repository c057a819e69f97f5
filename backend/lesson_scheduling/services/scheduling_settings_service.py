# backend/lesson_scheduling/services/scheduling_settings_service.py
"""
Scheduling Settings Service for the lesson scheduling core.

Every scheduling computation takes an immutable SchedulingSettingsSnapshot
loaded once per operation. Rows are created with the configured defaults
on first read, so callers never see a missing-settings state.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings as app_settings
from ..core.exceptions import ValidationException
from ..repositories import RepositoryFactory
from ..repositories.scheduling_settings_repository import SchedulingSettingsRepository
from ..schemas.scheduling_settings import SchedulingSettingsSnapshot, SchedulingSettingsUpdate
from ..utils.time_helpers import minutes_to_time, to_minutes
from .base import BaseService

logger = logging.getLogger(__name__)


def default_settings_values() -> Dict[str, Any]:
    """Column values for a freshly created tenant settings row."""
    return {
        "buffer_time_between_lessons": app_settings.default_buffer_time_between_lessons,
        "buffer_time_before_first_lesson": app_settings.default_buffer_time_before_first_lesson,
        "buffer_time_after_last_lesson": app_settings.default_buffer_time_after_last_lesson,
        "min_hours_advance_booking": app_settings.default_min_hours_advance_booking,
        "max_days_advance_booking": app_settings.default_max_days_advance_booking,
        "default_lesson_duration": app_settings.default_lesson_duration,
        "allow_back_to_back_lessons": app_settings.default_allow_back_to_back_lessons,
        "default_work_start_time": minutes_to_time(to_minutes(app_settings.default_work_start_time)),
        "default_work_end_time": minutes_to_time(to_minutes(app_settings.default_work_end_time)),
    }


class SchedulingSettingsService(BaseService):
    """Loads and updates per-tenant scheduling settings."""

    def __init__(self, db: Session, repository: Optional[SchedulingSettingsRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_scheduling_settings_repository(db)

    @BaseService.measure_operation("get_settings")
    def get_settings(self, tenant_id: str) -> SchedulingSettingsSnapshot:
        """
        Return the tenant's settings, creating the defaults row if absent.

        Call this before opening a booking transaction: the first read for a
        tenant commits the new row.
        """
        row = self.repository.get_by_tenant(tenant_id)
        if row is None:
            with self.transaction():
                row = self.repository.get_or_create(tenant_id, default_settings_values())
        return SchedulingSettingsSnapshot.model_validate(row)

    @BaseService.measure_operation("update_settings")
    def update_settings(
        self, tenant_id: str, update: SchedulingSettingsUpdate
    ) -> SchedulingSettingsSnapshot:
        """
        Apply a partial update and return a new snapshot.

        Only fields the caller explicitly set are written. The resulting
        work window is validated against the stored values.
        """
        changes = update.changes()

        with self.transaction():
            row = self.repository.get_or_create(tenant_id, default_settings_values())

            start = changes.get("default_work_start_time", row.default_work_start_time)
            end = changes.get("default_work_end_time", row.default_work_end_time)
            if start >= end:
                raise ValidationException(
                    "default_work_start_time must be before default_work_end_time",
                    code="INVALID_WORK_WINDOW",
                    details={"start": str(start), "end": str(end)},
                )

            for field, value in changes.items():
                setattr(row, field, value)
            self.repository.flush()

        self.logger.info(f"Updated scheduling settings for tenant {tenant_id}: {sorted(changes)}")
        return SchedulingSettingsSnapshot.model_validate(row)
