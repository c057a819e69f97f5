# backend/lesson_scheduling/services/recurring_pattern_service.py
"""
Recurring Pattern Service for the lesson scheduling core.

Expands a recurring lesson pattern into lessons. Generation is safe to
replay: each occurrence number is linked to the lesson it produced, the
link is unique per (pattern, occurrence number) in the database, and a
second run skips occurrences that already have a link.

Expansion stops at the first of:
- max_occurrences reached
- candidate date past end_date
- the loop safety cap (reported on the result, not raised)

Exception dates are skipped without consuming an occurrence number.
Adding an exception never removes a lesson that was already generated.

Occurrences are booked one at a time through BookingService.commit_checked,
so a conflicting occurrence is never written; it is reported and retried by
the next run.
"""

from datetime import date
from functools import partial
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings as app_settings
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    NotFoundException,
    ValidationException,
)
from ..domain.recurrence import RecurrenceRule, iter_candidate_dates
from ..models.lesson import Lesson
from ..models.recurring_pattern import (
    PatternGeneratedLesson,
    RecurringLessonPattern,
    RecurringPatternException,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.recurring_pattern_repository import RecurringPatternRepository
from ..schemas.recurring_pattern import (
    GeneratedOccurrence,
    GenerationResult,
    RecurringPatternCreate,
)
from ..schemas.scheduling import LessonCreate, SchedulingConflict
from ..schemas.scheduling_settings import SchedulingSettingsSnapshot
from ..utils.time_helpers import MINUTES_PER_DAY, combine_minutes, to_minutes
from .base import BaseService
from .booking_service import BookingService, lesson_fields
from .conflict_checker import ConflictChecker
from .scheduling_settings_service import SchedulingSettingsService

logger = logging.getLogger(__name__)


def _require_same_day(time_of_day_minutes: int, duration: int) -> None:
    if time_of_day_minutes + duration > MINUTES_PER_DAY:
        raise ValidationException(
            "Pattern lessons must end on the day they start",
            code="INVALID_RECURRENCE",
            details={"time_of_day_minutes": time_of_day_minutes, "duration": duration},
        )


class RecurringPatternService(BaseService):
    """
    Service layer for recurring lesson patterns.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[RecurringPatternRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        settings_service: Optional[SchedulingSettingsService] = None,
        booking_service: Optional[BookingService] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_recurring_pattern_repository(db)
        self.settings_service = settings_service or SchedulingSettingsService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.settings_service)
        self.booking_service = booking_service or BookingService(
            db, self.conflict_checker, self.settings_service
        )
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)

    def _get_pattern(self, tenant_id: str, pattern_id: str) -> RecurringLessonPattern:
        pattern = self.repository.get_for_tenant(tenant_id, pattern_id)
        if pattern is None:
            raise NotFoundException(
                f"Recurring pattern {pattern_id} not found",
                code="PATTERN_NOT_FOUND",
                details={"pattern_id": pattern_id},
            )
        return pattern

    def _insert_occurrence(
        self, pattern_id: str, occurrence_number: int, data: LessonCreate
    ) -> Optional[PatternGeneratedLesson]:
        return self.repository.create_occurrence(
            Lesson(**lesson_fields(data)), pattern_id, occurrence_number
        )

    @BaseService.measure_operation("create_pattern")
    def create_pattern(self, tenant_id: str, data: RecurringPatternCreate) -> RecurringLessonPattern:
        """
        Store a new pattern. No lessons are generated until generate_lessons is called.

        Raises:
            NotFoundException: Unknown instructor
            ValidationException: Rule produces no dates or lessons would cross midnight
        """
        if self.instructor_repository.get_for_tenant(tenant_id, data.instructor_id) is None:
            raise NotFoundException(
                f"Instructor {data.instructor_id} not found",
                code="INSTRUCTOR_NOT_FOUND",
                details={"instructor_id": data.instructor_id},
            )
        RecurrenceRule.build(data.recurrence_type.value, data.start_date, data.days_of_week)
        _require_same_day(to_minutes(data.time_of_day), data.duration)

        fields = data.model_dump()
        fields["recurrence_type"] = data.recurrence_type.value
        if not data.recurrence_type.uses_days_of_week:
            fields["days_of_week"] = None

        with self.transaction():
            pattern = self.repository.create(tenant_id=tenant_id, is_active=True, **fields)

        self.logger.info(
            f"Created {pattern.recurrence_type} pattern {pattern.id} for student {pattern.student_id}"
        )
        return pattern

    @BaseService.measure_operation("list_patterns")
    def list_patterns(self, tenant_id: str) -> List[RecurringLessonPattern]:
        return self.repository.list_active(tenant_id)

    @BaseService.measure_operation("deactivate_pattern")
    def deactivate_pattern(self, tenant_id: str, pattern_id: str) -> RecurringLessonPattern:
        """Stop future generation. Lessons already generated are kept."""
        with self.transaction():
            pattern = self._get_pattern(tenant_id, pattern_id)
            pattern.is_active = False
        return pattern

    @BaseService.measure_operation("add_exception")
    def add_exception(
        self,
        tenant_id: str,
        pattern_id: str,
        exception_date: date,
        reason: Optional[str] = None,
    ) -> Optional[RecurringPatternException]:
        """
        Mark a date on which the pattern must not produce a lesson.

        Returns None when the date was already an exception.
        """
        with self.transaction():
            self._get_pattern(tenant_id, pattern_id)
            created = self.repository.add_exception(tenant_id, pattern_id, exception_date, reason)

        if created is None:
            self.logger.debug(f"Exception {exception_date} already present on pattern {pattern_id}")
        return created

    @BaseService.measure_operation("generate_lessons")
    def generate_lessons(
        self,
        tenant_id: str,
        pattern_id: str,
        settings: Optional[SchedulingSettingsSnapshot] = None,
    ) -> GenerationResult:
        """
        Materialize the pattern's occurrences as lessons.

        Every new occurrence is committed through the same locked re-check
        as a manual booking, in its own transaction. A conflicting occurrence
        is not created and gets no link, so a later run retries it; its
        occurrence number is still used and its conflicts are reported.

        Raises:
            NotFoundException: Unknown pattern
            BusinessRuleException: Pattern is inactive
            ConflictException: Another booking holds a mutex for an occurrence;
                occurrences committed before it are kept
        """
        pattern = self._get_pattern(tenant_id, pattern_id)
        if not pattern.is_active:
            raise BusinessRuleException(
                f"Recurring pattern {pattern_id} is not active",
                code="PATTERN_INACTIVE",
                details={"pattern_id": pattern_id},
            )

        snapshot = settings or self.settings_service.get_settings(tenant_id)
        rule = RecurrenceRule.build(pattern.recurrence_type, pattern.start_date, pattern.days_of_week)
        start_minutes = to_minutes(pattern.time_of_day)
        _require_same_day(start_minutes, pattern.duration)

        exception_dates = self.repository.get_exception_dates(pattern.id)
        links = self.repository.get_links(pattern.id)
        safety_cap = app_settings.recurrence_safety_cap

        occurrences: List[GeneratedOccurrence] = []
        skipped_dates: List[date] = []
        occurrence_number = 0
        iterations = 0
        generated = 0
        cap_reached = False

        for candidate in iter_candidate_dates(rule):
            if pattern.max_occurrences and occurrence_number >= pattern.max_occurrences:
                break
            if pattern.end_date and candidate > pattern.end_date:
                break
            if iterations >= safety_cap:
                cap_reached = True
                break
            iterations += 1

            if candidate in exception_dates:
                skipped_dates.append(candidate)
                prometheus_metrics.record_pattern_occurrence("exception")
                continue

            occurrence_number += 1

            existing = links.get(occurrence_number)
            if existing is not None:
                occurrences.append(
                    GeneratedOccurrence(
                        occurrence_number=occurrence_number,
                        scheduled_date=existing.scheduled_date,
                        lesson_id=existing.lesson_id,
                    )
                )
                prometheus_metrics.record_pattern_occurrence("existing")
                continue

            data = LessonCreate(
                tenant_id=tenant_id,
                instructor_id=pattern.instructor_id,
                student_id=pattern.student_id,
                vehicle_id=pattern.vehicle_id,
                start_time=combine_minutes(candidate, start_minutes),
                end_time=combine_minutes(candidate, start_minutes + pattern.duration),
                lesson_type=pattern.lesson_type,
                cost=pattern.cost,
            )
            insert = partial(self._insert_occurrence, pattern.id, occurrence_number)

            try:
                link = self.booking_service.commit_checked(data, snapshot, insert)
            except BookingConflictException as exc:
                occurrences.append(
                    GeneratedOccurrence(
                        occurrence_number=occurrence_number,
                        scheduled_date=candidate,
                        conflicts=[
                            SchedulingConflict.model_validate(conflict)
                            for conflict in exc.details["conflicts"]
                        ],
                    )
                )
                prometheus_metrics.record_pattern_occurrence("skipped_conflict")
                continue

            if link is None:
                occurrences.append(
                    GeneratedOccurrence(
                        occurrence_number=occurrence_number,
                        scheduled_date=candidate,
                    )
                )
                prometheus_metrics.record_pattern_occurrence("existing")
                continue

            generated += 1
            occurrences.append(
                GeneratedOccurrence(
                    occurrence_number=occurrence_number,
                    scheduled_date=candidate,
                    lesson_id=link.lesson_id,
                    created=True,
                )
            )
            prometheus_metrics.record_pattern_occurrence("created")

        if cap_reached:
            self.logger.warning(
                f"Pattern {pattern_id} stopped at the safety cap of {safety_cap} iterations"
            )
        self.logger.info(
            f"Generated {generated} lessons for pattern {pattern_id} "
            f"({occurrence_number} occurrences, {len(skipped_dates)} exception dates skipped)"
        )

        return GenerationResult(
            pattern_id=pattern.id,
            lessons_generated=generated,
            occurrences_counted=occurrence_number,
            skipped_exception_dates=skipped_dates,
            occurrences=occurrences,
            safety_cap_reached=cap_reached,
        )
