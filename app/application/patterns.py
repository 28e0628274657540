"""Recurrence pattern use cases"""
import logging
from dataclasses import dataclass
from datetime import datetime

from app.application.occurrence_generator import OccurrenceGenerator
from app.application.satisfaction import SatisfactionOracle
from app.application.store import RecurrenceStore
from app.domain.errors import ConflictError, NotFoundError
from app.domain.event import Event
from app.domain.recurrence import (
    EVERY_N_DAYS,
    RecurrencePattern,
    schedule_from_fields,
    schedule_to_fields,
)
from app.utils.clock import local_now

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "duration_minutes", "active"})


class PatternValidationError(ValueError):
    pass


def validate_pattern_form(
    title: str,
    duration_minutes: int,
    flexible_scheduling: bool,
    start_time: datetime | None,
) -> str | None:
    """Validate the frequency-independent part of a pattern. Returns error message or None."""
    if not title or not title.strip():
        return "Title is required"
    if duration_minutes is None or duration_minutes <= 0:
        return "Duration must be greater than 0"
    if not flexible_scheduling and start_time is None:
        return "start_time is required when flexible_scheduling is false"
    if flexible_scheduling and start_time is not None:
        return "start_time must be empty when flexible_scheduling is true"
    return None


@dataclass(frozen=True)
class CreatedPattern:
    pattern: RecurrencePattern
    initial_event: Event | None


class CreatePatternUseCase:
    def __init__(self, store: RecurrenceStore):
        self.store = store

    def execute(
        self,
        title: str,
        frequency: str,
        duration_minutes: int,
        frequency_value: int = 1,
        yearly_config: dict | None = None,
        nth_weekday_config: dict | None = None,
        yearly_nth_weekday: dict | None = None,
        flexible_scheduling: bool = True,
        start_time: datetime | None = None,
        generate_initial_instance: bool = True,
        now: datetime | None = None,
    ) -> CreatedPattern:
        error = validate_pattern_form(title, duration_minutes, flexible_scheduling, start_time)
        if error:
            raise PatternValidationError(error)

        # raises ConfigurationError / UnknownFrequencyError on a bad frequency config
        schedule = schedule_from_fields(
            frequency=frequency,
            frequency_value=frequency_value,
            yearly_config=yearly_config,
            nth_weekday_config=nth_weekday_config,
            yearly_nth_weekday=yearly_nth_weekday,
        )

        pattern = self.store.add_pattern({
            "title": title.strip(),
            "duration_minutes": duration_minutes,
            "flexible_scheduling": flexible_scheduling,
            "start_time": start_time,
            **schedule_to_fields(schedule),
        })
        logger.info("Created %s pattern %s", pattern.frequency, pattern.id)

        initial_event = None
        if generate_initial_instance and pattern.frequency != EVERY_N_DAYS:
            try:
                initial_event = OccurrenceGenerator(self.store).generate_for_current_period(pattern.id, now)
            except ConflictError:
                logger.info("Initial instance for pattern %s already exists", pattern.id)
        return CreatedPattern(pattern=pattern, initial_event=initial_event)


class UpdatePatternUseCase:
    """Only title, duration and active are mutable; frequency and its config are fixed at creation."""

    def __init__(self, store: RecurrenceStore):
        self.store = store

    def execute(self, pattern_id: str, **changes) -> RecurrencePattern:
        if self.store.get_pattern(pattern_id) is None:
            raise NotFoundError(f"Pattern {pattern_id} not found")

        immutable = set(changes) - UPDATABLE_FIELDS
        if immutable:
            raise PatternValidationError(f"Fields cannot be changed: {', '.join(sorted(immutable))}")

        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise PatternValidationError("Title cannot be empty")
            changes["title"] = title
        if "duration_minutes" in changes and (changes["duration_minutes"] is None or changes["duration_minutes"] <= 0):
            raise PatternValidationError("Duration must be greater than 0")
        if "active" in changes and changes["active"] is None:
            raise PatternValidationError("active must be true or false")

        return self.store.update_pattern(pattern_id, changes)


class DeactivatePatternUseCase:
    """Soft delete: the pattern stays, generated events keep their pattern_id."""

    def __init__(self, store: RecurrenceStore):
        self.store = store

    def execute(self, pattern_id: str) -> RecurrencePattern:
        if self.store.get_pattern(pattern_id) is None:
            raise NotFoundError(f"Pattern {pattern_id} not found")
        return self.store.update_pattern(pattern_id, {"active": False})


class GenerateInstanceUseCase:
    def __init__(self, store: RecurrenceStore):
        self.store = store

    def execute(self, pattern_id: str, period_key: str | None = None, now: datetime | None = None) -> Event | None:
        """Generate the instance for an explicit period, or the current one. None = already satisfied."""
        pattern = self.store.get_pattern(pattern_id)
        if pattern is None:
            raise NotFoundError(f"Pattern {pattern_id} not found")
        if not pattern.active:
            raise PatternValidationError("Pattern is not active")

        generator = OccurrenceGenerator(self.store)
        if period_key:
            return generator.generate_for_period(pattern, period_key, now or local_now())
        return generator.generate_for_current_period(pattern_id, now)


def next_every_n_days_date(store: RecurrenceStore, pattern_id: str, now: datetime | None = None) -> datetime:
    pattern = store.get_pattern(pattern_id)
    if pattern is None:
        raise NotFoundError(f"Pattern {pattern_id} not found")
    return SatisfactionOracle(store).next_suggested_date(pattern, now)
