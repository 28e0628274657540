"""
Occurrence Generator - materializes pattern instances as persisted events.

Idempotent: checks satisfaction before insert, and the store's unique
(pattern_id, period_key, instance_index) constraint rejects concurrent
duplicates with ConflictError.
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time

from app.application.satisfaction import SatisfactionOracle
from app.application.store import RecurrenceStore
from app.config import get_settings
from app.domain.errors import UnknownFrequencyError, UnsupportedOperationError
from app.domain.event import RECURRING_CATEGORY, Event
from app.domain.period_key import as_date, period_end, period_key
from app.domain.recurrence import (
    EVERY_N_DAYS,
    N_PER_PERIOD,
    EveryNDays,
    Monthly,
    NPerPeriod,
    NthWeekdayOfMonth,
    RecurrencePattern,
    Weekly,
    Yearly,
    YearlyNthWeekday,
    last_day_of_month,
    nth_weekday,
)
from app.utils.clock import local_now

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    frequency: str
    period_key: str
    created: list[Event] = field(default_factory=list)
    satisfied: list[str] = field(default_factory=list)  # pattern ids already done
    failed: dict[str, str] = field(default_factory=dict)  # pattern id -> error


def compute_start_time(pattern: RecurrencePattern, reference_date: date | datetime, default_hour: int = 19) -> datetime:
    """Concrete start for an auto-scheduled (inflexible) instance.

    weekly / monthly / n_per_period / every_n_days land on the reference day
    itself; yearly and nth-weekday patterns resolve their configured day
    within the reference year / month.
    """
    ref = as_date(reference_date)
    at = time(default_hour, 0)
    schedule = pattern.schedule

    if isinstance(schedule, (Weekly, Monthly, NPerPeriod, EveryNDays)):
        return datetime.combine(ref, at)

    if isinstance(schedule, Yearly):
        day = schedule.day
        if schedule.month == 2 and day == 29 and not calendar.isleap(ref.year):
            day = 28
        day = min(day, last_day_of_month(ref.year, schedule.month))
        return datetime.combine(date(ref.year, schedule.month, day), at)

    if isinstance(schedule, YearlyNthWeekday):
        d = nth_weekday(ref.year, schedule.month, schedule.weekday, schedule.occurrence)
        return datetime.combine(d, at)

    if isinstance(schedule, NthWeekdayOfMonth):
        d = nth_weekday(ref.year, ref.month, schedule.weekday, schedule.occurrence)
        return datetime.combine(d, at)

    raise UnknownFrequencyError(f"unknown frequency: {getattr(schedule, 'frequency', schedule)!r}")


class OccurrenceGenerator:
    def __init__(self, store: RecurrenceStore, default_hour: int | None = None):
        self.store = store
        self.oracle = SatisfactionOracle(store)
        self.default_hour = default_hour if default_hour is not None else get_settings().DEFAULT_START_HOUR

    def generate_for_period(
        self,
        pattern: RecurrencePattern,
        period_key: str,
        reference_date: date | datetime | None = None,
    ) -> Event | None:
        """Create the event for pattern+period, or return None when the period is already satisfied."""
        if pattern.frequency == EVERY_N_DAYS:
            raise UnsupportedOperationError("every_n_days patterns are not period-based")
        if reference_date is None:
            reference_date = local_now()

        deadline = period_end(period_key, pattern.frequency)

        if pattern.frequency == N_PER_PERIOD:
            count = self.oracle.completion_count(pattern.id, period_key)
            if count >= pattern.frequency_value:
                return None
            instance_index = count
        else:
            if self.oracle.is_satisfied(pattern.id, period_key):
                return None
            instance_index = 0

        start_time = None
        if not pattern.flexible_scheduling:
            start_time = compute_start_time(pattern, reference_date, self.default_hour)

        event = self.store.create({
            "title": pattern.title,
            "start_time": start_time,
            "duration_minutes": pattern.duration_minutes,
            "pattern_id": pattern.id,
            "period_key": period_key,
            "instance_index": instance_index,
            "category": RECURRING_CATEGORY,
            "is_flexible": pattern.flexible_scheduling,
            "is_time_bound": True,
            "deadline": deadline,
        })
        logger.info("Generated event %s for pattern %s period %s", event.id, pattern.id, period_key)
        return event

    def generate_for_current_period(self, pattern_id: str, now: datetime | None = None) -> Event | None:
        pattern = self.store.get_pattern(pattern_id)
        if pattern is None or not pattern.active:
            return None
        if pattern.frequency == EVERY_N_DAYS:
            raise UnsupportedOperationError(
                "every_n_days patterns are scheduled from the last completion, not per period"
            )
        if now is None:
            now = local_now()
        return self.generate_for_period(pattern, period_key(now, pattern.frequency), now)

    def generate_for_frequency_batch(
        self,
        frequency: str,
        reference_date: date | datetime | None = None,
    ) -> BatchResult:
        """Generate the current-period instance for every active pattern of a frequency.

        One failing pattern never aborts the batch: its error is logged and
        recorded in the result. Stored patterns that cannot be loaded are
        reported as failed as well.
        """
        if frequency == EVERY_N_DAYS:
            raise UnsupportedOperationError("every_n_days patterns are not period-based")
        if reference_date is None:
            reference_date = local_now()

        key = period_key(reference_date, frequency)
        result = BatchResult(frequency=frequency, period_key=key)

        patterns, skipped = self.store.find_many_with_skipped(frequency=frequency, active=True)
        result.failed.update(skipped)

        for pattern in patterns:
            try:
                event = self.generate_for_period(pattern, key, reference_date)
            except Exception as e:
                logger.exception("Failed to generate instance for pattern %s", pattern.id)
                result.failed[pattern.id] = str(e)
                continue
            if event is None:
                result.satisfied.append(pattern.id)
            else:
                result.created.append(event)

        logger.info(
            "Batch %s %s: created=%d satisfied=%d failed=%d",
            frequency, key, len(result.created), len(result.satisfied), len(result.failed),
        )
        return result
