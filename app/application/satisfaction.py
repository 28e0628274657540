"""
Satisfaction checks - has a pattern already been fulfilled for a period?

Period-based frequencies are satisfied by persisted events carrying the
(pattern_id, period_key) pair. every_n_days is not bucketed: its next
suggested date is derived from the last completion instead.
"""
from datetime import datetime, timedelta

from app.application.store import RecurrenceStore
from app.domain.errors import UnsupportedOperationError
from app.domain.recurrence import N_PER_PERIOD, EveryNDays, RecurrencePattern
from app.utils.clock import local_now


class SatisfactionOracle:
    def __init__(self, store: RecurrenceStore):
        self.store = store

    def is_satisfied(self, pattern_id: str, period_key: str) -> bool:
        return self.store.count(pattern_id, period_key) > 0

    def completion_count(self, pattern_id: str, period_key: str) -> int:
        return self.store.count(pattern_id, period_key)

    def is_pattern_satisfied(self, pattern: RecurrencePattern, period_key: str) -> bool:
        """n_per_period needs frequency_value instances, everything else one."""
        if pattern.frequency == N_PER_PERIOD:
            return self.completion_count(pattern.id, period_key) >= pattern.frequency_value
        return self.is_satisfied(pattern.id, period_key)

    def next_suggested_date(self, pattern: RecurrencePattern, now: datetime | None = None) -> datetime:
        """Last completion (start_time <= now) + N days, or now when nothing was done yet."""
        if not isinstance(pattern.schedule, EveryNDays):
            raise UnsupportedOperationError(
                f"next suggested date is only defined for every_n_days, not {pattern.frequency}"
            )
        if now is None:
            now = local_now()
        last = self.store.find_latest_before(pattern.id, now)
        if last is None or last.start_time is None:
            return now
        return last.start_time + timedelta(days=pattern.schedule.days)
