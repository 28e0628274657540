"""
Virtual events - read-only projections of unsatisfied pattern periods.

Nothing here writes to the store, so range queries can run repeatedly and
concurrently. The result may be stale right after computation; it is
rebuilt on every fetch.
"""
from datetime import date, datetime

from app.application.satisfaction import SatisfactionOracle
from app.application.store import RecurrenceStore
from app.domain.errors import InvalidRangeError
from app.domain.event import RECURRING_CATEGORY, VirtualEvent, virtual_event_id
from app.domain.period_key import as_date, period_end, periods_in_range
from app.domain.recurrence import EVERY_N_DAYS, RecurrencePattern


def make_virtual_event(pattern: RecurrencePattern, period_key: str) -> VirtualEvent:
    return VirtualEvent(
        id=virtual_event_id(pattern.id, period_key),
        title=pattern.title,
        duration_minutes=pattern.duration_minutes,
        pattern_id=pattern.id,
        period_key=period_key,
        category=RECURRING_CATEGORY,
        is_flexible=pattern.flexible_scheduling,
        deadline=period_end(period_key, pattern.frequency),
        notes="",
    )


class VirtualEventGenerator:
    def __init__(self, store: RecurrenceStore):
        self.store = store
        self.oracle = SatisfactionOracle(store)

    def virtual_events_in_range(self, start: date | datetime, end: date | datetime) -> list[VirtualEvent]:
        """One virtual event per (active pattern, overlapping period) with no persisted event yet.

        Any event for the period hides it, n_per_period included; the count
        check only guards periods that are already full.

        every_n_days patterns are not period-based and never produce virtual events.
        """
        if as_date(start) > as_date(end):
            raise InvalidRangeError("range start must be <= range end")

        out: list[VirtualEvent] = []
        for pattern in self.store.find_many(active=True):
            if pattern.frequency == EVERY_N_DAYS:
                continue
            for period in periods_in_range(start, end, pattern.frequency):
                if self.store.find_one(pattern.id, period.key) is not None:
                    continue
                if self.oracle.is_pattern_satisfied(pattern, period.key):
                    continue
                out.append(make_virtual_event(pattern, period.key))
        return out
