"""
Persistence port used by the recurrence engine.

The engine never talks to the ORM directly; request handlers inject a
SqlRecurrenceStore, tests inject an in-memory fake.
"""
from datetime import datetime
from typing import Any, Dict, Protocol

from app.domain.event import Event
from app.domain.recurrence import RecurrencePattern


class RecurrenceStore(Protocol):
    # --- used by the engine ---

    def count(self, pattern_id: str, period_key: str) -> int:
        """Number of persisted events for (pattern_id, period_key)."""
        ...

    def find_one(self, pattern_id: str, period_key: str) -> Event | None:
        ...

    def find_many(self, frequency: str | None = None, active: bool | None = None) -> list[RecurrencePattern]:
        """Patterns filtered by frequency / active flag (None = no filter)."""
        ...

    def find_many_with_skipped(
        self,
        frequency: str | None = None,
        active: bool | None = None,
    ) -> tuple[list[RecurrencePattern], Dict[str, str]]:
        """find_many plus {pattern id: error} for stored patterns that could not be loaded."""
        ...

    def create(self, fields: Dict[str, Any]) -> Event:
        """Persist an event. Raises ConflictError on a duplicate (pattern_id, period_key, instance_index)."""
        ...

    def find_latest_before(self, pattern_id: str, before: datetime) -> Event | None:
        """Most recent scheduled event of the pattern with start_time <= before."""
        ...

    def get_pattern(self, pattern_id: str) -> RecurrencePattern | None:
        ...

    # --- pattern / event management ---

    def add_pattern(self, fields: Dict[str, Any]) -> RecurrencePattern:
        ...

    def update_pattern(self, pattern_id: str, changes: Dict[str, Any]) -> RecurrencePattern:
        ...

    def get_event(self, event_id: str) -> Event | None:
        ...

    def update_event(self, event_id: str, changes: Dict[str, Any]) -> Event:
        ...

    def list_events(self, start: datetime, end: datetime) -> list[Event]:
        """Events scheduled inside [start, end], plus unscheduled ones still open at start."""
        ...
