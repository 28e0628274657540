"""Event use cases - create / commit / reschedule events, range listing with virtual events"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from app.application.satisfaction import SatisfactionOracle
from app.application.store import RecurrenceStore
from app.application.virtual_events import VirtualEventGenerator
from app.domain.errors import ConflictError, InvalidRangeError, NotFoundError
from app.domain.event import DEFAULT_CATEGORY, RECURRING_CATEGORY, Event, VirtualEvent
from app.domain.period_key import period_end
from app.domain.recurrence import EVERY_N_DAYS, N_PER_PERIOD

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "start_time", "duration_minutes", "category", "is_flexible", "notes", "deadline"})


class EventValidationError(ValueError):
    pass


def validate_event_form(
    title: str,
    duration_minutes: int,
    is_time_bound: bool = False,
    deadline: datetime | None = None,
) -> str | None:
    """Validate event fields. Returns error message or None."""
    if not title or not title.strip():
        return "Title is required"
    if duration_minutes is None or duration_minutes <= 0:
        return "Duration must be greater than 0"
    if is_time_bound and deadline is None:
        return "Deadline is required for time-bound events"
    return None


@dataclass
class EventsInRange:
    events: list[Event] = field(default_factory=list)
    virtual_events: list[VirtualEvent] = field(default_factory=list)


# ============================================================================
# Event CRUD
# ============================================================================

class CreateEventUseCase:
    """Create a standalone event, or commit a pattern period (virtual event) into a real one."""

    def __init__(self, store: RecurrenceStore):
        self.store = store

    def execute(
        self,
        title: str,
        duration_minutes: int,
        start_time: datetime | None = None,
        parent_event_id: str | None = None,
        pattern_id: str | None = None,
        period_key: str | None = None,
        category: str | None = None,
        is_flexible: bool = True,
        is_time_bound: bool = False,
        deadline: datetime | None = None,
        notes: str = "",
    ) -> Event:
        if parent_event_id:
            self._check_parent(parent_event_id)

        fields = {
            "title": (title or "").strip(),
            "start_time": start_time,
            "duration_minutes": duration_minutes,
            "parent_event_id": parent_event_id,
            "category": category or DEFAULT_CATEGORY,
            "is_flexible": is_flexible,
            "is_time_bound": is_time_bound,
            "deadline": deadline,
            "notes": notes or "",
        }

        if pattern_id is not None:
            fields.update(self._pattern_fields(pattern_id, period_key, category, deadline))
        elif period_key is not None:
            raise EventValidationError("period_key requires pattern_id")

        error = validate_event_form(fields["title"], duration_minutes, fields["is_time_bound"], fields["deadline"])
        if error:
            raise EventValidationError(error)

        event = self.store.create(fields)
        logger.info("Created event %s (pattern=%s period=%s)", event.id, pattern_id, period_key)
        return event

    def _check_parent(self, parent_event_id: str) -> None:
        parent = self.store.get_event(parent_event_id)
        if parent is None:
            raise EventValidationError(f"Parent event {parent_event_id} not found")
        if parent.parent_event_id is not None:
            raise EventValidationError("Events can only be nested one level deep")

    def _pattern_fields(
        self,
        pattern_id: str,
        period_key: str | None,
        category: str | None,
        deadline: datetime | None,
    ) -> dict:
        pattern = self.store.get_pattern(pattern_id)
        if pattern is None:
            raise NotFoundError(f"Pattern {pattern_id} not found")

        if pattern.frequency == EVERY_N_DAYS:
            if period_key is not None:
                raise EventValidationError("every_n_days patterns do not use period keys")
            return {"pattern_id": pattern_id, "category": category or RECURRING_CATEGORY}

        if period_key is None:
            raise EventValidationError("period_key is required for period-based patterns")

        end = period_end(period_key, pattern.frequency)
        count = SatisfactionOracle(self.store).completion_count(pattern_id, period_key)
        limit = pattern.frequency_value if pattern.frequency == N_PER_PERIOD else 1
        if count >= limit:
            raise ConflictError(f"Pattern {pattern_id} is already satisfied for {period_key}")

        return {
            "pattern_id": pattern_id,
            "period_key": period_key,
            "instance_index": count,
            "category": category or RECURRING_CATEGORY,
            "is_time_bound": True,
            "deadline": deadline or end,
        }


class UpdateEventUseCase:
    def __init__(self, store: RecurrenceStore):
        self.store = store

    def execute(self, event_id: str, **changes) -> Event:
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise EventValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()

        error = validate_event_form(
            changes.get("title", event.title),
            changes.get("duration_minutes", event.duration_minutes),
            event.is_time_bound,
            changes.get("deadline", event.deadline),
        )
        if error:
            raise EventValidationError(error)
        return self.store.update_event(event_id, changes)


# ============================================================================
# Queries
# ============================================================================

def get_events_in_range(
    store: RecurrenceStore,
    start: datetime,
    end: datetime,
    include_virtual: bool = False,
) -> EventsInRange:
    """Persisted events in [start, end], optionally with virtual events for unsatisfied periods."""
    if start > end:
        raise InvalidRangeError("start must be <= end")
    result = EventsInRange(events=store.list_events(start, end))
    if include_virtual:
        result.virtual_events = VirtualEventGenerator(store).virtual_events_in_range(start, end)
    return result
