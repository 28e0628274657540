"""Event domain types - persisted events and transient virtual events"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Union


RECURRING_CATEGORY = "recurring"
DEFAULT_CATEGORY = "general"
VIRTUAL_ID_PREFIX = "virtual-"


def virtual_event_id(pattern_id: str, period_key: str) -> str:
    return f"{VIRTUAL_ID_PREFIX}{pattern_id}-{period_key}"


@dataclass(frozen=True)
class Event:
    """Persisted event. start_time=None means unscheduled (backlog)."""
    id: str
    title: str
    start_time: datetime | None
    duration_minutes: int
    parent_event_id: str | None = None
    pattern_id: str | None = None
    period_key: str | None = None
    instance_index: int = 0
    category: str = DEFAULT_CATEGORY
    is_flexible: bool = True
    is_time_bound: bool = False
    deadline: datetime | None = None
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    kind: Literal["event"] = field(default="event", init=False)


@dataclass(frozen=True)
class VirtualEvent:
    """Unsatisfied pattern-period projection. Never persisted."""
    id: str
    title: str
    duration_minutes: int
    pattern_id: str
    period_key: str
    deadline: datetime
    is_flexible: bool
    category: str = RECURRING_CATEGORY
    notes: str = ""
    kind: Literal["virtual"] = field(default="virtual", init=False)


CalendarItem = Union[Event, VirtualEvent]


def event_from_db(row) -> Event:
    """Build Event from an EventModel row (any object with matching attributes)."""
    return Event(
        id=row.id,
        title=row.title,
        start_time=row.start_time,
        duration_minutes=row.duration_minutes,
        parent_event_id=row.parent_event_id,
        pattern_id=row.pattern_id,
        period_key=row.period_key,
        instance_index=row.instance_index,
        category=row.category,
        is_flexible=bool(row.is_flexible),
        is_time_bound=bool(row.is_time_bound),
        deadline=row.deadline,
        notes=row.notes or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
