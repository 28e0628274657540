"""
Request/Response models shared by the pattern and event routers
"""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from app.domain.event import Event, VirtualEvent
from app.domain.recurrence import RecurrencePattern, schedule_to_fields


Frequency = Literal["weekly", "monthly", "yearly", "every_n_days", "n_per_period", "nth_weekday_of_month"]


class YearlyConfigModel(BaseModel):
    month: int  # 1..12
    day: int  # 1..31


class NthWeekdayConfigModel(BaseModel):
    weekday: int  # 0=Sunday..6=Saturday
    occurrence: int  # 1..4, -1 = last


class YearlyNthWeekdayConfigModel(BaseModel):
    month: int
    weekday: int
    occurrence: int


class PatternResponse(BaseModel):
    id: str
    title: str
    frequency: Frequency
    frequency_value: int
    duration_minutes: int
    nth_weekday_config: NthWeekdayConfigModel | None
    yearly_config: YearlyConfigModel | None
    yearly_nth_weekday: YearlyNthWeekdayConfigModel | None
    flexible_scheduling: bool
    start_time: datetime | None
    active: bool
    created_at: datetime | None
    updated_at: datetime | None


class EventResponse(BaseModel):
    kind: Literal["event"] = "event"
    id: str
    title: str
    start_time: datetime | None
    duration_minutes: int
    parent_event_id: str | None
    pattern_id: str | None
    period_key: str | None
    category: str
    is_flexible: bool
    is_time_bound: bool
    deadline: datetime | None
    notes: str
    created_at: datetime | None
    updated_at: datetime | None


class VirtualEventResponse(BaseModel):
    kind: Literal["virtual"] = "virtual"
    id: str  # virtual-{pattern_id}-{period_key}
    title: str
    duration_minutes: int
    pattern_id: str
    period_key: str
    category: str
    is_flexible: bool
    deadline: datetime
    notes: str


def pattern_response(p: RecurrencePattern) -> PatternResponse:
    fields = schedule_to_fields(p.schedule)
    return PatternResponse(
        id=p.id,
        title=p.title,
        frequency=fields["frequency"],
        frequency_value=fields["frequency_value"],
        duration_minutes=p.duration_minutes,
        nth_weekday_config=fields["nth_weekday_config"],
        yearly_config=fields["yearly_config"],
        yearly_nth_weekday=fields["yearly_nth_weekday"],
        flexible_scheduling=p.flexible_scheduling,
        start_time=p.start_time,
        active=p.active,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def event_response(e: Event) -> EventResponse:
    return EventResponse(
        id=e.id,
        title=e.title,
        start_time=e.start_time,
        duration_minutes=e.duration_minutes,
        parent_event_id=e.parent_event_id,
        pattern_id=e.pattern_id,
        period_key=e.period_key,
        category=e.category,
        is_flexible=e.is_flexible,
        is_time_bound=e.is_time_bound,
        deadline=e.deadline,
        notes=e.notes,
        created_at=e.created_at,
        updated_at=e.updated_at,
    )


def virtual_event_response(v: VirtualEvent) -> VirtualEventResponse:
    return VirtualEventResponse(
        id=v.id,
        title=v.title,
        duration_minutes=v.duration_minutes,
        pattern_id=v.pattern_id,
        period_key=v.period_key,
        category=v.category,
        is_flexible=v.is_flexible,
        deadline=v.deadline,
        notes=v.notes,
    )
