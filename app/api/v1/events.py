"""
Event API endpoints
"""
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict

from app.api.deps import get_store
from app.api.v1.schemas import (
    EventResponse,
    VirtualEventResponse,
    event_response,
    virtual_event_response,
)
from app.application.events import CreateEventUseCase, UpdateEventUseCase, get_events_in_range
from app.infrastructure.db.repository import SqlRecurrenceStore


router = APIRouter(prefix="/api/events", tags=["events"])


# === Request/Response models ===

class CreateEventRequest(BaseModel):
    title: str
    start_time: datetime | None = None
    duration_minutes: int
    parent_event_id: str | None = None
    pattern_id: str | None = None  # set both to commit a virtual event
    period_key: str | None = None
    category: str | None = None
    is_flexible: bool = True
    is_time_bound: bool = False
    deadline: datetime | None = None
    notes: str = ""


class UpdateEventRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    start_time: datetime | None = None
    duration_minutes: int | None = None
    category: str | None = None
    is_flexible: bool | None = None
    deadline: datetime | None = None
    notes: str | None = None


class EventsResponse(BaseModel):
    events: list[EventResponse]  # persisted events
    virtual_events: list[VirtualEventResponse]  # unsatisfied pattern periods


# === Endpoints ===

@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    req: CreateEventRequest,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Create an event, or commit a virtual event (pattern_id + period_key)"""
    event = CreateEventUseCase(store).execute(**req.model_dump())
    return event_response(event)


@router.patch("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: str,
    req: UpdateEventRequest,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Reschedule / edit an event; start_time=null moves it back to the backlog"""
    event = UpdateEventUseCase(store).execute(event_id, **req.model_dump(exclude_unset=True))
    return event_response(event)


@router.get("/", response_model=EventsResponse)
def list_events(
    start: datetime,
    end: datetime,
    include_virtual: bool = False,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Events in [start, end]; with include_virtual, also virtual events for unsatisfied periods"""
    result = get_events_in_range(store, start, end, include_virtual)
    return EventsResponse(
        events=[event_response(e) for e in result.events],
        virtual_events=[virtual_event_response(v) for v in result.virtual_events],
    )
