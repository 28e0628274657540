"""
Recurrence pattern API endpoints
"""
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict

from app.api.deps import get_store
from app.api.v1.schemas import (
    EventResponse,
    Frequency,
    NthWeekdayConfigModel,
    PatternResponse,
    YearlyConfigModel,
    YearlyNthWeekdayConfigModel,
    event_response,
    pattern_response,
)
from app.application.occurrence_generator import OccurrenceGenerator
from app.application.patterns import (
    CreatePatternUseCase,
    DeactivatePatternUseCase,
    GenerateInstanceUseCase,
    UpdatePatternUseCase,
    next_every_n_days_date,
)
from app.infrastructure.db.repository import SqlRecurrenceStore


router = APIRouter(prefix="/api/patterns", tags=["patterns"])


# === Request/Response models ===

class CreatePatternRequest(BaseModel):
    title: str
    frequency: Frequency
    frequency_value: int = 1
    duration_minutes: int
    nth_weekday_config: NthWeekdayConfigModel | None = None
    yearly_config: YearlyConfigModel | None = None
    yearly_nth_weekday: YearlyNthWeekdayConfigModel | None = None
    flexible_scheduling: bool = True
    start_time: datetime | None = None  # required when flexible_scheduling is false
    generate_initial_instance: bool = True


class UpdatePatternRequest(BaseModel):
    # frequency and its config are immutable
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    duration_minutes: int | None = None
    active: bool | None = None


class CreatePatternResponse(PatternResponse):
    initial_event: EventResponse | None = None


class GenerateInstanceRequest(BaseModel):
    period_key: str | None = None  # default: current period


class GenerateBatchRequest(BaseModel):
    frequency: Frequency
    reference_date: date | None = None


class GenerateBatchResponse(BaseModel):
    frequency: str
    period_key: str
    created: list[EventResponse]
    satisfied: list[str]
    failed: dict[str, str]


class NextDateResponse(BaseModel):
    pattern_id: str
    next_date: datetime


def _dump(model: BaseModel | None) -> dict | None:
    return model.model_dump() if model is not None else None


# === Endpoints ===

@router.get("/", response_model=list[PatternResponse])
def list_patterns(
    active: bool | None = None,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """All patterns, newest first"""
    return [pattern_response(p) for p in store.find_many(active=active)]


@router.post("/", response_model=CreatePatternResponse, status_code=status.HTTP_201_CREATED)
def create_pattern(
    req: CreatePatternRequest,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Create a pattern and, unless disabled, its instance for the current period"""
    created = CreatePatternUseCase(store).execute(
        title=req.title,
        frequency=req.frequency,
        frequency_value=req.frequency_value,
        duration_minutes=req.duration_minutes,
        yearly_config=_dump(req.yearly_config),
        nth_weekday_config=_dump(req.nth_weekday_config),
        yearly_nth_weekday=_dump(req.yearly_nth_weekday),
        flexible_scheduling=req.flexible_scheduling,
        start_time=req.start_time,
        generate_initial_instance=req.generate_initial_instance,
    )
    return CreatePatternResponse(
        **pattern_response(created.pattern).model_dump(),
        initial_event=event_response(created.initial_event) if created.initial_event else None,
    )


@router.post("/generate-batch", response_model=GenerateBatchResponse)
def generate_batch(
    req: GenerateBatchRequest,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Generate current-period instances for all active patterns of a frequency (externally triggered job)"""
    result = OccurrenceGenerator(store).generate_for_frequency_batch(req.frequency, req.reference_date)
    return GenerateBatchResponse(
        frequency=result.frequency,
        period_key=result.period_key,
        created=[event_response(e) for e in result.created],
        satisfied=result.satisfied,
        failed=result.failed,
    )


@router.get("/{pattern_id}", response_model=PatternResponse)
def get_pattern(
    pattern_id: str,
    store: SqlRecurrenceStore = Depends(get_store),
):
    pattern = store.get_pattern(pattern_id)
    if pattern is None:
        raise HTTPException(status_code=404, detail="Pattern not found")
    return pattern_response(pattern)


@router.patch("/{pattern_id}", response_model=PatternResponse)
def update_pattern(
    pattern_id: str,
    req: UpdatePatternRequest,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Update title / duration / active"""
    pattern = UpdatePatternUseCase(store).execute(pattern_id, **req.model_dump(exclude_unset=True))
    return pattern_response(pattern)


@router.delete("/{pattern_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pattern(
    pattern_id: str,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Soft delete (deactivate)"""
    DeactivatePatternUseCase(store).execute(pattern_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{pattern_id}/generate-instance", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def generate_instance(
    pattern_id: str,
    req: GenerateInstanceRequest | None = None,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Materialize the pattern for a period (default: current period)"""
    period_key = req.period_key if req else None
    event = GenerateInstanceUseCase(store).execute(pattern_id, period_key)
    if event is None:
        raise HTTPException(status_code=409, detail="Pattern already satisfied for this period")
    return event_response(event)


@router.get("/{pattern_id}/next-date", response_model=NextDateResponse)
def next_date(
    pattern_id: str,
    store: SqlRecurrenceStore = Depends(get_store),
):
    """Next suggested date for an every_n_days pattern"""
    next_at = next_every_n_days_date(store, pattern_id)
    return NextDateResponse(pattern_id=pattern_id, next_date=next_at)
