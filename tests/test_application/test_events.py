"""
Tests for event use cases - committing virtual events, nesting, rescheduling, range queries
"""
import pytest
from datetime import datetime

from app.application.events import (
    CreateEventUseCase,
    EventValidationError,
    UpdateEventUseCase,
    get_events_in_range,
)
from app.domain.errors import ConflictError, InvalidRangeError, NotFoundError
from app.domain.recurrence import EveryNDays, NPerPeriod, Weekly


# --- Fixtures ---

@pytest.fixture
def weekly(store):
    return store.put_pattern(Weekly(), title="Laundry", duration_minutes=90)


@pytest.fixture
def standalone(store):
    return CreateEventUseCase(store).execute(
        title="Dentist", duration_minutes=60, start_time=datetime(2025, 10, 8, 15),
    )


class TestCreateEvent:
    def test_standalone(self, standalone):
        assert standalone.category == "general"
        assert standalone.pattern_id is None
        assert standalone.kind == "event"

    def test_backlog_event(self, store):
        event = CreateEventUseCase(store).execute(title="Read book", duration_minutes=30)
        assert event.start_time is None

    def test_time_bound_needs_deadline(self, store):
        with pytest.raises(EventValidationError, match="Deadline"):
            CreateEventUseCase(store).execute(title="Taxes", duration_minutes=30, is_time_bound=True)

    def test_empty_title_fails(self, store):
        with pytest.raises(EventValidationError):
            CreateEventUseCase(store).execute(title=" ", duration_minutes=30)

    def test_period_key_without_pattern(self, store):
        with pytest.raises(EventValidationError):
            CreateEventUseCase(store).execute(title="X", duration_minutes=30, period_key="2025-W41")


class TestCommitVirtual:
    def test_commit_fills_pattern_fields(self, store, weekly):
        event = CreateEventUseCase(store).execute(
            title="Laundry", duration_minutes=90, start_time=datetime(2025, 10, 9, 18),
            pattern_id=weekly.id, period_key="2025-W41",
        )
        assert event.category == "recurring"
        assert event.is_time_bound is True
        assert event.deadline == datetime(2025, 10, 12, 23, 59, 59)
        assert event.instance_index == 0
        assert store.count(weekly.id, "2025-W41") == 1

    def test_second_commit_conflicts(self, store, weekly):
        use_case = CreateEventUseCase(store)
        use_case.execute(title="Laundry", duration_minutes=90, pattern_id=weekly.id, period_key="2025-W41")
        with pytest.raises(ConflictError):
            use_case.execute(title="Laundry", duration_minutes=90, pattern_id=weekly.id, period_key="2025-W41")

    def test_n_per_period_allows_n(self, store):
        p = store.put_pattern(NPerPeriod(2), title="Gym")
        use_case = CreateEventUseCase(store)
        first = use_case.execute(title="Gym", duration_minutes=60, pattern_id=p.id, period_key="2025-W41")
        second = use_case.execute(title="Gym", duration_minutes=60, pattern_id=p.id, period_key="2025-W41")
        assert (first.instance_index, second.instance_index) == (0, 1)
        with pytest.raises(ConflictError):
            use_case.execute(title="Gym", duration_minutes=60, pattern_id=p.id, period_key="2025-W41")

    def test_period_key_required(self, store, weekly):
        with pytest.raises(EventValidationError):
            CreateEventUseCase(store).execute(title="Laundry", duration_minutes=90, pattern_id=weekly.id)

    def test_every_n_days_without_period_key(self, store):
        p = store.put_pattern(EveryNDays(3), title="Water")
        event = CreateEventUseCase(store).execute(
            title="Water", duration_minutes=10, start_time=datetime(2025, 10, 9, 8), pattern_id=p.id,
        )
        assert event.pattern_id == p.id
        assert event.period_key is None

    def test_every_n_days_rejects_period_key(self, store):
        p = store.put_pattern(EveryNDays(3))
        with pytest.raises(EventValidationError):
            CreateEventUseCase(store).execute(title="Water", duration_minutes=10, pattern_id=p.id, period_key="2025-W41")

    def test_unknown_pattern(self, store):
        with pytest.raises(NotFoundError):
            CreateEventUseCase(store).execute(title="X", duration_minutes=10, pattern_id="missing", period_key="2025")


class TestNesting:
    def test_child_of_top_level(self, store, standalone):
        child = CreateEventUseCase(store).execute(title="Pay", duration_minutes=5, parent_event_id=standalone.id)
        assert child.parent_event_id == standalone.id

    def test_grandchild_rejected(self, store, standalone):
        use_case = CreateEventUseCase(store)
        child = use_case.execute(title="Pay", duration_minutes=5, parent_event_id=standalone.id)
        with pytest.raises(EventValidationError, match="one level"):
            use_case.execute(title="Receipt", duration_minutes=5, parent_event_id=child.id)

    def test_missing_parent(self, store):
        with pytest.raises(EventValidationError):
            CreateEventUseCase(store).execute(title="Pay", duration_minutes=5, parent_event_id="missing")


class TestUpdateEvent:
    def test_move_to_backlog(self, store, standalone):
        event = UpdateEventUseCase(store).execute(standalone.id, start_time=None)
        assert event.start_time is None

    def test_reschedule(self, store, standalone):
        event = UpdateEventUseCase(store).execute(standalone.id, start_time=datetime(2025, 10, 9, 10), notes="moved")
        assert event.start_time == datetime(2025, 10, 9, 10)
        assert event.notes == "moved"

    def test_pattern_link_immutable(self, store, standalone, weekly):
        with pytest.raises(EventValidationError):
            UpdateEventUseCase(store).execute(standalone.id, pattern_id=weekly.id)

    def test_not_found(self, store):
        with pytest.raises(NotFoundError):
            UpdateEventUseCase(store).execute("missing", title="X")


class TestEventsInRange:
    def test_persisted_and_backlog(self, store, standalone):
        use_case = CreateEventUseCase(store)
        backlog = use_case.execute(title="Someday", duration_minutes=30)
        overdue = use_case.execute(
            title="Old", duration_minutes=30, is_time_bound=True, deadline=datetime(2025, 9, 1),
        )
        use_case.execute(title="Later", duration_minutes=30, start_time=datetime(2025, 11, 1, 9))

        result = get_events_in_range(store, datetime(2025, 10, 6), datetime(2025, 10, 12, 23, 59, 59))
        ids = {e.id for e in result.events}
        assert standalone.id in ids
        assert backlog.id in ids
        assert overdue.id not in ids
        assert len(ids) == 2
        assert result.virtual_events == []

    def test_include_virtual(self, store, weekly):
        result = get_events_in_range(
            store, datetime(2025, 10, 6), datetime(2025, 10, 19, 23, 59, 59), include_virtual=True,
        )
        assert [v.period_key for v in result.virtual_events] == ["2025-W41", "2025-W42"]

    def test_committed_virtual_moves_to_events(self, store, weekly):
        CreateEventUseCase(store).execute(
            title="Laundry", duration_minutes=90, start_time=datetime(2025, 10, 9, 18),
            pattern_id=weekly.id, period_key="2025-W41",
        )
        result = get_events_in_range(
            store, datetime(2025, 10, 6), datetime(2025, 10, 19, 23, 59, 59), include_virtual=True,
        )
        assert [e.period_key for e in result.events] == ["2025-W41"]
        assert [v.period_key for v in result.virtual_events] == ["2025-W42"]

    def test_start_after_end(self, store):
        with pytest.raises(InvalidRangeError):
            get_events_in_range(store, datetime(2025, 10, 19), datetime(2025, 10, 6))
