"""
Pytest fixtures for testing
"""
import uuid
from dataclasses import replace
from datetime import datetime

import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.dialects.postgresql import JSONB

from app.domain.errors import ConflictError, NotFoundError
from app.domain.event import Event
from app.domain.recurrence import RecurrencePattern, Schedule, schedule_from_fields
from app.infrastructure.db.session import Base
from app.infrastructure.db import models  # noqa: F401  (registers tables on Base.metadata)
from app.infrastructure.db.repository import SqlRecurrenceStore


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    engine = create_engine("sqlite:///:memory:")

    # SQLite doesn't support JSONB, remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sql_store(db_session) -> SqlRecurrenceStore:
    return SqlRecurrenceStore(db_session)


# --- In-memory store ---

class InMemoryRecurrenceStore:
    """RecurrenceStore fake with the same uniqueness rule as the events table."""

    def __init__(self):
        self.patterns: dict[str, RecurrencePattern] = {}
        self.events: dict[str, Event] = {}
        self.malformed: dict[str, tuple[str, str]] = {}  # id -> (frequency, load error)

    # engine operations

    def count(self, pattern_id, period_key):
        return sum(1 for e in self.events.values() if e.pattern_id == pattern_id and e.period_key == period_key)

    def find_one(self, pattern_id, period_key):
        matches = [e for e in self.events.values() if e.pattern_id == pattern_id and e.period_key == period_key]
        return min(matches, key=lambda e: e.instance_index) if matches else None

    def find_many(self, frequency=None, active=None):
        return [
            p for p in self.patterns.values()
            if (frequency is None or p.frequency == frequency) and (active is None or p.active == active)
        ]

    def find_many_with_skipped(self, frequency=None, active=None):
        skipped = {
            pattern_id: error for pattern_id, (freq, error) in self.malformed.items()
            if (frequency is None or freq == frequency) and active is not False
        }
        return self.find_many(frequency, active), skipped

    def create(self, fields):
        pattern_id, period_key = fields.get("pattern_id"), fields.get("period_key")
        index = fields.get("instance_index", 0)
        if pattern_id is not None and period_key is not None:
            for e in self.events.values():
                if (e.pattern_id, e.period_key, e.instance_index) == (pattern_id, period_key, index):
                    raise ConflictError(f"event for pattern {pattern_id} period {period_key} already exists")
        now = datetime(2025, 1, 1)
        event = Event(id=str(uuid.uuid4()), created_at=now, updated_at=now, **fields)
        self.events[event.id] = event
        return event

    def find_latest_before(self, pattern_id, before):
        matches = [
            e for e in self.events.values()
            if e.pattern_id == pattern_id and e.start_time is not None and e.start_time <= before
        ]
        return max(matches, key=lambda e: e.start_time) if matches else None

    def get_pattern(self, pattern_id):
        return self.patterns.get(pattern_id)

    # patterns / events

    def add_pattern(self, fields):
        schedule = schedule_from_fields(
            frequency=fields["frequency"],
            frequency_value=fields.get("frequency_value", 1),
            yearly_config=fields.get("yearly_config"),
            nth_weekday_config=fields.get("nth_weekday_config"),
            yearly_nth_weekday=fields.get("yearly_nth_weekday"),
        )
        pattern = RecurrencePattern(
            id=str(uuid.uuid4()),
            title=fields["title"],
            schedule=schedule,
            duration_minutes=fields["duration_minutes"],
            flexible_scheduling=fields.get("flexible_scheduling", True),
            start_time=fields.get("start_time"),
            active=fields.get("active", True),
        )
        self.patterns[pattern.id] = pattern
        return pattern

    def update_pattern(self, pattern_id, changes):
        if pattern_id not in self.patterns:
            raise NotFoundError(pattern_id)
        self.patterns[pattern_id] = replace(self.patterns[pattern_id], **changes)
        return self.patterns[pattern_id]

    def get_event(self, event_id):
        return self.events.get(event_id)

    def update_event(self, event_id, changes):
        if event_id not in self.events:
            raise NotFoundError(event_id)
        self.events[event_id] = replace(self.events[event_id], **changes)
        return self.events[event_id]

    def list_events(self, start, end):
        return [
            e for e in self.events.values()
            if (e.start_time is not None and start <= e.start_time <= end)
            or (e.start_time is None and (e.deadline is None or e.deadline >= start))
        ]

    # test helpers

    def put_pattern(self, schedule: Schedule, title="Pattern", duration_minutes=30, **kwargs) -> RecurrencePattern:
        """Insert a pattern with an already-built schedule (bypasses validation)."""
        pattern = RecurrencePattern(
            id=kwargs.pop("id", str(uuid.uuid4())),
            title=title,
            schedule=schedule,
            duration_minutes=duration_minutes,
            **kwargs,
        )
        self.patterns[pattern.id] = pattern
        return pattern


@pytest.fixture
def store() -> InMemoryRecurrenceStore:
    return InMemoryRecurrenceStore()
