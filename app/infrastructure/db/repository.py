"""
SQLAlchemy implementation of the RecurrenceStore port
"""
import logging
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.errors import ConflictError, NotFoundError, RecurrenceError
from app.domain.event import Event, event_from_db
from app.domain.recurrence import RecurrencePattern, pattern_from_db
from app.infrastructure.db.models import EventModel, RecurrencePatternModel

logger = logging.getLogger(__name__)

PATTERN_MUTABLE_FIELDS = ("title", "duration_minutes", "active")
EVENT_MUTABLE_FIELDS = ("title", "start_time", "duration_minutes", "category", "is_flexible", "notes", "deadline")


class SqlRecurrenceStore:
    def __init__(self, db: Session):
        self.db = db

    # --- engine operations ---

    def count(self, pattern_id: str, period_key: str) -> int:
        return self.db.query(EventModel).filter(
            EventModel.pattern_id == pattern_id,
            EventModel.period_key == period_key,
        ).count()

    def find_one(self, pattern_id: str, period_key: str) -> Event | None:
        row = self.db.query(EventModel).filter(
            EventModel.pattern_id == pattern_id,
            EventModel.period_key == period_key,
        ).order_by(EventModel.instance_index).first()
        return event_from_db(row) if row else None

    def find_many(self, frequency: str | None = None, active: bool | None = None) -> list[RecurrencePattern]:
        patterns, _ = self.find_many_with_skipped(frequency, active)
        return patterns

    def find_many_with_skipped(
        self,
        frequency: str | None = None,
        active: bool | None = None,
    ) -> tuple[list[RecurrencePattern], Dict[str, str]]:
        """Like find_many, plus {pattern id: error} for rows whose config cannot be loaded."""
        query = self.db.query(RecurrencePatternModel)
        if frequency is not None:
            query = query.filter(RecurrencePatternModel.frequency == frequency)
        if active is not None:
            query = query.filter(RecurrencePatternModel.active == active)
        rows = query.order_by(RecurrencePatternModel.created_at.desc()).all()

        out: list[RecurrencePattern] = []
        skipped: Dict[str, str] = {}
        for row in rows:
            try:
                out.append(pattern_from_db(row))
            except RecurrenceError as e:
                # a malformed row must not hide the other patterns
                logger.warning("Skipping malformed pattern %s: %s", row.id, e)
                skipped[row.id] = str(e)
        return out, skipped

    def create(self, fields: Dict[str, Any]) -> Event:
        row = EventModel(**fields)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"event for pattern {fields.get('pattern_id')} period {fields.get('period_key')} already exists"
            ) from e
        self.db.refresh(row)
        return event_from_db(row)

    def find_latest_before(self, pattern_id: str, before: datetime) -> Event | None:
        row = self.db.query(EventModel).filter(
            EventModel.pattern_id == pattern_id,
            EventModel.start_time.isnot(None),
            EventModel.start_time <= before,
        ).order_by(EventModel.start_time.desc()).first()
        return event_from_db(row) if row else None

    def get_pattern(self, pattern_id: str) -> RecurrencePattern | None:
        row = self.db.get(RecurrencePatternModel, pattern_id)
        return pattern_from_db(row) if row else None

    # --- patterns ---

    def add_pattern(self, fields: Dict[str, Any]) -> RecurrencePattern:
        row = RecurrencePatternModel(**fields)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return pattern_from_db(row)

    def update_pattern(self, pattern_id: str, changes: Dict[str, Any]) -> RecurrencePattern:
        row = self.db.get(RecurrencePatternModel, pattern_id)
        if not row:
            raise NotFoundError(f"pattern {pattern_id} not found")
        for key in PATTERN_MUTABLE_FIELDS:
            if key in changes:
                setattr(row, key, changes[key])
        self.db.commit()
        self.db.refresh(row)
        return pattern_from_db(row)

    # --- events ---

    def get_event(self, event_id: str) -> Event | None:
        row = self.db.get(EventModel, event_id)
        return event_from_db(row) if row else None

    def update_event(self, event_id: str, changes: Dict[str, Any]) -> Event:
        row = self.db.get(EventModel, event_id)
        if not row:
            raise NotFoundError(f"event {event_id} not found")
        for key in EVENT_MUTABLE_FIELDS:
            if key in changes:
                setattr(row, key, changes[key])
        self.db.commit()
        self.db.refresh(row)
        return event_from_db(row)

    def list_events(self, start: datetime, end: datetime) -> list[Event]:
        rows = self.db.query(EventModel).filter(
            or_(
                and_(EventModel.start_time >= start, EventModel.start_time <= end),
                and_(
                    EventModel.start_time.is_(None),
                    or_(EventModel.deadline.is_(None), EventModel.deadline >= start),
                ),
            )
        ).order_by(EventModel.start_time.is_(None), EventModel.start_time, EventModel.created_at).all()
        return [event_from_db(r) for r in rows]
