"""
SQLAlchemy ORM models (recurrence patterns + events)
"""
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Integer, Text, TIMESTAMP, func, Boolean, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class RecurrencePatternModel(Base):
    """
    Recurring-obligation template

    Exactly one of the config columns is set, matching frequency:
    yearly_config / yearly_nth_weekday for yearly, nth_weekday_config for nth_weekday_of_month.
    """
    __tablename__ = "recurrence_patterns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # weekly | monthly | yearly | every_n_days | n_per_period | nth_weekday_of_month
    frequency: Mapped[str] = mapped_column(String(32), nullable=False)
    frequency_value: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    yearly_config: Mapped[dict | None] = mapped_column(JSONB, nullable=True)  # {"month", "day"}
    nth_weekday_config: Mapped[dict | None] = mapped_column(JSONB, nullable=True)  # {"weekday", "occurrence"}
    yearly_nth_weekday: Mapped[dict | None] = mapped_column(JSONB, nullable=True)  # {"month", "weekday", "occurrence"}

    flexible_scheduling: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    start_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index('ix_recurrence_pattern_active', 'active', 'frequency'),
    )


class EventModel(Base):
    """
    Persisted event (scheduled, or unscheduled when start_time is null)

    instance_index numbers generated events inside one (pattern_id, period_key) bucket:
    always 0, except for n_per_period where it runs 0..N-1. The unique constraint
    is what actually guarantees at most one (or N) instances per period.
    """
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    parent_event_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=True, index=True
    )
    pattern_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("recurrence_patterns.id", ondelete="SET NULL"), nullable=True
    )
    period_key: Mapped[str | None] = mapped_column(String(16), nullable=True)
    instance_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    category: Mapped[str] = mapped_column(String(64), nullable=False, default="general", server_default="general")
    is_flexible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    is_time_bound: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    deadline: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('pattern_id', 'period_key', 'instance_index', name='uq_event_pattern_period'),
        Index('ix_event_start_time', 'start_time'),
        Index('ix_event_pattern_period', 'pattern_id', 'period_key'),
        Index('ix_event_time_bound_deadline', 'is_time_bound', 'deadline'),
    )
