"""create recurrence patterns and events tables

Revision ID: a3c8e1f2b4d6
Revises:
Create Date: 2025-10-15 23:16:20.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a3c8e1f2b4d6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create recurrence_patterns and events."""

    # 1. recurrence_patterns (templates)
    op.create_table(
        'recurrence_patterns',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('frequency', sa.String(32), nullable=False),
        sa.Column('frequency_value', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('yearly_config', postgresql.JSONB(), nullable=True),
        sa.Column('nth_weekday_config', postgresql.JSONB(), nullable=True),
        sa.Column('yearly_nth_weekday', postgresql.JSONB(), nullable=True),
        sa.Column('flexible_scheduling', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_recurrence_pattern_active', 'recurrence_patterns', ['active', 'frequency'])

    # 2. events (scheduled or backlog; pattern instances carry pattern_id + period_key)
    op.create_table(
        'events',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('parent_event_id', sa.String(36), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('pattern_id', sa.String(36), sa.ForeignKey('recurrence_patterns.id', ondelete='SET NULL'), nullable=True),
        sa.Column('period_key', sa.String(16), nullable=True),
        sa.Column('instance_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(64), nullable=False, server_default='general'),
        sa.Column('is_flexible', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_time_bound', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('pattern_id', 'period_key', 'instance_index', name='uq_event_pattern_period'),
    )
    op.create_index('ix_event_start_time', 'events', ['start_time'])
    op.create_index('ix_event_pattern_period', 'events', ['pattern_id', 'period_key'])
    op.create_index('ix_event_time_bound_deadline', 'events', ['is_time_bound', 'deadline'])


def downgrade() -> None:
    """Drop events and recurrence_patterns."""
    op.drop_table('events')
    op.drop_table('recurrence_patterns')
