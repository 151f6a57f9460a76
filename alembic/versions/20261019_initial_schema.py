"""Initial schema: events, date options, participants, answers, confirmations

Revision ID: 3f6a1c9d2b70
Revises:
Create Date: 2026-10-19

Creates the five scheduling tables. Every child table cascades on delete
of its parent. The availability column is a VARCHAR limited by a CHECK
constraint to available / unavailable / unknown / maybe (legacy).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f6a1c9d2b70'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('events',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('events', schema=None) as batch_op:
        batch_op.create_index('idx_event_created_at', ['created_at'], unique=False)

    op.create_table('date_options',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.String(length=64), nullable=False),
        sa.Column('datetime', sa.String(length=32), nullable=False),
        sa.Column('formatted', sa.Text(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=True),
        sa.Column('end_time', sa.String(length=5), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('date_options', schema=None) as batch_op:
        batch_op.create_index('idx_date_option_event', ['event_id'], unique=False)

    op.create_table('participants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('participants', schema=None) as batch_op:
        batch_op.create_index('idx_participant_event', ['event_id'], unique=False)

    op.create_table('availabilities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('participant_id', sa.Integer(), nullable=False),
        sa.Column('date_option_id', sa.Integer(), nullable=False),
        sa.Column('availability', sa.Enum('available', 'unavailable', 'unknown', 'maybe',
                                          name='availability_status', native_enum=False,
                                          create_constraint=True, length=20), nullable=False),
        sa.ForeignKeyConstraint(['date_option_id'], ['date_options.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['participant_id'], ['participants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('participant_id', 'date_option_id', name='uq_availability_participant_option')
    )
    with op.batch_alter_table('availabilities', schema=None) as batch_op:
        batch_op.create_index('idx_availability_date_option', ['date_option_id'], unique=False)

    op.create_table('confirmed_dates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.String(length=64), nullable=False),
        sa.Column('date_option_id', sa.Integer(), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['date_option_id'], ['date_options.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'date_option_id', name='uq_confirmed_date_event_option')
    )


def downgrade() -> None:
    op.drop_table('confirmed_dates')
    with op.batch_alter_table('availabilities', schema=None) as batch_op:
        batch_op.drop_index('idx_availability_date_option')
    op.drop_table('availabilities')
    with op.batch_alter_table('participants', schema=None) as batch_op:
        batch_op.drop_index('idx_participant_event')
    op.drop_table('participants')
    with op.batch_alter_table('date_options', schema=None) as batch_op:
        batch_op.drop_index('idx_date_option_event')
    op.drop_table('date_options')
    with op.batch_alter_table('events', schema=None) as batch_op:
        batch_op.drop_index('idx_event_created_at')
    op.drop_table('events')
