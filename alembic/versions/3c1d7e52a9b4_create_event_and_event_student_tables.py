"""Create event and event_student tables

Revision ID: 3c1d7e52a9b4
Revises: 
Create Date: 2026-10-18 10:02:11.418327

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1d7e52a9b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    event_type = postgresql.ENUM('follow-up', 'kick-off', 'keynote', 'hub-talk', 'other', name='event_type')
    event_type.create(op.get_bind())

    op.create_table(
        'event',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('event_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('report', sa.Text, nullable=True),
        sa.Column('event_type', postgresql.ENUM(name='event_type', create_type=False), nullable=False),
        sa.Column('id_creator', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('id_prom', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('slot_duration', sa.Integer, nullable=False, server_default='30'),
        sa.Column('allow_multiple_users', sa.Boolean, nullable=False, server_default=sa.false()),
        # NULL targets every active student
        sa.Column('target_promotions', sa.JSON, nullable=True),
        sa.Column('slots', sa.JSON, nullable=False, server_default='[]'),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_unique_constraint(
        'uq_event_identity', 'event', ['title', 'event_datetime', 'event_type', 'id_creator']
    )
    op.create_index('idx_event_type', 'event', ['event_type'])
    op.create_index('idx_event_datetime', 'event', ['event_datetime'])
    op.create_index('idx_event_created_at', 'event', ['created_at'])

    op.create_table(
        'event_student',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('id_event', sa.Integer, sa.ForeignKey('event.id'), nullable=False),
        sa.Column('id_student', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_unique_constraint('uq_event_student', 'event_student', ['id_event', 'id_student'])
    op.create_index('idx_event_student_student', 'event_student', ['id_student'])
    op.create_index('idx_event_student_event', 'event_student', ['id_event'])


def downgrade() -> None:
    op.drop_table('event_student')
    op.drop_table('event')
    sa.Enum(name='event_type').drop(op.get_bind())
