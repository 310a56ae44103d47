"""create_study_cafe_tables

Revision ID: 0001
Revises:
Create Date: 2024-02-20 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Create seat, reservation, fixed seat and center settings tables."""
    op.create_table(
        'study_cafe_seats',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('center_id', sa.String(length=64), nullable=False),
        sa.Column('seat_number', sa.Integer(), nullable=False),
        sa.Column('row', sa.Integer(), nullable=False),
        sa.Column('col', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('center_id', 'seat_number', name='uq_study_cafe_seats_center_number'),
        sa.CheckConstraint('seat_number > 0', name='ck_study_cafe_seats_number_positive'),
    )
    op.create_index('ix_study_cafe_seats_id', 'study_cafe_seats', ['id'])
    op.create_index('ix_study_cafe_seats_center_id', 'study_cafe_seats', ['center_id'])

    op.create_table(
        'study_cafe_reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('seat_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', sa.String(length=64), nullable=False),
        sa.Column('center_id', sa.String(length=64), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['seat_id'], ['study_cafe_seats.id'], ondelete='RESTRICT'),
        sa.CheckConstraint('end_at > start_at', name='ck_study_cafe_reservations_window'),
    )
    op.create_index('ix_study_cafe_reservations_id', 'study_cafe_reservations', ['id'])
    op.create_index('ix_study_cafe_reservations_seat_id', 'study_cafe_reservations', ['seat_id'])
    op.create_index('ix_study_cafe_reservations_student_id', 'study_cafe_reservations', ['student_id'])
    op.create_index('ix_study_cafe_reservations_center_id', 'study_cafe_reservations', ['center_id'])
    op.create_index('ix_study_cafe_reservations_end_at', 'study_cafe_reservations', ['end_at'])
    op.create_index('ix_study_cafe_reservations_status', 'study_cafe_reservations', ['status'])
    op.create_index(
        'uq_study_cafe_reservations_active_seat',
        'study_cafe_reservations',
        ['seat_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index(
        'uq_study_cafe_reservations_active_student',
        'study_cafe_reservations',
        ['center_id', 'student_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'study_cafe_fixed_seats',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('seat_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', sa.String(length=64), nullable=False),
        sa.Column('center_id', sa.String(length=64), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('assigned_by_id', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['seat_id'], ['study_cafe_seats.id'], ondelete='RESTRICT'),
        sa.CheckConstraint('start_date <= end_date', name='ck_study_cafe_fixed_seats_range'),
    )
    op.create_index('ix_study_cafe_fixed_seats_id', 'study_cafe_fixed_seats', ['id'])
    op.create_index('ix_study_cafe_fixed_seats_seat_id', 'study_cafe_fixed_seats', ['seat_id'])
    op.create_index('ix_study_cafe_fixed_seats_student_id', 'study_cafe_fixed_seats', ['student_id'])
    op.create_index('ix_study_cafe_fixed_seats_center_id', 'study_cafe_fixed_seats', ['center_id'])
    op.create_index(
        'ix_study_cafe_fixed_seats_seat_range',
        'study_cafe_fixed_seats',
        ['seat_id', 'start_date', 'end_date'],
    )

    op.create_table(
        'study_cafe_center_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('center_id', sa.String(length=64), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False),
        sa.Column('notice', sa.Text(), nullable=True),
        sa.Column('entry_password', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_study_cafe_center_settings_id', 'study_cafe_center_settings', ['id'])
    op.create_index(
        'ix_study_cafe_center_settings_center_id',
        'study_cafe_center_settings',
        ['center_id'],
        unique=True,
    )


def downgrade() -> None:
    """Drop all study cafe tables."""
    op.drop_table('study_cafe_center_settings')
    op.drop_table('study_cafe_fixed_seats')
    op.drop_table('study_cafe_reservations')
    op.drop_table('study_cafe_seats')
