"""create registry tables

Revision ID: b1c2d3e4f5a6
Revises:
Create Date: 2026-09-28 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b1c2d3e4f5a6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Teams, players, coaches, sessions and session enrolment."""
    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('discipline', sa.String(64), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('group', sa.String(32), nullable=True),
        sa.Column('monthly_fee', sa.Numeric(12, 2), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_players_team_id', 'players', ['team_id'])

    op.create_table(
        'coaches',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('specialization', sa.String(128), nullable=True),
        sa.Column('agreed_salary', sa.Numeric(12, 2), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_coaches_team_id', 'coaches', ['team_id'])

    op.create_table(
        'sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('session_type', sa.String(16), nullable=False, server_default='yearly'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_sessions_team_id', 'sessions', ['team_id'])

    op.create_table(
        'session_players',
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('sessions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'session_coaches',
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('sessions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('coach_id', sa.Integer(), sa.ForeignKey('coaches.id', ondelete='CASCADE'), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table('session_coaches')
    op.drop_table('session_players')
    op.drop_table('sessions')
    op.drop_table('coaches')
    op.drop_table('players')
    op.drop_table('teams')
