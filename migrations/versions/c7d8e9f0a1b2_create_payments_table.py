"""create payments table

Revision ID: c7d8e9f0a1b2
Revises: b1c2d3e4f5a6
Create Date: 2026-09-28 11:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c7d8e9f0a1b2'
down_revision: Union[str, Sequence[str], None] = 'b1c2d3e4f5a6'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """One row per (session, subject, month), created on the first explicit status change."""
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('subject_type', sa.String(16), nullable=False),
        sa.Column('subject_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('month', sa.SmallInteger(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('paid_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            'session_id', 'subject_type', 'subject_id', 'year', 'month',
            name='uq_payment_session_subject_month',
        ),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_payment_month'),
        sa.CheckConstraint('year >= 2000 AND year <= 2100', name='ck_payment_year'),
        sa.CheckConstraint('amount >= 0', name='ck_payment_amount'),
    )
    op.create_index('ix_payments_team_id', 'payments', ['team_id'])
    op.create_index('ix_payments_session_id', 'payments', ['session_id'])
    op.create_index('ix_payment_session_subject_type', 'payments', ['session_id', 'subject_type'])


def downgrade() -> None:
    op.drop_index('ix_payment_session_subject_type', table_name='payments')
    op.drop_index('ix_payments_session_id', table_name='payments')
    op.drop_index('ix_payments_team_id', table_name='payments')
    op.drop_table('payments')
