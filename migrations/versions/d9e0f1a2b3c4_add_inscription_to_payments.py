"""add inscription columns to payments

Revision ID: d9e0f1a2b3c4
Revises: c7d8e9f0a1b2
Create Date: 2026-10-19 10:05:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'd9e0f1a2b3c4'
down_revision: Union[str, Sequence[str], None] = 'c7d8e9f0a1b2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Registration fee collected together with a monthly payment
    op.add_column('payments',
                  sa.Column('inscription_included', sa.Boolean(),
                            nullable=False, server_default=sa.false()))
    op.add_column('payments',
                  sa.Column('inscription_amount', sa.Numeric(12, 2),
                            nullable=False, server_default='0'))
    op.create_check_constraint('ck_payment_inscription_amount', 'payments', 'inscription_amount >= 0')


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_constraint('ck_payment_inscription_amount', 'payments', type_='check')
    op.drop_column('payments', 'inscription_amount')
    op.drop_column('payments', 'inscription_included')
