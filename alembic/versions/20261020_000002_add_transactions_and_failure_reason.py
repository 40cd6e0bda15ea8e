"""Add transactions ledger and task_completions.failure_reason.

Revision ID: 20261020_000002
Revises: 20261019_000001
Create Date: 2026-10-20

Every task reward credit gets a TASK_REWARD row in transactions.
A failed session keeps its notes; the failure reason goes to its own
column.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '20261020_000002'
down_revision = '20261019_000001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create transactions and add failure_reason."""
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('amount', sa.DECIMAL(precision=18, scale=8), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='COMPLETED'
        ),
        sa.Column('completion_id', sa.Integer(), nullable=True),
        sa.Column(
            'extra_data',
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True
        ),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['completion_id'],
            ['task_completions.id'],
            ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index('ix_transactions_completion_id', 'transactions', ['completion_id'])
    op.create_index(
        'ix_transactions_user_created',
        'transactions',
        ['user_id', 'created_at']
    )

    op.add_column(
        'task_completions',
        sa.Column('failure_reason', sa.Text(), nullable=True)
    )


def downgrade() -> None:
    """Drop transactions and failure_reason."""
    op.drop_column('task_completions', 'failure_reason')

    op.drop_index('ix_transactions_user_created', table_name='transactions')
    op.drop_index('ix_transactions_completion_id', table_name='transactions')
    op.drop_index('ix_transactions_type', table_name='transactions')
    op.drop_index('ix_transactions_user_id', table_name='transactions')
    op.drop_table('transactions')
