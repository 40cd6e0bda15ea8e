"""Create task engine tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

Creates users, membership_plans, tasks and task_completions.
task_completions is unique per (user_id, task_id); the start upsert
relies on that constraint.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_000001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create task engine tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column(
            'membership_status',
            sa.String(length=20),
            nullable=False,
            server_default='INACTIVE'
        ),
        sa.Column('membership_plan', sa.String(length=50), nullable=True),
        sa.Column('membership_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('membership_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('earnings_continue_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'tasks_enabled',
            sa.Boolean(),
            nullable=False,
            server_default=sa.false()
        ),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column(
            'balance',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0'
        ),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'total_earnings',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0'
        ),
        sa.Column('tasks_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'pending_commission',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0',
            comment="Sponsor commission from referrals' task rewards"
        ),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('balance >= 0', name='check_user_balance_non_negative'),
        sa.CheckConstraint(
            'total_earnings >= 0',
            name='check_user_total_earnings_non_negative'
        ),
        sa.CheckConstraint(
            'tasks_completed >= 0',
            name='check_user_tasks_completed_non_negative'
        ),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_membership_status', 'users', ['membership_status'])
    op.create_index('ix_users_sponsor_id', 'users', ['sponsor_id'])
    op.create_index('ix_users_total_points', 'users', ['total_points'])

    op.create_table(
        'membership_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column(
            'price',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0'
        ),
        sa.Column('tasks_per_day', sa.Integer(), nullable=False, server_default='5'),
        sa.Column(
            'daily_task_earning',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0'
        ),
        sa.Column('max_earning_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column(
            'extended_earning_days',
            sa.Integer(),
            nullable=False,
            server_default='60'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('tasks_per_day > 0', name='check_plan_tasks_per_day_positive'),
        sa.CheckConstraint(
            'daily_task_earning >= 0',
            name='check_plan_daily_task_earning_non_negative'
        ),
    )
    op.create_index('ix_membership_plans_name', 'membership_plans', ['name'], unique=True)

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='ACTIVE'),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('difficulty', sa.String(length=20), nullable=True),
        sa.Column(
            'reward',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0'
        ),
        sa.Column('target', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('completions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('article_url', sa.String(length=500), nullable=True),
        sa.Column(
            'min_duration',
            sa.Integer(),
            nullable=True,
            comment='Minimum seconds on content'
        ),
        sa.Column(
            'require_scrolling',
            sa.Boolean(),
            nullable=False,
            server_default=sa.true()
        ),
        sa.Column(
            'require_mouse_movement',
            sa.Boolean(),
            nullable=False,
            server_default=sa.true()
        ),
        sa.Column('min_scroll_percentage', sa.Integer(), nullable=True),
        sa.Column('max_attempts', sa.Integer(), nullable=True),
        sa.Column('min_ad_clicks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index(
        'ix_tasks_status_type_created',
        'tasks',
        ['status', 'type', 'created_at']
    )

    op.create_table(
        'task_completions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='IN_PROGRESS'
        ),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'reward',
            sa.DECIMAL(precision=18, scale=8),
            nullable=False,
            server_default='0'
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column(
            'started_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'task_id', name='uq_task_completion_user_task'),
    )
    op.create_index('ix_task_completions_user_id', 'task_completions', ['user_id'])
    op.create_index('ix_task_completions_task_id', 'task_completions', ['task_id'])
    op.create_index(
        'ix_task_completions_user_completed',
        'task_completions',
        ['user_id', 'completed_at']
    )


def downgrade() -> None:
    """Drop task engine tables."""
    op.drop_index('ix_task_completions_user_completed', table_name='task_completions')
    op.drop_index('ix_task_completions_task_id', table_name='task_completions')
    op.drop_index('ix_task_completions_user_id', table_name='task_completions')
    op.drop_table('task_completions')

    op.drop_index('ix_tasks_status_type_created', table_name='tasks')
    op.drop_index('ix_tasks_status', table_name='tasks')
    op.drop_table('tasks')

    op.drop_index('ix_membership_plans_name', table_name='membership_plans')
    op.drop_table('membership_plans')

    op.drop_index('ix_users_total_points', table_name='users')
    op.drop_index('ix_users_sponsor_id', table_name='users')
    op.drop_index('ix_users_membership_status', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
