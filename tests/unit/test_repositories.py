"""
Unit tests for repository statements.

Statements are compiled against the PostgreSQL dialect; execution is
mocked.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from taskengine.models.enums import TransactionStatus, TransactionType
from taskengine.repositories.task_completion_repository import (
    UNIQUE_USER_TASK,
    TaskCompletionRepository,
)
from taskengine.repositories.transaction_repository import TransactionRepository
from taskengine.repositories.user_repository import UserRepository
from tests.factories import NOW


def compile_pg(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.fixture
def executed(mock_session):
    """Make session.execute return a result with one affected row."""
    result = MagicMock()
    result.rowcount = 1
    result.scalar.return_value = 4
    mock_session.execute.return_value = result
    return result


class TestTaskCompletionRepository:
    """Test session ledger statements."""

    def test_start_statement_upserts_failed_only(self, mock_session):
        repo = TaskCompletionRepository(mock_session)

        sql = compile_pg(repo.build_start_statement(1, 10, NOW))

        assert "INSERT INTO task_completions" in sql
        assert f"ON CONFLICT ON CONSTRAINT {UNIQUE_USER_TASK} DO UPDATE" in sql
        assert "WHERE task_completions.status = " in sql
        assert "RETURNING" in sql

    @pytest.mark.asyncio
    async def test_complete_is_conditional(self, mock_session, executed):
        executed.scalars.return_value.first.return_value = None
        repo = TaskCompletionRepository(mock_session)

        result = await repo.complete_if_in_progress(100, 100, 30, NOW)

        assert result is None
        sql = compile_pg(mock_session.execute.await_args.args[0])
        assert sql.startswith("UPDATE task_completions SET")
        assert "task_completions.status = " in sql.split("WHERE", 1)[1]

    @pytest.mark.asyncio
    async def test_fail_keeps_notes(self, mock_session, executed):
        executed.scalars.return_value.first.return_value = None
        repo = TaskCompletionRepository(mock_session)

        await repo.fail_if_in_progress(100, "closed tab")

        stmt = mock_session.execute.await_args.args[0]
        sql = compile_pg(stmt)
        set_clause = sql.split("WHERE", 1)[0]
        assert "failure_reason=" in set_clause
        assert "notes=" not in set_clause

    def test_start_clears_failure_reason(self, mock_session):
        repo = TaskCompletionRepository(mock_session)
        sql = compile_pg(repo.build_start_statement(1, 10, NOW))
        assert "failure_reason = " in sql.split("DO UPDATE", 1)[1]


class TestUserRepository:
    """Test user counters and rank."""

    @pytest.mark.asyncio
    async def test_rank_zero_without_points(self, mock_session):
        repo = UserRepository(mock_session)

        assert await repo.get_rank(1, 0) == 0
        mock_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rank_counts_users_ahead(self, mock_session, executed):
        repo = UserRepository(mock_session)
        assert await repo.get_rank(1, 90) == 5

    @pytest.mark.asyncio
    async def test_credit_is_sql_increment(self, mock_session, executed):
        repo = UserRepository(mock_session)

        assert await repo.credit_task_reward(1, 30) is True

        sql = compile_pg(mock_session.execute.await_args.args[0])
        assert "balance=(users.balance + " in sql
        assert "tasks_completed=(users.tasks_completed + " in sql


class TestTransactionRepository:
    """Test ledger writes."""

    @pytest.mark.asyncio
    async def test_record_task_reward(self, mock_session):
        repo = TransactionRepository(mock_session)

        entry = await repo.record_task_reward(
            1, 10, 100, Decimal("30"), NOW, tracking={"timeSpent": 60}
        )

        mock_session.add.assert_called_once_with(entry)
        mock_session.flush.assert_awaited_once()
        assert entry.type == TransactionType.TASK_REWARD
        assert entry.status == TransactionStatus.COMPLETED
        assert entry.amount == Decimal("30")
        assert entry.completion_id == 100
        assert entry.description == "Task completion reward - Task ID: 10"
        assert entry.extra_data == {
            "taskId": 10,
            "taskCompletionId": 100,
            "trackingData": {"timeSpent": 60},
        }
