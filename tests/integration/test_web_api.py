"""
Integration tests for the task API.

Runs the real aiohttp application (middlewares, routing, payload
validation, error mapping) with the engine methods replaced by mocks.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from aiohttp import test_utils, web

from taskengine.services.access_gate import CountryAccessGate
from taskengine.services.base_service import ServiceResult
from taskengine.services.cache.registry import build_memory_registry
from taskengine.services.rate_limiter import RateLimiter, RateLimitResult
from taskengine.services.task_engine import TaskEngine
from taskengine.services.task_session.verification import TrackingData
from taskengine.utils.exceptions import DailyLimitReachedError, ErrorCode
from taskengine.web import keys
from taskengine.web.app import create_app

MEMBER = {"X-User-Id": "1"}


@asynccontextmanager
async def fake_session_maker():
    yield AsyncMock()


def build_test_app(settings, rate_limiter=None):
    return create_app(
        settings,
        fake_session_maker,
        caches=build_memory_registry(),
        rate_limiter=rate_limiter or RateLimiter(),
        access_gate=CountryAccessGate(["PK"]),
        event_sink=AsyncMock(),
    )


@asynccontextmanager
async def api_client(settings, rate_limiter=None):
    server = test_utils.TestServer(build_test_app(settings, rate_limiter))
    async with test_utils.TestClient(server) as client:
        yield client


@pytest.fixture
def list_tasks(monkeypatch):
    mock = AsyncMock(
        return_value=ServiceResult.ok({"tasks": [], "userStats": {}, "pagination": {}})
    )
    monkeypatch.setattr(TaskEngine, "list_tasks", mock)
    return mock


class TestMiddlewares:
    """Test the request pipeline."""

    @pytest.mark.asyncio
    async def test_health_needs_no_session(self, settings):
        async with api_client(settings) as client:
            resp = await client.get("/health")
            assert resp.status == 200
            assert (await resp.json())["alive"] is True
            assert "X-RateLimit-Limit" not in resp.headers

    @pytest.mark.asyncio
    async def test_missing_session(self, settings, list_tasks):
        async with api_client(settings) as client:
            resp = await client.get("/api/tasks")
            body = await resp.json()

        assert resp.status == 401
        assert body["code"] == ErrorCode.UNAUTHORIZED
        list_tasks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_session_header(self, settings, list_tasks):
        async with api_client(settings) as client:
            resp = await client.get("/api/tasks", headers={"X-User-Id": "abc"})
        assert resp.status == 401

    @pytest.mark.asyncio
    async def test_non_ascii_digit_session_header(self, settings, list_tasks):
        async with api_client(settings) as client:
            resp = await client.get("/api/tasks", headers={"X-User-Id": "\u00b2"})
            body = await resp.json()

        assert resp.status == 401
        assert body["code"] == ErrorCode.UNAUTHORIZED
        list_tasks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blocked_country(self, settings, list_tasks):
        async with api_client(settings) as client:
            resp = await client.get(
                "/api/tasks", headers={**MEMBER, "CF-IPCountry": "PK"}
            )
            body = await resp.json()

        assert resp.status == 403
        assert body["code"] == ErrorCode.COUNTRY_BLOCKED
        assert body["country"] == "PK"
        list_tasks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limit_headers(self, settings, list_tasks):
        async with api_client(settings) as client:
            first = await client.get("/api/tasks", headers=MEMBER)
            second = await client.get("/api/tasks", headers=MEMBER)

        assert first.headers["X-RateLimit-Limit"] == "100"
        assert first.headers["X-RateLimit-Remaining"] == "99"
        assert second.headers["X-RateLimit-Remaining"] == "98"

    @pytest.mark.asyncio
    async def test_rate_limit_exceeded(self, settings, list_tasks):
        limiter = AsyncMock()
        limiter.rate_limit.return_value = RateLimitResult(
            success=False, limit=100, remaining=0, reset_time=0
        )

        async with api_client(settings, limiter) as client:
            resp = await client.get("/api/tasks", headers=MEMBER)
            body = await resp.json()

        assert resp.status == 429
        assert body["code"] == ErrorCode.RATE_LIMIT_EXCEEDED
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert resp.headers["X-RateLimit-Reset"] == "1970-01-01T00:00:00+00:00"
        limiter.rate_limit.assert_awaited_once_with("api:user:1", "api")
        list_tasks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, settings, list_tasks):
        list_tasks.side_effect = RuntimeError("boom")

        async with api_client(settings) as client:
            resp = await client.get("/api/tasks", headers=MEMBER)
            body = await resp.json()

        assert resp.status == 500
        assert body["code"] == ErrorCode.INTERNAL_ERROR
        assert "boom" not in body["error"]


class TestTaskRoutes:
    """Test handlers and payload validation."""

    @pytest.mark.asyncio
    async def test_list_tasks(self, settings, list_tasks):
        async with api_client(settings) as client:
            resp = await client.get(
                "/api/tasks?status=available&page=2&limit=10", headers=MEMBER
            )

        assert resp.status == 200
        list_tasks.assert_awaited_once_with(
            1, task_type=None, category=None, status="available", page=2, limit=10
        )

    @pytest.mark.asyncio
    async def test_list_tasks_bad_query(self, settings, list_tasks):
        async with api_client(settings) as client:
            resp = await client.get("/api/tasks?status=archived", headers=MEMBER)
            body = await resp.json()

        assert resp.status == 400
        assert body["code"] == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_start_requires_task_id(self, settings, monkeypatch):
        start = AsyncMock()
        monkeypatch.setattr(TaskEngine, "start_task", start)

        async with api_client(settings) as client:
            resp = await client.post("/api/tasks", json={}, headers=MEMBER)
            body = await resp.json()

        assert resp.status == 400
        assert body["error"] == "Task ID is required"
        start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_task(self, settings, monkeypatch):
        start = AsyncMock(return_value=ServiceResult.ok({"success": True, "id": 100}))
        monkeypatch.setattr(TaskEngine, "start_task", start)

        async with api_client(settings) as client:
            resp = await client.post("/api/tasks", json={"taskId": 10}, headers=MEMBER)
            body = await resp.json()

        assert resp.status == 200
        assert body["id"] == 100
        start.assert_awaited_once_with(1, 10)

    @pytest.mark.asyncio
    async def test_domain_error_status(self, settings, monkeypatch):
        error = DailyLimitReachedError("Daily task limit reached", tasksPerDay=5)
        monkeypatch.setattr(
            TaskEngine,
            "start_task",
            AsyncMock(return_value=ServiceResult.from_error(error)),
        )

        async with api_client(settings) as client:
            resp = await client.post("/api/tasks", json={"taskId": 10}, headers=MEMBER)
            body = await resp.json()

        assert resp.status == 429
        assert body == {
            "error": "Daily task limit reached",
            "code": ErrorCode.DAILY_LIMIT_REACHED,
            "tasksPerDay": 5,
        }

    @pytest.mark.asyncio
    async def test_progress_with_tracking(self, settings, monkeypatch):
        report = AsyncMock(return_value=ServiceResult.ok({"isCompleted": True}))
        monkeypatch.setattr(TaskEngine, "report_progress", report)
        payload = {
            "progress": 100,
            "notes": "read it",
            "trackingData": {"timeSpent": 60, "scrollPercentage": 80, "mouseMovements": 15},
        }

        async with api_client(settings) as client:
            resp = await client.post("/api/tasks/10/progress", json=payload, headers=MEMBER)

        assert resp.status == 200
        args, kwargs = report.await_args
        assert args == (1, 10, 100)
        assert isinstance(kwargs["tracking"], TrackingData)
        assert kwargs["tracking"].mouse_movements == 15
        assert kwargs["notes"] == "read it"

    @pytest.mark.asyncio
    async def test_progress_negative_rejected(self, settings, monkeypatch):
        monkeypatch.setattr(TaskEngine, "report_progress", AsyncMock())

        async with api_client(settings) as client:
            resp = await client.post(
                "/api/tasks/10/progress", json={"progress": -5}, headers=MEMBER
            )

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_progress_invalid_json(self, settings):
        async with api_client(settings) as client:
            resp = await client.post(
                "/api/tasks/10/progress",
                data="{not json",
                headers={**MEMBER, "Content-Type": "application/json"},
            )
            body = await resp.json()

        assert resp.status == 400
        assert body["code"] == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_bad_task_id(self, settings):
        async with api_client(settings) as client:
            resp = await client.post(
                "/api/tasks/abc/fail", json={}, headers=MEMBER
            )
        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_fail_task(self, settings, monkeypatch):
        fail = AsyncMock(return_value=ServiceResult.ok({"status": "FAILED"}))
        monkeypatch.setattr(TaskEngine, "fail_task", fail)

        async with api_client(settings) as client:
            resp = await client.post(
                "/api/tasks/10/fail", json={"reason": "closed"}, headers=MEMBER
            )

        assert resp.status == 200
        fail.assert_awaited_once_with(1, 10, "closed")

    @pytest.mark.asyncio
    async def test_non_ascii_digit_task_id(self, settings, monkeypatch):
        fail = AsyncMock()
        monkeypatch.setattr(TaskEngine, "fail_task", fail)

        async with api_client(settings) as client:
            resp = await client.post("/api/tasks/%C2%B2/fail", json={}, headers=MEMBER)
            body = await resp.json()

        assert resp.status == 400
        assert body["code"] == ErrorCode.INVALID_REQUEST
        fail.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_body_not_utf8(self, settings, monkeypatch):
        start = AsyncMock()
        monkeypatch.setattr(TaskEngine, "start_task", start)

        async with api_client(settings) as client:
            resp = await client.post(
                "/api/tasks",
                data=b'{"taskId": "\xff\xfe"}',
                headers={**MEMBER, "Content-Type": "application/json"},
            )
            body = await resp.json()

        assert resp.status == 400
        assert body["code"] == ErrorCode.INVALID_REQUEST
        start.assert_not_awaited()


def test_request_keys_are_typed():
    assert isinstance(keys.USER_ID, web.RequestKey)
    assert isinstance(keys.RATE_LIMIT_RESULT, web.RequestKey)
