"""
HTTP handlers for the task API.
"""

from typing import Any

from aiohttp import web

from taskengine.services.base_service import ServiceResult
from taskengine.services.task_engine import TaskEngine
from taskengine.utils.exceptions import InvalidRequestError, http_status_for
from taskengine.web import keys
from taskengine.web.schemas import (
    FailTaskRequest,
    ProgressRequest,
    StartTaskRequest,
    TaskListQuery,
)

routes = web.RouteTableDef()


def result_response(result: ServiceResult) -> web.Response:
    """Render a ServiceResult."""
    if result.success:
        return web.json_response(result.data)
    return web.json_response(
        {"error": result.error, "code": result.error_code, **(result.data or {})},
        status=http_status_for(result.error_code),
    )


async def read_json(request: web.Request) -> dict[str, Any]:
    """Read a JSON object body; an empty body is an empty object."""
    if not request.body_exists:
        return {}
    try:
        body = await request.json()
    except ValueError as e:
        raise InvalidRequestError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    return body


def task_id_from(request: web.Request) -> int:
    raw = request.match_info["task_id"]
    if not raw.isascii() or not raw.isdecimal():
        raise InvalidRequestError("Task ID must be a positive integer", taskId=raw)
    return int(raw)


def build_engine(request: web.Request, session) -> TaskEngine:
    app = request.app
    return TaskEngine(
        session,
        app[keys.SETTINGS],
        app[keys.CACHES],
        event_sink=app[keys.EVENT_SINK],
    )


@routes.get("/health")
async def health_handler(request: web.Request) -> web.Response:
    """Liveness check."""
    return web.json_response({"status": "alive", "alive": True})


@routes.get("/api/tasks")
async def list_tasks_handler(request: web.Request) -> web.Response:
    """List tasks for the current member."""
    query = TaskListQuery.model_validate(dict(request.query))
    async with request.app[keys.SESSION_MAKER]() as session:
        result = await build_engine(request, session).list_tasks(
            request[keys.USER_ID],
            task_type=query.type,
            category=query.category,
            status=query.status,
            page=query.page,
            limit=query.limit,
        )
    return result_response(result)


@routes.post("/api/tasks")
async def start_task_handler(request: web.Request) -> web.Response:
    """Start a task session."""
    body = await read_json(request)
    if not body.get("taskId"):
        raise InvalidRequestError("Task ID is required")
    payload = StartTaskRequest.model_validate(body)

    async with request.app[keys.SESSION_MAKER]() as session:
        result = await build_engine(request, session).start_task(
            request[keys.USER_ID], payload.task_id
        )
    return result_response(result)


@routes.post("/api/tasks/{task_id}/progress")
async def progress_handler(request: web.Request) -> web.Response:
    """Report progress on a task session."""
    task_id = task_id_from(request)
    payload = ProgressRequest.model_validate(await read_json(request))

    async with request.app[keys.SESSION_MAKER]() as session:
        result = await build_engine(request, session).report_progress(
            request[keys.USER_ID],
            task_id,
            payload.progress,
            tracking=payload.tracking_data,
            notes=payload.notes,
            article_url=payload.article_url,
        )
    return result_response(result)


@routes.post("/api/tasks/{task_id}/fail")
async def fail_handler(request: web.Request) -> web.Response:
    """Fail a task session so it can be retried."""
    task_id = task_id_from(request)
    payload = FailTaskRequest.model_validate(await read_json(request))

    async with request.app[keys.SESSION_MAKER]() as session:
        result = await build_engine(request, session).fail_task(
            request[keys.USER_ID], task_id, payload.reason
        )
    return result_response(result)
