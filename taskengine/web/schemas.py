"""
Request payload models.
"""

from pydantic import BaseModel, ConfigDict, Field

from taskengine.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from taskengine.services.task_session.verification import TrackingData


class TaskListQuery(BaseModel):
    """Query string of GET /api/tasks."""

    type: str | None = None
    category: str | None = None
    status: str | None = Field(default=None, pattern="^(completed|available|in_progress)$")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class StartTaskRequest(BaseModel):
    """Body of POST /api/tasks."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: int = Field(alias="taskId", gt=0)


class ProgressRequest(BaseModel):
    """Body of POST /api/tasks/{task_id}/progress."""

    model_config = ConfigDict(populate_by_name=True)

    progress: int = Field(ge=0)
    notes: str | None = Field(default=None, max_length=2000)
    tracking_data: TrackingData | None = Field(default=None, alias="trackingData")
    article_url: str | None = Field(default=None, alias="articleUrl", max_length=500)


class FailTaskRequest(BaseModel):
    """Body of POST /api/tasks/{task_id}/fail."""

    reason: str | None = Field(default=None, max_length=500)
