"""
Content engagement verification.

Checks the tracking data a client submits with a progress report against
the task's engagement requirements.
"""

from pydantic import BaseModel, ConfigDict, Field

from taskengine.config.constants import (
    DEFAULT_MIN_DURATION_SECONDS,
    DEFAULT_MIN_SCROLL_PERCENTAGE,
    MIN_MOUSE_MOVEMENTS,
    SUSPICIOUS_MIN_MOUSE_MOVEMENTS,
    SUSPICIOUS_MIN_SECONDS,
)
from taskengine.models.task import Task
from taskengine.utils.exceptions import VerificationFailedError


class TrackingData(BaseModel):
    """Engagement measurements collected while the member viewed content."""

    model_config = ConfigDict(populate_by_name=True)

    time_spent: float = Field(default=0, ge=0, alias="timeSpent")
    scroll_percentage: float = Field(default=0, ge=0, alias="scrollPercentage")
    mouse_movements: int = Field(default=0, ge=0, alias="mouseMovements")
    ad_clicks: int = Field(default=0, ge=0, alias="adClicks")


class TrackingVerifier:
    """Validates tracking data against a task's requirements."""

    def verify(self, task: Task, tracking: TrackingData) -> None:
        """
        Verify engagement.

        Args:
            task: Task being completed
            tracking: Submitted tracking data

        Raises:
            VerificationFailedError: If a requirement is not met
        """
        min_duration = task.min_duration or DEFAULT_MIN_DURATION_SECONDS
        if tracking.time_spent < min_duration:
            raise VerificationFailedError(
                f"Minimum time requirement not met. Required: {min_duration}s, "
                f"Actual: {tracking.time_spent:g}s",
                requirement="minDuration",
            )

        min_scroll = task.min_scroll_percentage or DEFAULT_MIN_SCROLL_PERCENTAGE
        if task.require_scrolling and tracking.scroll_percentage < min_scroll:
            raise VerificationFailedError(
                f"Scrolling requirement not met. Required: {min_scroll}%, "
                f"Actual: {tracking.scroll_percentage:.1f}%",
                requirement="minScrollPercentage",
            )

        if task.require_mouse_movement and tracking.mouse_movements < MIN_MOUSE_MOVEMENTS:
            raise VerificationFailedError(
                f"Interaction requirement not met. Required: {MIN_MOUSE_MOVEMENTS}+ "
                f"movements, Actual: {tracking.mouse_movements}",
                requirement="mouseMovements",
            )

        if (
            tracking.time_spent < SUSPICIOUS_MIN_SECONDS
            or tracking.mouse_movements < SUSPICIOUS_MIN_MOUSE_MOVEMENTS
        ):
            raise VerificationFailedError(
                "Suspicious activity detected. Please engage naturally with the content.",
                requirement="suspiciousActivity",
            )

        min_ad_clicks = task.min_ad_clicks or 0
        if min_ad_clicks > 0 and tracking.ad_clicks < min_ad_clicks:
            raise VerificationFailedError(
                f"Ad click requirement not met. Required: {min_ad_clicks}, "
                f"Actual: {tracking.ad_clicks}",
                requirement="minAdClicks",
            )
