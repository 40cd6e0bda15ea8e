"""
Task session package: state machine, verification and lifecycle service.
"""

from taskengine.services.task_session.context import MemberContext, load_member_context
from taskengine.services.task_session.session_service import (
    ProgressOutcome,
    TaskSessionService,
)
from taskengine.services.task_session.state_machine import (
    ABSENT,
    TRANSITIONS,
    can_start,
    can_transition,
    ensure_transition,
    state_of,
)
from taskengine.services.task_session.verification import TrackingData, TrackingVerifier

__all__ = [
    "ABSENT",
    "TRANSITIONS",
    "MemberContext",
    "ProgressOutcome",
    "TaskSessionService",
    "TrackingData",
    "TrackingVerifier",
    "can_start",
    "can_transition",
    "ensure_transition",
    "load_member_context",
    "state_of",
]
