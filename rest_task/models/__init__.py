"""Data models and schemas.

Defines the data structures used throughout the engine:
- Endpoint, RequestSpec, PollPolicy: What to call and how to judge it
- ResponseRecord: Bounded result of one HTTP exchange
- ExecutionState, CycleResult: Cross-cycle state and per-cycle outcome
- RestTaskInput: Pydantic schema of the host task configuration
"""

from rest_task.models.execution import CycleResult, ExecutionState, TaskState
from rest_task.models.request import (
    Endpoint,
    HttpMethod,
    ModelValidationError,
    PollPolicy,
    RequestSpec,
)
from rest_task.models.response import ResponseRecord

__all__ = [
    "CycleResult",
    "Endpoint",
    "ExecutionState",
    "HttpMethod",
    "ModelValidationError",
    "PollPolicy",
    "RequestSpec",
    "ResponseRecord",
    "TaskState",
]
