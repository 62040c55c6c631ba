"""Typed payload schemas for Durable Functions activity contracts.

Every activity receives and returns a JSON-serialisable dict.  These
``TypedDict`` definitions make the contracts explicit so that pyright
catches key mismatches at analysis time and ``validate_payload`` catches
them at runtime.

Usage::

    from rest_task.models.payloads import ExecuteTaskInput, validate_payload

    def rest_task_cycle(raw: dict) -> ...:
        validate_payload(raw, ExecuteTaskInput, activity="execute_task")
"""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict

from rest_task.core.exceptions import ContractError

# ---------------------------------------------------------------------------
# Execute task (one cycle)
# ---------------------------------------------------------------------------


class ExecutionStateDict(TypedDict):
    """Serialised ``ExecutionState``."""

    attempts: int
    started_at: str
    done: bool


class ExecuteTaskInput(TypedDict):
    """Orchestrator → ``execute_task`` activity."""

    task: dict[str, Any]
    execution_state: NotRequired[ExecutionStateDict | None]
    now: NotRequired[str]


class ErrorDict(TypedDict):
    """``RestTaskError.to_error_dict()``."""

    category: str
    code: str
    stage: str
    message: str
    retryable: bool
    correlation_id: str


class TaskOutputs(TypedDict):
    """Outputs attached to terminal cycles that read a response."""

    responseStatus: int
    responseHeaders: dict[str, str]
    responseBody: str


class ExecuteTaskOutput(TypedDict):
    """``execute_task`` activity → orchestrator (``CycleResult.to_dict()``)."""

    state: str
    is_terminal: bool
    execution_state: ExecutionStateDict | None
    outputs: TaskOutputs | None
    interval_seconds: int | None
    progress_message: str
    progress_code: str
    error: ErrorDict | None


# ---------------------------------------------------------------------------
# Orchestration result
# ---------------------------------------------------------------------------


class OrchestrationOutput(ExecuteTaskOutput):
    """``rest_task_orchestrator`` → HTTP status endpoint."""

    instance_id: str
    cycles: int


# ---------------------------------------------------------------------------
# Endpoint validation / preview
# ---------------------------------------------------------------------------


class ValidateEndpointInput(TypedDict):
    """HTTP body → ``validate_endpoint``."""

    endpoint: dict[str, Any]


class PreviewRequestInput(TypedDict):
    """HTTP body → ``preview_request`` (task configuration shape)."""

    endpoint: dict[str, Any]
    path: NotRequired[str]
    method: NotRequired[str]
    headers: NotRequired[list[dict[str, str]]]
    body: NotRequired[str]


# ---------------------------------------------------------------------------
# Required-key registry
# ---------------------------------------------------------------------------

_REQUIRED_KEYS: dict[type, frozenset[str]] = {
    ExecuteTaskInput: frozenset({"task"}),
    ExecuteTaskOutput: frozenset({"state", "is_terminal"}),
    ValidateEndpointInput: frozenset({"endpoint"}),
    PreviewRequestInput: frozenset({"endpoint"}),
}


# ---------------------------------------------------------------------------
# Runtime validation
# ---------------------------------------------------------------------------


def validate_payload(
    raw: dict[str, Any],
    schema: type,
    *,
    activity: str,
) -> None:
    """Validate that *raw* contains the required keys for *schema*.

    Raises:
        ContractError: If required keys are missing from the payload.
    """
    required = _REQUIRED_KEYS.get(schema)
    if required is None:
        return

    missing = required - raw.keys()
    if missing:
        msg = f"{activity}: missing required payload key(s): {', '.join(sorted(missing))}"
        raise ContractError(msg, stage=activity, code="PAYLOAD_MISSING_KEYS")
