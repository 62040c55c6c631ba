"""Thin ingress boundary helpers for Azure Functions entrypoints.

Centralises the transport concerns so that ``function_app.py`` contains
only trigger bindings and handoff:

- **deserialize_activity_input** — normalises the JSON-string-or-dict
  payload that Durable Functions passes to activities (idempotent on
  replays).
- **parse_task_input** — validates the REST task configuration with the
  pydantic schema and reports problems as ``ContractError``.
- **parse_endpoint_input** — the same for a bare ``endpoint`` section.
- **parse_execution_state** — restores the caller-persisted poll state.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from rest_task.core.exceptions import ContractError
from rest_task.models.execution import ExecutionState
from rest_task.models.request import Endpoint, ModelValidationError
from rest_task.models.task_input import EndpointInput, RestTaskInput

logger = logging.getLogger("rest_task.core.ingress")


# ---------------------------------------------------------------------------
# Activity input deserialisation
# ---------------------------------------------------------------------------


def deserialize_activity_input(raw: str | dict[str, Any] | object) -> dict[str, Any]:
    """Normalise Durable Functions activity input to a plain dict.

    During initial execution the activity input arrives as a JSON
    string; on orchestrator replay it may already be a ``dict``.  This
    function handles both cases and raises ``ContractError`` for
    unexpected types.

    Args:
        raw: The ``activityInput`` value from the binding.

    Returns:
        Parsed dict payload.

    Raises:
        ContractError: If *raw* is neither a JSON string nor a dict.
    """
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"Activity input is not valid JSON: {exc}"
            raise ContractError(msg, stage="ingress", code="INVALID_JSON") from exc
        if not isinstance(parsed, dict):
            msg = f"Activity input JSON must be an object, got {type(parsed).__name__}"
            raise ContractError(msg, stage="ingress", code="INVALID_INPUT_TYPE")
        return parsed
    if isinstance(raw, dict):
        return raw
    msg = f"Unexpected activity input type: {type(raw).__name__}"
    raise ContractError(msg, stage="ingress", code="INVALID_INPUT_TYPE")


# ---------------------------------------------------------------------------
# Task configuration
# ---------------------------------------------------------------------------


def parse_task_input(raw: object) -> RestTaskInput:
    """Validate a REST task configuration dict.

    Raises:
        ContractError: If *raw* is not a dict or does not fit the schema.
    """
    if not isinstance(raw, dict):
        msg = f"Task configuration must be an object, got {type(raw).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_TASK_INPUT")
    try:
        task_input = RestTaskInput.model_validate(raw)
    except SchemaValidationError as exc:
        msg = f"Invalid task configuration: {_schema_problems(exc)}"
        raise ContractError(msg, stage="ingress", code="INVALID_TASK_INPUT") from exc

    logger.debug(
        "Parsed task input | method=%s | path=%s | poll=%s",
        task_input.method,
        task_input.path,
        task_input.poll,
    )
    return task_input


def parse_endpoint_input(raw: object) -> Endpoint:
    """Validate an ``endpoint`` section on its own; ``None`` means empty.

    Raises:
        ContractError: If *raw* is not a dict or does not fit the schema.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        msg = f"Endpoint configuration must be an object, got {type(raw).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_ENDPOINT_INPUT")
    try:
        return EndpointInput.model_validate(raw).to_endpoint()
    except SchemaValidationError as exc:
        msg = f"Invalid endpoint configuration: {_schema_problems(exc)}"
        raise ContractError(msg, stage="ingress", code="INVALID_ENDPOINT_INPUT") from exc


def _schema_problems(exc: SchemaValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def parse_execution_state(raw: object) -> ExecutionState | None:
    """Restore persisted poll state; ``None`` (or empty) means first cycle.

    Raises:
        ContractError: If the state is present but malformed.
    """
    if raw is None or raw == {}:
        return None
    if not isinstance(raw, dict):
        msg = f"Execution state must be an object, got {type(raw).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_EXECUTION_STATE")
    try:
        return ExecutionState.from_dict(raw)
    except ModelValidationError as exc:
        msg = f"Invalid execution state: {exc.message}"
        raise ContractError(msg, stage="ingress", code="INVALID_EXECUTION_STATE") from exc
