"""Execute task activity — one cycle of the REST task poll state machine.

The orchestrator calls this activity once per cycle.  A cycle either
schedules polling (first cycle in poll mode, no request), performs one
HTTP request and evaluates it, or fails fast on invalid poll settings.
No state survives between cycles other than the ``ExecutionState`` handed
back in the result, so consecutive cycles may run on different workers.

Transitions:

- INIT, poll off            → call now (single-shot).
- INIT, poll on, bad params → FAILED (``ValidationError``), no call.
- INIT, poll on             → POLLING, ``attempts=1``, no call.
- call matched              → COMPLETED with outputs.
- single-shot, no match     → FAILED (``UnexpectedResponseError``) with outputs.
- polling, no match, expired→ FAILED (``PollTimeoutError``) with outputs.
- polling, no match         → POLLING, ``attempts += 1``.
- any engine error          → FAILED carrying that error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any

from rest_task.core.config import EngineConfig
from rest_task.core.constants import (
    POLL_PARAMETERS_FAIL,
    POLL_PROGRESS_CODE,
    POLL_PROGRESS_FMT,
    POLL_TIMEOUT_FAIL_FMT,
    UNEXPECTED_RESPONSE_FAIL,
)
from rest_task.core.exceptions import (
    PollTimeoutError,
    RestTaskError,
    UnexpectedResponseError,
    ValidationError,
)
from rest_task.core.ingress import parse_execution_state, parse_task_input
from rest_task.http.evaluator import evaluate
from rest_task.http.executor import execute
from rest_task.models.execution import CycleResult, ExecutionState, TaskState
from rest_task.models.payloads import ExecuteTaskInput, validate_payload
from rest_task.models.request import Endpoint, PollPolicy, RequestSpec
from rest_task.models.response import ResponseRecord
from rest_task.utils.helpers import parse_timestamp, utc_now

logger = logging.getLogger("rest_task.activities.execute_task")

Executor = Callable[[Endpoint, RequestSpec], ResponseRecord]
"""Callable performing one HTTP request (``rest_task.http.executor.execute``)."""


@dataclass(frozen=True, slots=True)
class RestTask:
    """Everything one cycle needs to know about the configured task."""

    endpoint: Endpoint
    request: RequestSpec
    policy: PollPolicy


def run_cycle(
    task: RestTask,
    execution_state: ExecutionState | None,
    *,
    now: datetime | None = None,
    executor: Executor = execute,
    log: logging.Logger | None = None,
) -> CycleResult:
    """Advance the task by one cycle.

    Args:
        task: Endpoint, request and poll policy.
        execution_state: State returned by the previous cycle, or ``None``
            for the first cycle.
        now: Current UTC time used for elapsed-time accounting.  Defaults
            to the wall clock; the orchestrator passes its replay-safe time.
        executor: Request executor (injectable for tests).
        log: Logging sink for this cycle (defaults to the module logger).

    Returns:
        The ``CycleResult``.  Engine errors never escape; they are
        reported as a ``FAILED`` result.
    """
    log = log or logger
    now = now or utc_now()
    policy = task.policy

    if policy.enabled and execution_state is None:
        if not policy.has_valid_parameters:
            log.error(POLL_PARAMETERS_FAIL)
            return CycleResult(
                state=TaskState.FAILED,
                error=ValidationError(
                    POLL_PARAMETERS_FAIL, stage="poll", code="INVALID_POLL_PARAMETERS"
                ),
            )
        state = ExecutionState(attempts=1, started_at=now)
        log.info(
            "Polling scheduled | interval=%d | timeout=%d",
            policy.interval_seconds,
            policy.timeout_seconds,
        )
        return CycleResult(
            state=TaskState.POLLING,
            execution_state=state,
            interval_seconds=policy.interval_seconds,
        )

    try:
        response = executor(task.endpoint, task.request)
        matched = evaluate(response, policy.expected_statuses, policy.expected_pattern)
        outputs = response_outputs(response)
    except RestTaskError as exc:
        log.error(
            "Cycle failed | category=%s | code=%s | error=%s",
            exc.category,
            exc.code,
            exc.message,
        )
        return CycleResult(
            state=TaskState.FAILED,
            execution_state=execution_state.finish() if execution_state else None,
            error=exc,
        )

    if matched:
        log.info("Request completed | status=%d", response.status_code)
        return CycleResult(
            state=TaskState.COMPLETED,
            execution_state=execution_state.finish() if execution_state else None,
            outputs=outputs,
        )

    if not policy.enabled or execution_state is None:
        log.error("%s | status=%d", UNEXPECTED_RESPONSE_FAIL, response.status_code)
        return CycleResult(
            state=TaskState.FAILED,
            outputs=outputs,
            error=UnexpectedResponseError(UNEXPECTED_RESPONSE_FAIL),
        )

    elapsed = execution_state.elapsed_seconds(now)
    if elapsed >= policy.timeout_seconds:
        message = POLL_TIMEOUT_FAIL_FMT % elapsed
        log.error("%s | attempts=%d", message, execution_state.attempts)
        return CycleResult(
            state=TaskState.FAILED,
            execution_state=execution_state.finish(),
            outputs=outputs,
            error=PollTimeoutError(message, elapsed_seconds=elapsed),
        )

    progress = POLL_PROGRESS_FMT % elapsed
    next_state = execution_state.advance()
    log.info("%s | attempts=%d", progress, next_state.attempts)
    return CycleResult(
        state=TaskState.POLLING,
        execution_state=next_state,
        interval_seconds=policy.interval_seconds,
        progress_message=progress,
        progress_code=POLL_PROGRESS_CODE,
    )


def response_outputs(response: ResponseRecord) -> dict[str, Any]:
    """Return the task outputs for *response*.

    Raises:
        SizeLimitError: If the body was too large to buffer.
    """
    return {
        "responseStatus": response.status_code,
        "responseHeaders": dict(response.headers),
        "responseBody": response.body,
    }


def execute_task(
    payload: dict[str, Any],
    *,
    executor: Executor | None = None,
    config: EngineConfig | None = None,
) -> dict[str, Any]:
    """Activity entry point: parse *payload*, run one cycle, serialise.

    Args:
        payload: Dict with ``task`` (the task configuration), optional
            ``execution_state`` from the previous cycle and optional
            ``now`` (ISO 8601).
        executor: Override for the request executor.
        config: Engine configuration; read from the environment if omitted.

    Returns:
        ``CycleResult.to_dict()``.

    Raises:
        ContractError: If the payload does not fit the task schema.
        ConfigValidationError: If the environment configuration is invalid.
    """
    validate_payload(payload, ExecuteTaskInput, activity="execute_task")
    task_input = parse_task_input(payload.get("task"))
    execution_state = parse_execution_state(payload.get("execution_state"))
    raw_now = payload.get("now")
    now = parse_timestamp(str(raw_now)) if raw_now else utc_now()

    if executor is None:
        executor = partial(execute, config=config or EngineConfig.from_env())

    task = RestTask(
        endpoint=task_input.to_endpoint(),
        request=task_input.to_request_spec(),
        policy=task_input.to_poll_policy(),
    )
    result = run_cycle(task, execution_state, now=now, executor=executor)
    logger.info(
        "execute_task cycle finished | state=%s | attempts=%s",
        result.state.value,
        result.execution_state.attempts if result.execution_state else "-",
    )
    return result.to_dict()
