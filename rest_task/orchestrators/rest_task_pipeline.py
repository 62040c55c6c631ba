"""Durable Functions orchestrator that drives a REST task to completion.

Receives the task configuration from the HTTP starter and repeatedly
calls the ``rest_task_cycle`` activity:

1. Call the activity with the task, the last ``execution_state`` and the
   orchestration's replay-safe ``now``.
2. ``polling`` → publish progress via custom status, sleep on a durable
   timer for ``interval_seconds`` (zero compute cost), repeat.
3. ``completed`` / ``failed`` → return the cycle result.

The poll timeout is enforced by the activity; the orchestrator imposes no
cycle cap of its own.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from rest_task.models.execution import TaskState

if TYPE_CHECKING:
    from collections.abc import Generator

    import azure.durable_functions as df

logger = logging.getLogger("rest_task.orchestrators.rest_task_pipeline")

CYCLE_ACTIVITY = "rest_task_cycle"


def orchestrator_function(
    context: df.DurableOrchestrationContext,
) -> Generator[Any, Any, dict[str, Any]]:
    """REST task orchestrator.

    Input (via ``context.get_input``):
        The task configuration dict (see ``RestTaskInput``).

    Returns:
        The terminal ``CycleResult`` dict plus ``instance_id`` and
        ``cycles``.
    """
    task: dict[str, Any] = context.get_input() or {}
    instance_id = context.instance_id

    if not context.is_replaying:
        logger.info(
            "Orchestrator started | instance=%s | method=%s | poll=%s",
            instance_id,
            task.get("method", "GET"),
            task.get("poll", False),
        )

    execution_state: dict[str, Any] | None = None
    cycles = 0

    while True:
        cycles += 1
        try:
            result = yield context.call_activity(
                CYCLE_ACTIVITY,
                {
                    "task": task,
                    "execution_state": execution_state,
                    "now": context.current_utc_datetime.isoformat(),
                },
            )
        except Exception as exc:
            if not context.is_replaying:
                logger.error(
                    "Cycle activity failed | instance=%s | cycle=%d | error=%s",
                    instance_id,
                    cycles,
                    exc,
                )
            return _finish(
                _activity_failure(exc, execution_state),
                instance_id=instance_id,
                cycles=cycles,
            )

        state = str(result.get("state", ""))
        execution_state = result.get("execution_state")

        if not context.is_replaying:
            logger.info(
                "Cycle result | instance=%s | cycle=%d | state=%s",
                instance_id,
                cycles,
                state,
            )

        if state != TaskState.POLLING.value:
            if not context.is_replaying:
                logger.info(
                    "Orchestrator finished | instance=%s | state=%s | cycles=%d",
                    instance_id,
                    state,
                    cycles,
                )
            return _finish(result, instance_id=instance_id, cycles=cycles)

        context.set_custom_status(
            {
                "state": state,
                "progress_message": result.get("progress_message", ""),
                "progress_code": result.get("progress_code", ""),
                "attempts": (execution_state or {}).get("attempts", 0),
            }
        )

        interval = int(result.get("interval_seconds") or 0)
        fire_at = context.current_utc_datetime + timedelta(seconds=interval)
        yield context.create_timer(fire_at)


def _finish(result: dict[str, Any], *, instance_id: str, cycles: int) -> dict[str, Any]:
    return {**result, "instance_id": instance_id, "cycles": cycles}


def _activity_failure(exc: Exception, execution_state: dict[str, Any] | None) -> dict[str, Any]:
    """Build a ``failed`` cycle result for an activity that raised."""
    return {
        "state": TaskState.FAILED.value,
        "is_terminal": True,
        "execution_state": execution_state,
        "outputs": None,
        "interval_seconds": None,
        "progress_message": "",
        "progress_code": "",
        "error": {
            "category": "contract",
            "code": "ACTIVITY_FAILED",
            "stage": CYCLE_ACTIVITY,
            "message": str(exc),
            "retryable": False,
            "correlation_id": "",
        },
    }
