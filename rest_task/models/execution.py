"""Cross-cycle execution state and the per-cycle result.

The engine never holds state between cycles: ``ExecutionState`` is handed
back to the host inside every non-terminal ``CycleResult`` and must be
passed in, unchanged, on the next cycle.  Cycles of one task may run in
different worker processes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from rest_task.core.exceptions import RestTaskError
from rest_task.models.request import ModelValidationError


class TaskState(enum.Enum):
    """Lifecycle state of a REST task.

    Values:
        INIT:      First cycle, nothing recorded yet.
        POLLING:   Waiting for the host to re-invoke after the interval.
        COMPLETED: Response matched; terminal.
        FAILED:    Validation, transport, size, mismatch or timeout; terminal.
    """

    INIT = "init"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED)


@dataclass(frozen=True, slots=True)
class ExecutionState:
    """Caller-persisted state of a poll task.

    Attributes:
        attempts: Number of poll attempts so far (>= 1).
        started_at: UTC time of the INIT → POLLING transition.
        done: Whether the task reached a terminal state.
    """

    attempts: int
    started_at: datetime
    done: bool = False

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ModelValidationError("ExecutionState", "attempts", self.attempts, "must be >= 1")
        if self.started_at.tzinfo is None:
            raise ModelValidationError(
                "ExecutionState", "started_at", self.started_at, "must be timezone-aware"
            )

    def advance(self) -> ExecutionState:
        """Return a copy with one more attempt recorded."""
        return replace(self, attempts=self.attempts + 1)

    def finish(self) -> ExecutionState:
        """Return a copy marked as done."""
        return replace(self, done=True)

    def elapsed_seconds(self, now: datetime) -> int:
        """Return whole seconds elapsed between ``started_at`` and *now*."""
        return int((now - self.started_at).total_seconds())

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict."""
        return {
            "attempts": self.attempts,
            "started_at": self.started_at.isoformat(),
            "done": self.done,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionState:
        """Deserialise from a dict produced by ``to_dict``.

        Naive timestamps are interpreted as UTC.
        """
        raw_started = data.get("started_at", "")
        try:
            started_at = datetime.fromisoformat(str(raw_started))
        except ValueError as exc:
            raise ModelValidationError(
                "ExecutionState", "started_at", raw_started, "must be an ISO 8601 timestamp"
            ) from exc
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=UTC)

        try:
            attempts = int(data.get("attempts", 0))
        except (TypeError, ValueError) as exc:
            raise ModelValidationError(
                "ExecutionState", "attempts", data.get("attempts"), "must be an integer"
            ) from exc

        return cls(
            attempts=attempts,
            started_at=started_at,
            done=bool(data.get("done", False)),
        )


@dataclass(frozen=True, slots=True)
class CycleResult:
    """Outcome of one invocation cycle.

    Attributes:
        state: ``POLLING``, ``COMPLETED`` or ``FAILED``.
        execution_state: State to persist for the next cycle (poll mode).
        outputs: ``responseStatus`` / ``responseHeaders`` / ``responseBody``
            when a response was read on a terminal cycle.
        interval_seconds: Delay before the next cycle (``POLLING`` only).
        progress_message: Human-readable progress (``POLLING`` only).
        progress_code: Short progress code (``POLLING`` only).
        error: The engine error behind a ``FAILED`` state.
    """

    state: TaskState
    execution_state: ExecutionState | None = None
    outputs: dict[str, Any] | None = None
    interval_seconds: int | None = None
    progress_message: str = ""
    progress_code: str = ""
    error: RestTaskError | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def error_message(self) -> str:
        return self.error.message if self.error is not None else ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict for the orchestrator."""
        return {
            "state": self.state.value,
            "is_terminal": self.is_terminal,
            "execution_state": (
                self.execution_state.to_dict() if self.execution_state is not None else None
            ),
            "outputs": self.outputs,
            "interval_seconds": self.interval_seconds,
            "progress_message": self.progress_message,
            "progress_code": self.progress_code,
            "error": self.error.to_error_dict() if self.error is not None else None,
        }
