"""Unified REST task exception taxonomy.

Every engine error inherits from ``RestTaskError`` and carries structured
context fields so that the poll state machine, the orchestrator and the
HTTP routes can branch on the error *class* or its ``category`` rather than
on message text.

Taxonomy categories
-------------------
- ``ValidationError``          — caller configuration rejected before any call.
- ``ContractError``            — payload/schema drift at the host boundary.
- ``TransportError``           — network or I/O failure during the call.
- ``SizeLimitError``           — response body over the buffering cap.
- ``UnexpectedResponseError``  — single-shot response failed the criteria.
- ``PollTimeoutError``         — poll budget exhausted without a match.

Nothing in the engine retries: ``retryable`` is ``False`` for every class.
The only "retry" is the caller re-invoking the next poll cycle.

Every exception exposes ``to_error_dict()`` for a stable structured error
payload suitable for orchestrator history and logging.
"""

from __future__ import annotations

import enum


class RestTaskError(Exception):
    """Base exception for all REST task errors.

    Attributes:
        message: Human-readable error description.
        stage: Engine stage where the error occurred
            (e.g. ``"execute"``, ``"evaluate"``, ``"poll"``).
        code: Machine-readable error code (e.g. ``"POLL_TIMEOUT"``).
        retryable: Whether the host should retry the operation.
        correlation_id: Request/orchestration correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""
    #: Category reported by ``category`` for this class.
    default_category: str = "internal"

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category of the concrete class."""
        return self.default_category

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys.

        Suitable for orchestrator history, logging, and HTTP error bodies.
        """
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category classes
# ---------------------------------------------------------------------------


class ValidationError(RestTaskError):
    """Caller configuration rejected before any network call."""

    default_category = "validation"
    default_code = "VALIDATION_FAILED"


class ContractError(RestTaskError):
    """Payload or schema drift at the host boundary."""

    default_category = "contract"
    default_code = "CONTRACT_VIOLATION"


class TransportFailure(enum.Enum):
    """Why a transport-level request could not produce a response.

    Values:
        MALFORMED:          The resolved target URL is not usable.
        UNSUPPORTED_METHOD: The HTTP method is not one of the supported seven.
        IO:                 DNS, connect, TLS, read or write failure.
    """

    MALFORMED = "malformed"
    UNSUPPORTED_METHOD = "unsupported_method"
    IO = "io"


class TransportError(RestTaskError):
    """The executor could not complete the HTTP exchange.

    ``MALFORMED`` and ``UNSUPPORTED_METHOD`` are detected before any network
    I/O and therefore report the ``validation`` category.

    Attributes:
        reason: The ``TransportFailure`` kind.
    """

    default_stage = "execute"
    default_category = "transport"

    def __init__(self, message: str, *, reason: TransportFailure = TransportFailure.IO) -> None:
        self.reason = reason
        super().__init__(message, code=f"TRANSPORT_{reason.name}")

    @property
    def category(self) -> str:
        if self.reason is TransportFailure.IO:
            return "transport"
        return "validation"


class SizeLimitError(RestTaskError):
    """The response body exceeded the buffering cap and was not read.

    Status and headers of the response remain usable.

    Attributes:
        size_bytes: Declared (or observed) body size in bytes.
        size_mb: The same size in mebibytes.
    """

    default_stage = "execute"
    default_code = "RESPONSE_TOO_LARGE"
    default_category = "size_limit"

    def __init__(self, message: str, *, size_bytes: int, size_mb: float) -> None:
        self.size_bytes = size_bytes
        self.size_mb = size_mb
        super().__init__(message)


class UnexpectedResponseError(RestTaskError):
    """A single-shot response did not satisfy the expected criteria."""

    default_stage = "evaluate"
    default_code = "UNEXPECTED_RESPONSE"
    default_category = "unexpected_response"


class PollTimeoutError(RestTaskError):
    """Poll mode ran out of time without a matching response.

    Attributes:
        elapsed_seconds: Whole seconds elapsed since polling started.
    """

    default_stage = "poll"
    default_code = "POLL_TIMEOUT"
    default_category = "timeout"

    def __init__(self, message: str, *, elapsed_seconds: int) -> None:
        self.elapsed_seconds = elapsed_seconds
        super().__init__(message)
