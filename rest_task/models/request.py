"""Typed models describing what the engine is asked to call.

- ``Endpoint``: Base URL and optional basic-auth credentials
- ``HttpMethod``: The seven supported request methods
- ``RequestSpec``: Path, method, headers and body of one request
- ``PollPolicy``: Poll mode switches and success criteria

Design notes:
- All models are frozen dataclasses for immutability.
- ``RequestSpec.method`` keeps the caller's raw string; the executor
  parses it so an unsupported method is reported as a transport-level
  validation failure before any network I/O.
- ``Endpoint`` does not enforce its URL/credential invariants on
  construction; ``validate_endpoint`` owns those checks.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from rest_task.core.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, ValidationError):
    """Raised when a model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        ValidationError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class HttpMethod(enum.Enum):
    """Supported HTTP request methods.

    Only ``POST`` and ``PUT`` transmit a request body.
    """

    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PUT = "PUT"
    DELETE = "DELETE"
    TRACE = "TRACE"

    @property
    def has_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Target service the task calls.

    Attributes:
        url: Base URL; request paths are resolved relative to it.
        username: Basic-auth username (empty when unused).
        password: Basic-auth password (empty when unused).
        insecure_tls: Request that certificate/hostname verification be
            skipped.  Only honoured when ``EngineConfig.allow_insecure_tls``
            is also set.
    """

    url: str
    username: str = ""
    password: str = ""
    insecure_tls: bool = False

    @property
    def has_credentials(self) -> bool:
        """Return whether both username and password are set."""
        return bool(self.username) and bool(self.password)

    def __repr__(self) -> str:
        secret = "***" if self.password else ""
        return (
            f"Endpoint(url={self.url!r}, username={self.username!r}, "
            f"password={secret!r}, insecure_tls={self.insecure_tls!r})"
        )


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """A single HTTP request relative to an ``Endpoint``.

    Attributes:
        path: Path (or absolute URL) resolved against ``Endpoint.url``.
        method: Raw method name; must be one of ``HttpMethod``.
        headers: Ordered, case-sensitive header mapping.
        body: Request body, transmitted only for POST/PUT.
    """

    path: str = ""
    method: str = HttpMethod.GET.value
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """Poll-mode switches and the success criteria for a response.

    Attributes:
        enabled: Whether the task re-executes until matched or timed out.
        interval_seconds: Seconds between cycles (poll mode).
        timeout_seconds: Total poll budget in seconds (poll mode).
        expected_statuses: Loose status list, e.g. ``"200, 201"`` (empty = any).
        expected_pattern: Regular expression searched in the body (empty = any).
    """

    enabled: bool = False
    interval_seconds: int = 0
    timeout_seconds: int = 0
    expected_statuses: str = ""
    expected_pattern: str = ""

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ModelValidationError(
                "PollPolicy", "interval_seconds", self.interval_seconds, "must be >= 0"
            )
        if self.timeout_seconds < 0:
            raise ModelValidationError(
                "PollPolicy", "timeout_seconds", self.timeout_seconds, "must be >= 0"
            )

    @property
    def has_valid_parameters(self) -> bool:
        """Return whether interval, timeout and pattern are all specified."""
        return (
            self.interval_seconds != 0
            and self.timeout_seconds != 0
            and bool(self.expected_pattern)
        )
