"""Engine configuration loaded from environment variables.

Azure Functions app settings (or ``local.settings.json`` for local dev)
are the source of truth.

``from_env()`` raises ``ConfigValidationError`` if any value is out of its
valid range, so bad configuration is caught at startup rather than on the
first outbound request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from rest_task import __version__
from rest_task.core.exceptions import ValidationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_USER_AGENT = f"rest-task/{__version__}"


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Immutable engine configuration.

    Loaded once per activity invocation and threaded through the executor.

    Attributes:
        http_timeout_seconds: Connect/read/write timeout for one request.
        follow_redirects: Whether the executor follows HTTP redirects.
        allow_insecure_tls: Process-level gate that must be on for an
            endpoint's ``insecure_tls`` flag to disable verification.
        user_agent: ``User-Agent`` sent when the caller supplies none.
    """

    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    follow_redirects: bool = True
    allow_insecure_tls: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range, a boolean is
                unrecognised, or a required string is empty.
        """
        raw_timeout = os.getenv("HTTP_TIMEOUT_SECONDS", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigValidationError(
                "HTTP_TIMEOUT_SECONDS", raw_timeout, "must be a number (seconds)"
            ) from exc

        config = cls(
            http_timeout_seconds=timeout,
            follow_redirects=_env_bool("HTTP_FOLLOW_REDIRECTS", default=True),
            allow_insecure_tls=_env_bool("ALLOW_INSECURE_TLS", default=False),
            user_agent=os.getenv("HTTP_USER_AGENT", DEFAULT_USER_AGENT),
        )
        _validate(config)
        return config


def _env_bool(key: str, *, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean (true/false)")


def _validate(config: EngineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.http_timeout_seconds <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_SECONDS",
            config.http_timeout_seconds,
            "must be > 0 (seconds)",
        )

    if not config.user_agent.strip():
        raise ConfigValidationError(
            "HTTP_USER_AGENT",
            config.user_agent,
            "must not be empty",
        )
