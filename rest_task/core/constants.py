"""Shared engine constants — single source of truth.

Centralises size limits, header names and the fixed failure/progress
message formats used by the executor, the evaluator and the poll state
machine.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Response buffering
# ---------------------------------------------------------------------------

BYTES_PER_MB: int = 1024 * 1024
"""One mebibyte, used to report body sizes in MB."""

MAX_RESPONSE_BYTES: int = 4 * BYTES_PER_MB
"""Bodies declaring more than this are never buffered."""

READ_CHUNK_BYTES: int = 64 * 1024

# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

AUTHORIZATION_HEADER: str = "Authorization"
STATUS_LINE_HEADER: str = "Status-Line"
"""Synthetic response header holding the status line / unnamed entries."""

# ---------------------------------------------------------------------------
# Failure message formats
# ---------------------------------------------------------------------------

MALFORMED_URL_ERROR: str = "URL is malformed. "
MALFORMED_HEADER_ERROR: str = "Header must be ASCII. "
UNSUPPORTED_METHOD_ERROR: str = "Method is not supported."
IO_ERROR: str = "Unable to read from/write to connection: "
RESPONSE_TOO_LARGE_FMT: str = (
    "Unable to read response body as it exceeds 4MB, actual size: %.2fMB"
)

POLL_PARAMETERS_FAIL: str = (
    "Asynchronous request failed because interval, timeout and expected "
    "response must be specified"
)
POLL_TIMEOUT_FAIL_FMT: str = "Asynchronous request timed out after %d sec"
POLL_PROGRESS_FMT: str = "Asynchronous request has been polling for %d sec"
POLL_PROGRESS_CODE: str = "Polling"
UNEXPECTED_RESPONSE_FAIL: str = "Request failed with unexpected response"

# ---------------------------------------------------------------------------
# Endpoint validation messages
# ---------------------------------------------------------------------------

ENDPOINT_NO_URL_ERROR: str = "REST Endpoint must contain URL."
ENDPOINT_LOCALHOST_ERROR: str = "REST Endpoint URL cannot be localhost."
ENDPOINT_AUTH_MALFORMED_ERROR: str = "REST Endpoint username or password is empty."
ENDPOINT_UNAUTHORIZED_ERROR: str = (
    "REST Endpoint credentials are invalid. (Credentials are passed using basic auth)"
)

LOOPBACK_MARKERS: tuple[str, ...] = ("localhost", "127.0.0.1", "::1")
