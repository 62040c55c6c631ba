"""Shared pytest fixtures for the REST task test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from rest_task.models.request import Endpoint, PollPolicy, RequestSpec
from rest_task.models.response import ResponseRecord

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

T0 = datetime(2026, 2, 17, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def t0() -> datetime:
    """Fixed UTC start time for elapsed-time accounting."""
    return T0


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def endpoint() -> Endpoint:
    """Endpoint without credentials."""
    return Endpoint(url="https://api.example.com/")


@pytest.fixture()
def auth_endpoint() -> Endpoint:
    """Endpoint with basic-auth credentials."""
    return Endpoint(url="https://api.example.com/", username="alice", password="s3cret")


@pytest.fixture()
def get_request() -> RequestSpec:
    """Plain GET to ``/status``."""
    return RequestSpec(path="status", method="GET")


@pytest.fixture()
def poll_policy() -> PollPolicy:
    """Poll mode: every 2 s for up to 6 s until ``READY`` appears."""
    return PollPolicy(
        enabled=True,
        interval_seconds=2,
        timeout_seconds=6,
        expected_statuses="200",
        expected_pattern="READY",
    )


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_record() -> Callable[..., ResponseRecord]:
    """Factory for ``ResponseRecord`` objects."""

    def _make(
        status_code: int = 200,
        body: str = "",
        headers: dict[str, str] | None = None,
        declared_length: int | None = None,
    ) -> ResponseRecord:
        return ResponseRecord(
            status_code=status_code,
            headers=headers if headers is not None else {"Status-Line": f"HTTP/1.1 {status_code}"},
            declared_length=len(body.encode()) if declared_length is None else declared_length,
            _body=body,
        )

    return _make


@pytest.fixture()
def captured_requests() -> list[httpx.Request]:
    """List that ``recording_transport`` appends every request to."""
    return []


@pytest.fixture()
def recording_transport(
    captured_requests: list[httpx.Request],
) -> Callable[..., httpx.MockTransport]:
    """Factory for a ``MockTransport`` that records requests and returns a canned response."""

    def _make(
        status_code: int = 200,
        content: bytes = b"",
        headers: list[tuple[str, str]] | None = None,
    ) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            captured_requests.append(request)
            return httpx.Response(status_code, headers=headers, content=content)

        return httpx.MockTransport(handler)

    return _make
