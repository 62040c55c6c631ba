"""Preview request activity — run a request once and render it as text."""

from __future__ import annotations

import logging

from rest_task.activities.execute_task import Executor
from rest_task.http.executor import execute
from rest_task.models.request import Endpoint, RequestSpec
from rest_task.models.response import ResponseRecord

logger = logging.getLogger("rest_task.activities.preview_request")


def preview_request(
    endpoint: Endpoint,
    request_spec: RequestSpec,
    *,
    executor: Executor = execute,
) -> str:
    """Perform *request_spec* against *endpoint* and format the response.

    No success criteria are applied: whatever comes back is shown.

    Raises:
        TransportError: If the request cannot be completed.
        SizeLimitError: If the response body is too large to show.
    """
    response = executor(endpoint, request_spec)
    logger.info("Preview response received | status=%d", response.status_code)
    return format_preview(response)


def format_preview(response: ResponseRecord) -> str:
    """Render status, headers and body in the preview layout."""
    lines = [f"Response status: {response.status_code}", "", "Response headers:"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    lines.extend(["", "Response body:"])
    return "\n".join(lines) + "\n" + response.body
