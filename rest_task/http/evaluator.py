"""Response evaluation against the caller's success criteria.

Both criteria are "don't care" when left empty:

- **Statuses** — loose text such as ``"200, 201"``; a status matches when
  its decimal digits appear anywhere in that text.
- **Pattern** — a regular expression *searched* anywhere in the body
  (not a full-string match).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from rest_task.core.exceptions import ValidationError

if TYPE_CHECKING:
    from rest_task.models.response import ResponseRecord


class ExpectedResponseError(ValidationError):
    """The expected-response pattern is not a valid regular expression."""

    default_stage = "evaluate"
    default_code = "INVALID_EXPECTED_RESPONSE"


def status_matches(status_code: int, expected_statuses: str) -> bool:
    """Return whether *status_code* is accepted by *expected_statuses*."""
    if not expected_statuses:
        return True
    return str(status_code) in expected_statuses


def pattern_matches(body: str, expected_pattern: str) -> bool:
    """Return whether *expected_pattern* is found anywhere in *body*.

    Raises:
        ExpectedResponseError: If the pattern does not compile.
    """
    if not expected_pattern:
        return True
    try:
        compiled = re.compile(expected_pattern)
    except re.error as exc:
        msg = f"Expected response is not a valid regular expression: {exc}"
        raise ExpectedResponseError(msg) from exc
    return compiled.search(body) is not None


def evaluate(response: ResponseRecord, expected_statuses: str, expected_pattern: str) -> bool:
    """Return whether *response* satisfies both success criteria.

    The body is only read when a pattern is given, so an oversized body
    raises ``SizeLimitError`` here only in that case.

    Raises:
        SizeLimitError: If the pattern check needs a body that was not buffered.
        ExpectedResponseError: If the pattern does not compile.
    """
    if not status_matches(response.status_code, expected_statuses):
        return False
    if not expected_pattern:
        return True
    return pattern_matches(response.body, expected_pattern)
