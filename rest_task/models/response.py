"""Bounded HTTP response record produced by the executor."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rest_task.core.constants import BYTES_PER_MB, MAX_RESPONSE_BYTES, RESPONSE_TOO_LARGE_FMT
from rest_task.core.exceptions import SizeLimitError

logger = logging.getLogger("rest_task.models.response")


@dataclass(frozen=True, slots=True)
class ResponseRecord:
    """Immutable result of one HTTP exchange.

    When ``declared_length`` exceeds ``MAX_RESPONSE_BYTES`` the body was
    never buffered: ``status_code`` and ``headers`` stay usable but reading
    ``body`` raises ``SizeLimitError``.

    Attributes:
        status_code: Numeric HTTP status.
        headers: Response headers, multi-valued entries concatenated;
            ``Status-Line`` holds the status line.
        declared_length: ``Content-Length`` of the response (or the bytes
            observed when a streamed body overran the cap).
    """

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    declared_length: int = 0
    _body: str = field(default="", repr=False)

    @property
    def body_available(self) -> bool:
        """Return whether the body was buffered and can be read."""
        return self.declared_length <= MAX_RESPONSE_BYTES

    @property
    def body(self) -> str:
        """Return the decoded response body.

        Raises:
            SizeLimitError: If the body exceeded the buffering cap.
        """
        if not self.body_available:
            size_mb = self.declared_length / BYTES_PER_MB
            error = RESPONSE_TOO_LARGE_FMT % size_mb
            logger.error(error)
            raise SizeLimitError(error, size_bytes=self.declared_length, size_mb=size_mb)
        return self._body
