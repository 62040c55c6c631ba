"""Validate endpoint activity — sanity-check an endpoint before it is saved.

Static checks run first (URL present, not a loopback host, credentials
either both set or both empty).  A GET to the endpoint URL then proves
the endpoint is reachable; a ``401`` while basic auth is in use means the
credentials were rejected.  Any other status is accepted.
"""

from __future__ import annotations

import logging

from rest_task.activities.execute_task import Executor
from rest_task.core.constants import (
    ENDPOINT_AUTH_MALFORMED_ERROR,
    ENDPOINT_LOCALHOST_ERROR,
    ENDPOINT_NO_URL_ERROR,
    ENDPOINT_UNAUTHORIZED_ERROR,
    LOOPBACK_MARKERS,
)
from rest_task.core.exceptions import ValidationError
from rest_task.http.executor import execute
from rest_task.models.request import Endpoint, HttpMethod, RequestSpec

logger = logging.getLogger("rest_task.activities.validate_endpoint")

_UNAUTHORIZED = 401


class EndpointValidationError(ValidationError):
    """The endpoint configuration was rejected."""

    default_stage = "validate_endpoint"
    default_code = "INVALID_ENDPOINT"


def validate_endpoint(endpoint: Endpoint, *, executor: Executor = execute) -> None:
    """Check *endpoint* statically, then probe it with a GET.

    Raises:
        EndpointValidationError: If a static check fails or the
            credentials are rejected.
        TransportError: If the probe request cannot be completed.
    """
    check_endpoint_config(endpoint)

    response = executor(endpoint, RequestSpec(method=HttpMethod.GET.value))
    if response.status_code == _UNAUTHORIZED and endpoint.has_credentials:
        logger.warning("Endpoint rejected credentials | status=%d", response.status_code)
        raise EndpointValidationError(ENDPOINT_UNAUTHORIZED_ERROR, code="UNAUTHORIZED")

    logger.info("Endpoint validated | status=%d", response.status_code)


def check_endpoint_config(endpoint: Endpoint) -> None:
    """Run the static endpoint checks without any network I/O.

    Raises:
        EndpointValidationError: On the first failing check.
    """
    if not endpoint.url:
        raise EndpointValidationError(ENDPOINT_NO_URL_ERROR, code="MISSING_URL")

    if any(marker in endpoint.url for marker in LOOPBACK_MARKERS):
        raise EndpointValidationError(ENDPOINT_LOCALHOST_ERROR, code="LOOPBACK_URL")

    if bool(endpoint.username) != bool(endpoint.password):
        raise EndpointValidationError(ENDPOINT_AUTH_MALFORMED_ERROR, code="INCOMPLETE_CREDENTIALS")
