"""Azure Functions entry point — REST Task Engine.

This module registers all Azure Functions (HTTP triggers, orchestrator,
activity) using the Python v2 programming model.

All business logic lives in the rest_task package. This file is purely
the wiring layer between Azure Functions bindings and application code.
"""

from __future__ import annotations

import json
import logging
from functools import partial

import azure.durable_functions as df
import azure.functions as func

from rest_task.core.config import ConfigValidationError, EngineConfig
from rest_task.core.exceptions import RestTaskError
from rest_task.core.ingress import (
    deserialize_activity_input,
    parse_endpoint_input,
    parse_task_input,
)
from rest_task.models.payloads import (
    PreviewRequestInput,
    ValidateEndpointInput,
    validate_payload,
)

app = func.FunctionApp()

logger = logging.getLogger("rest_task.function_app")

_JSON = "application/json"


def _json_response(body: object, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(json.dumps(body, default=str), status_code=status_code, mimetype=_JSON)


def _error_status(exc: RestTaskError) -> int:
    """Map an engine error to an HTTP status code."""
    if isinstance(exc, ConfigValidationError):
        return 500
    if exc.category in ("validation", "contract"):
        return 400
    return 502


def _error_response(exc: RestTaskError) -> func.HttpResponse:
    return _json_response({"error": exc.to_error_dict()}, status_code=_error_status(exc))


def _request_payload(req: func.HttpRequest) -> dict[str, object]:
    """Return the JSON object body of *req* (``ContractError`` otherwise)."""
    return deserialize_activity_input(req.get_body().decode("utf-8", errors="replace") or "{}")


# ---------------------------------------------------------------------------
# HTTP: Start a REST task orchestration
# ---------------------------------------------------------------------------


@app.function_name("rest_task_start")
@app.route(route="rest-task", methods=["POST"])
@app.durable_client_input(client_name="client")
async def rest_task_start(
    req: func.HttpRequest,
    client: df.DurableOrchestrationClient,
) -> func.HttpResponse:
    """Validate the task configuration and start the orchestrator.

    Returns the standard Durable Functions check-status response, or
    ``400`` with an error dict when the configuration is rejected.
    """
    try:
        task_input = parse_task_input(_request_payload(req))
    except RestTaskError as exc:
        logger.warning("Rejected task configuration | error=%s", exc.message)
        return _error_response(exc)

    try:
        instance_id = await client.start_new(
            "rest_task_orchestrator",
            client_input=task_input.model_dump(by_alias=True),
        )
    except Exception:
        logger.exception("Failed to start orchestrator | method=%s", task_input.method)
        raise

    logger.info(
        "Orchestrator started | instance_id=%s | method=%s | poll=%s",
        instance_id,
        task_input.method,
        task_input.poll,
    )
    return client.create_check_status_response(req, instance_id)


# ---------------------------------------------------------------------------
# HTTP: Orchestration status
# ---------------------------------------------------------------------------


@app.function_name("rest_task_status")
@app.route(route="rest-task/{instance_id}", methods=["GET"])
@app.durable_client_input(client_name="client")
async def rest_task_status(
    req: func.HttpRequest,
    client: df.DurableOrchestrationClient,
) -> func.HttpResponse:
    """Return runtime status, progress and (when finished) the task result."""
    instance_id = req.route_params.get("instance_id", "")
    if not instance_id:
        return func.HttpResponse("Missing instance_id", status_code=400)

    status = await client.get_status(instance_id)
    if not status or not status.instance_id:
        return func.HttpResponse("Instance not found", status_code=404)

    return _json_response(status.to_json())


# ---------------------------------------------------------------------------
# HTTP: Endpoint validation and request preview
# ---------------------------------------------------------------------------


@app.function_name("endpoint_validate")
@app.route(route="endpoint/validate", methods=["POST"])
def endpoint_validate(req: func.HttpRequest) -> func.HttpResponse:
    """Validate an endpoint configuration and probe it with a GET."""
    from rest_task.activities.validate_endpoint import validate_endpoint
    from rest_task.http.executor import execute

    try:
        payload = _request_payload(req)
        validate_payload(payload, ValidateEndpointInput, activity="validate_endpoint")
        endpoint = parse_endpoint_input(payload.get("endpoint"))
        validate_endpoint(endpoint, executor=partial(execute, config=EngineConfig.from_env()))
    except RestTaskError as exc:
        logger.warning("Endpoint validation failed | code=%s | error=%s", exc.code, exc.message)
        return _error_response(exc)

    return _json_response({"valid": True})


@app.function_name("rest_task_preview")
@app.route(route="rest-task/preview", methods=["POST"])
def rest_task_preview(req: func.HttpRequest) -> func.HttpResponse:
    """Perform the configured request once and return the preview text."""
    from rest_task.activities.preview_request import preview_request
    from rest_task.http.executor import execute

    try:
        payload = _request_payload(req)
        validate_payload(payload, PreviewRequestInput, activity="preview_request")
        task_input = parse_task_input(payload)
        preview = preview_request(
            task_input.to_endpoint(),
            task_input.to_request_spec(),
            executor=partial(execute, config=EngineConfig.from_env()),
        )
    except RestTaskError as exc:
        logger.warning("Preview failed | code=%s | error=%s", exc.code, exc.message)
        return _error_response(exc)

    return _json_response({"responsePreview": preview})


# ---------------------------------------------------------------------------
# Orchestrator: REST task
# ---------------------------------------------------------------------------


@app.function_name("rest_task_orchestrator")
@app.orchestration_trigger(context_name="context")
def rest_task_orchestrator(context: df.DurableOrchestrationContext) -> object:
    """Durable Functions orchestrator for one REST task.

    See ``rest_task.orchestrators.rest_task_pipeline`` for implementation.
    """
    from rest_task.orchestrators.rest_task_pipeline import orchestrator_function

    return orchestrator_function(context)


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


@app.function_name("rest_task_cycle")
@app.activity_trigger(input_name="activityInput")
def rest_task_cycle_activity(activityInput: str) -> dict[str, object]:  # noqa: N803
    """Durable Functions activity: run one cycle of a REST task.

    Input:
        JSON string (or dict when replaying) containing:
        - ``task``: The task configuration.
        - ``execution_state``: State from the previous cycle (or ``None``).
        - ``now``: Orchestration time (ISO 8601).

    Returns:
        The serialised ``CycleResult``.

    Raises:
        ContractError: If the payload does not fit the task schema.
    """
    from rest_task.activities.execute_task import execute_task

    payload = deserialize_activity_input(activityInput)

    logger.info(
        "rest_task_cycle activity started | now=%s | first_cycle=%s",
        payload.get("now", ""),
        not payload.get("execution_state"),
    )

    result = execute_task(payload)

    logger.info(
        "rest_task_cycle activity completed | state=%s",
        result.get("state", ""),
    )

    return result
