"""Tests for the pydantic task configuration schema."""

from __future__ import annotations

import pydantic
import pytest

from rest_task.models.request import HttpMethod
from rest_task.models.task_input import RestTaskInput


class TestRestTaskInputDefaults:
    def test_empty_config_uses_defaults(self) -> None:
        task = RestTaskInput.model_validate({})
        assert task.method == HttpMethod.GET.value
        assert task.path == ""
        assert task.headers == []
        assert task.poll is False
        assert task.interval == 0
        assert task.timeout == 0
        assert task.endpoint.url == ""


class TestRestTaskInputAliases:
    def test_camel_case_keys(self) -> None:
        task = RestTaskInput.model_validate(
            {
                "endpoint": {"url": "https://api.example.com", "insecureTls": True},
                "expectedStatuses": "200, 201",
                "expectedResponse": "DONE",
            }
        )
        assert task.endpoint.insecure_tls is True
        assert task.expected_statuses == "200, 201"
        assert task.expected_response == "DONE"

    def test_snake_case_keys(self) -> None:
        task = RestTaskInput.model_validate(
            {"expected_statuses": "204", "endpoint": {"url": "https://x", "insecure_tls": True}}
        )
        assert task.expected_statuses == "204"
        assert task.endpoint.insecure_tls is True

    def test_dump_by_alias_round_trips(self) -> None:
        original = RestTaskInput.model_validate(
            {
                "endpoint": {"url": "https://x", "username": "u", "password": "p"},
                "headers": [{"name": "Accept", "value": "application/json"}],
                "expectedResponse": "ok",
                "poll": True,
                "interval": 3,
                "timeout": 9,
            }
        )
        assert RestTaskInput.model_validate(original.model_dump(by_alias=True)) == original


class TestRestTaskInputValidation:
    def test_duplicate_header_names_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="duplicate header name"):
            RestTaskInput.model_validate(
                {"headers": [{"name": "X-A", "value": "1"}, {"name": "X-A", "value": "2"}]}
            )

    def test_header_names_are_case_sensitive(self) -> None:
        task = RestTaskInput.model_validate(
            {"headers": [{"name": "X-A", "value": "1"}, {"name": "x-a", "value": "2"}]}
        )
        assert task.to_request_spec().headers == {"X-A": "1", "x-a": "2"}

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            RestTaskInput.model_validate({"interval": -1})


class TestRestTaskInputConversion:
    def test_to_models(self) -> None:
        task = RestTaskInput.model_validate(
            {
                "endpoint": {"url": "https://api.example.com/", "username": "u", "password": "p"},
                "path": "jobs",
                "method": "POST",
                "headers": [
                    {"name": "Content-Type", "value": "application/json"},
                    {"name": "Accept", "value": "*/*"},
                ],
                "body": '{"name": "café"}',
                "expectedStatuses": "201",
                "expectedResponse": "id",
                "poll": True,
                "interval": 2,
                "timeout": 6,
            }
        )

        endpoint = task.to_endpoint()
        assert endpoint.url == "https://api.example.com/"
        assert endpoint.has_credentials

        spec = task.to_request_spec()
        assert spec.method == "POST"
        assert list(spec.headers) == ["Content-Type", "Accept"]
        assert spec.body == '{"name": "café"}'.encode()

        policy = task.to_poll_policy()
        assert policy.enabled is True
        assert policy.interval_seconds == 2
        assert policy.timeout_seconds == 6
        assert policy.expected_statuses == "201"
        assert policy.expected_pattern == "id"

    def test_method_not_validated_by_schema(self) -> None:
        task = RestTaskInput.model_validate({"method": "PATCH"})
        assert task.to_request_spec().method == "PATCH"
