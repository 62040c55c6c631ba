"""Pydantic schema for the REST task configuration delivered by the host.

Mirrors the property layout a task is configured with (camelCase keys
such as ``expectedStatuses``), fills in defaults, and converts into the
engine's frozen models.  Snake-case names are accepted as well so the
orchestrator can round-trip ``model_dump()`` output.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rest_task.models.request import Endpoint, HttpMethod, PollPolicy, RequestSpec


class EndpointInput(BaseModel):
    """``endpoint`` section of the task configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str = ""
    username: str = ""
    password: str = ""
    insecure_tls: bool = Field(default=False, alias="insecureTls")

    def to_endpoint(self) -> Endpoint:
        return Endpoint(
            url=self.url,
            username=self.username,
            password=self.password,
            insecure_tls=self.insecure_tls,
        )


class HeaderInput(BaseModel):
    """One ``{name, value}`` header row."""

    name: str
    value: str = ""


class RestTaskInput(BaseModel):
    """Full configuration of one REST task.

    Attributes:
        endpoint: Target endpoint and credentials.
        path: Request path resolved against ``endpoint.url``.
        method: Method name; validated by the executor, not here.
        headers: Ordered header rows; names must be unique.
        body: Request body text (sent as UTF-8 for POST/PUT only).
        expected_statuses: Loose status list such as ``"200, 201"``.
        expected_response: Regular expression searched in the body.
        poll: Enable poll mode.
        interval: Seconds between poll cycles.
        timeout: Total poll budget in seconds.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    endpoint: EndpointInput = Field(default_factory=EndpointInput)
    path: str = ""
    method: str = HttpMethod.GET.value
    headers: list[HeaderInput] = Field(default_factory=list)
    body: str = ""
    expected_statuses: str = Field(default="", alias="expectedStatuses")
    expected_response: str = Field(default="", alias="expectedResponse")
    poll: bool = False
    interval: int = Field(default=0, ge=0)
    timeout: int = Field(default=0, ge=0)

    @field_validator("headers")
    @classmethod
    def _unique_header_names(cls, headers: list[HeaderInput]) -> list[HeaderInput]:
        seen: set[str] = set()
        for header in headers:
            if header.name in seen:
                msg = f"duplicate header name {header.name!r}"
                raise ValueError(msg)
            seen.add(header.name)
        return headers

    def to_endpoint(self) -> Endpoint:
        return self.endpoint.to_endpoint()

    def to_request_spec(self) -> RequestSpec:
        return RequestSpec(
            path=self.path,
            method=self.method,
            headers={h.name: h.value for h in self.headers},
            body=self.body.encode("utf-8"),
        )

    def to_poll_policy(self) -> PollPolicy:
        return PollPolicy(
            enabled=self.poll,
            interval_seconds=self.interval,
            timeout_seconds=self.timeout,
            expected_statuses=self.expected_statuses,
            expected_pattern=self.expected_response,
        )
