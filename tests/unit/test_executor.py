"""Tests for the HTTP request executor.

All traffic goes through ``httpx.MockTransport`` so no network is used.
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Iterator
from unittest.mock import patch

import httpx
import pytest

from rest_task.core.config import EngineConfig
from rest_task.core.exceptions import SizeLimitError, TransportError, TransportFailure
from rest_task.http.executor import (
    basic_auth_value,
    build_headers,
    execute,
    normalise_lines,
    parse_method,
    resolve_url,
)
from rest_task.models.request import Endpoint, HttpMethod, RequestSpec

MIB = 1024 * 1024

TransportFactory = Callable[..., httpx.MockTransport]


# ---------------------------------------------------------------------------
# Request body transmission
# ---------------------------------------------------------------------------


class TestBodyTransmission:
    """The body is only ever sent for POST and PUT."""

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS", "DELETE", "TRACE"])
    def test_body_never_sent(
        self,
        method: str,
        endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        spec = RequestSpec(path="items", method=method, body=b"should-not-leave")
        execute(endpoint, spec, transport=recording_transport())

        (sent,) = captured_requests
        assert sent.method == method
        assert sent.content == b""
        assert "Content-Length" not in sent.headers or sent.headers["Content-Length"] == "0"

    @pytest.mark.parametrize("method", ["POST", "PUT"])
    def test_body_sent_byte_exact(
        self,
        method: str,
        endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        body = "{\"name\": \"café\"}\r\n\x00tail".encode()
        execute(endpoint, RequestSpec(method=method, body=body), transport=recording_transport())

        (sent,) = captured_requests
        assert sent.content == body


# ---------------------------------------------------------------------------
# Headers and authentication
# ---------------------------------------------------------------------------


class TestHeaders:
    def test_basic_auth_added_from_credentials(
        self,
        auth_endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        execute(auth_endpoint, RequestSpec(), transport=recording_transport())

        (sent,) = captured_requests
        expected = base64.b64encode(b"alice:s3cret").decode()
        assert sent.headers["Authorization"] == f"Basic {expected}"

    def test_explicit_authorization_wins(
        self,
        auth_endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        spec = RequestSpec(headers={"Authorization": "Bearer abc"})
        execute(auth_endpoint, spec, transport=recording_transport())

        (sent,) = captured_requests
        assert sent.headers.get_list("Authorization") == ["Bearer abc"]

    def test_no_auth_without_credentials(
        self,
        endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        execute(endpoint, RequestSpec(), transport=recording_transport())
        assert "Authorization" not in captured_requests[0].headers

    def test_caller_headers_and_user_agent(
        self,
        endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        spec = RequestSpec(headers={"X-Trace": "t-1"})
        config = EngineConfig(user_agent="probe/9")
        execute(endpoint, spec, config=config, transport=recording_transport())

        sent = captured_requests[0]
        assert sent.headers["X-Trace"] == "t-1"
        assert sent.headers["User-Agent"] == "probe/9"

    def test_build_headers_preserves_order(self, auth_endpoint: Endpoint) -> None:
        headers = build_headers(auth_endpoint, {"B": "2", "A": "1"})
        assert [name for name, _ in headers] == ["B", "A", "Authorization"]

    @pytest.mark.parametrize(
        "headers",
        [{"X-Name": "Zoë ✓"}, {"X-Ñame": "plain"}],
        ids=["value", "name"],
    )
    def test_non_ascii_header_is_malformed(
        self,
        headers: dict[str, str],
        endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        spec = RequestSpec(headers=headers)
        with pytest.raises(TransportError, match="Header must be ASCII. ") as exc_info:
            execute(endpoint, spec, transport=recording_transport())

        assert exc_info.value.reason is TransportFailure.MALFORMED
        assert exc_info.value.category == "validation"
        assert captured_requests == []

    def test_basic_auth_value_utf8(self) -> None:
        token = base64.b64encode("josé:päss".encode()).decode()
        assert basic_auth_value("josé", "päss") == f"Basic {token}"


# ---------------------------------------------------------------------------
# URL resolution and method parsing
# ---------------------------------------------------------------------------


class TestResolveUrl:
    def test_relative_path_joined(self) -> None:
        url = resolve_url("https://api.example.com/v1/", "jobs/42")
        assert str(url) == "https://api.example.com/v1/jobs/42"

    def test_absolute_path_replaces_base_path(self) -> None:
        url = resolve_url("https://api.example.com/v1/", "/health")
        assert str(url) == "https://api.example.com/health"

    def test_empty_path_uses_base(self) -> None:
        url = resolve_url("https://api.example.com/root", "")
        assert str(url) == "https://api.example.com/root"

    @pytest.mark.parametrize("base", ["not a url", "ftp://files.example.com/", "https://"])
    def test_malformed(self, base: str) -> None:
        with pytest.raises(TransportError) as exc_info:
            resolve_url(base, "x")
        assert exc_info.value.reason is TransportFailure.MALFORMED
        assert exc_info.value.category == "validation"
        assert exc_info.value.message.startswith("URL is malformed. ")

    def test_malformed_url_makes_no_request(
        self,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        with pytest.raises(TransportError):
            execute(Endpoint(url="nowhere"), RequestSpec(), transport=recording_transport())
        assert captured_requests == []


class TestParseMethod:
    def test_known_methods(self) -> None:
        for method in HttpMethod:
            assert parse_method(method.value) is method

    @pytest.mark.parametrize("raw", ["PATCH", "get", ""])
    def test_unsupported(self, raw: str) -> None:
        with pytest.raises(TransportError, match="Method is not supported.") as exc_info:
            parse_method(raw)
        assert exc_info.value.reason is TransportFailure.UNSUPPORTED_METHOD

    def test_unsupported_method_makes_no_request(
        self,
        endpoint: Endpoint,
        recording_transport: TransportFactory,
        captured_requests: list[httpx.Request],
    ) -> None:
        with pytest.raises(TransportError):
            execute(endpoint, RequestSpec(method="PATCH"), transport=recording_transport())
        assert captured_requests == []


# ---------------------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------------------


class TestTransportFailures:
    def test_connect_error_is_io(self, endpoint: Endpoint) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            execute(endpoint, RequestSpec(), transport=httpx.MockTransport(handler))

        err = exc_info.value
        assert err.reason is TransportFailure.IO
        assert err.category == "transport"
        assert err.message == "Unable to read from/write to connection: connection refused"
        assert isinstance(err.__cause__, httpx.ConnectError)

    def test_read_timeout_is_io(self, endpoint: Endpoint) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError) as exc_info:
            execute(endpoint, RequestSpec(), transport=httpx.MockTransport(handler))
        assert exc_info.value.reason is TransportFailure.IO


# ---------------------------------------------------------------------------
# Response reading
# ---------------------------------------------------------------------------


class TestResponseReading:
    def test_status_headers_and_body(
        self, endpoint: Endpoint, recording_transport: TransportFactory
    ) -> None:
        transport = recording_transport(
            201,
            content=b"created\r\nid=7",
            headers=[("X-Request-Id", "abc"), ("Content-Type", "text/plain")],
        )
        record = execute(endpoint, RequestSpec(method="POST"), transport=transport)

        assert record.status_code == 201
        assert record.headers["Status-Line"] == "HTTP/1.1 201 Created"
        assert next(iter(record.headers)) == "Status-Line"
        assert record.headers["X-Request-Id"] == "abc"
        assert record.headers["Content-Type"] == "text/plain"
        assert record.body == "created\nid=7\n"

    def test_repeated_headers_concatenated(
        self, endpoint: Endpoint, recording_transport: TransportFactory
    ) -> None:
        transport = recording_transport(headers=[("X-Multi", "a"), ("X-Multi", "b")])
        record = execute(endpoint, RequestSpec(), transport=transport)
        assert record.headers["X-Multi"] == "ab"

    def test_error_status_body_is_read(
        self, endpoint: Endpoint, recording_transport: TransportFactory
    ) -> None:
        transport = recording_transport(503, content=b"busy")
        record = execute(endpoint, RequestSpec(), transport=transport)
        assert record.status_code == 503
        assert record.body == "busy\n"

    def test_empty_body(self, endpoint: Endpoint, recording_transport: TransportFactory) -> None:
        record = execute(endpoint, RequestSpec(), transport=recording_transport(204))
        assert record.body == ""

    def test_declared_five_mib_body_not_buffered(self, endpoint: Endpoint) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Length": str(5 * MIB)},
                content=b"x" * 16,
            )

        record = execute(endpoint, RequestSpec(), transport=httpx.MockTransport(handler))

        assert record.status_code == 200
        assert record.headers["Content-Length"] == str(5 * MIB)
        with pytest.raises(SizeLimitError, match="actual size: 5.00MB"):
            _ = record.body

    def test_chunked_body_over_cap_stops_reading(self, endpoint: Endpoint) -> None:
        def chunks() -> Iterator[bytes]:
            for _ in range(5):
                yield b"y" * MIB

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=chunks())

        record = execute(endpoint, RequestSpec(), transport=httpx.MockTransport(handler))

        assert record.status_code == 200
        assert not record.body_available
        with pytest.raises(SizeLimitError):
            _ = record.body

    def test_normalise_lines(self) -> None:
        assert normalise_lines("a\r\nb\rc") == "a\nb\nc\n"
        assert normalise_lines("done\n") == "done\n"
        assert normalise_lines("") == ""


# ---------------------------------------------------------------------------
# TLS verification gate
# ---------------------------------------------------------------------------


class TestTlsVerification:
    def _client_kwargs(self, endpoint: Endpoint, config: EngineConfig) -> dict[str, object]:
        transport = httpx.MockTransport(lambda request: httpx.Response(200))
        with patch("rest_task.http.executor.httpx.Client", wraps=httpx.Client) as client_cls:
            execute(endpoint, RequestSpec(), config=config, transport=transport)
        return client_cls.call_args.kwargs

    def test_verification_on_by_default(self, endpoint: Endpoint) -> None:
        kwargs = self._client_kwargs(endpoint, EngineConfig())
        assert kwargs["verify"] is True

    def test_endpoint_flag_alone_does_not_disable(self) -> None:
        endpoint = Endpoint(url="https://self-signed.example.com", insecure_tls=True)
        kwargs = self._client_kwargs(endpoint, EngineConfig(allow_insecure_tls=False))
        assert kwargs["verify"] is True

    def test_both_flags_disable_verification(self) -> None:
        endpoint = Endpoint(url="https://self-signed.example.com", insecure_tls=True)
        kwargs = self._client_kwargs(endpoint, EngineConfig(allow_insecure_tls=True))
        assert kwargs["verify"] is False

    def test_timeout_and_redirects_from_config(self, endpoint: Endpoint) -> None:
        config = EngineConfig(http_timeout_seconds=7.5, follow_redirects=False)
        kwargs = self._client_kwargs(endpoint, config)
        assert kwargs["timeout"] == 7.5
        assert kwargs["follow_redirects"] is False
