"""HTTP request executor — one request, one bounded ``ResponseRecord``.

The executor resolves the target URL, synthesises basic auth when the
caller did not supply an ``Authorization`` header, sends the body only for
POST/PUT, and reads the response without ever buffering a body larger than
``MAX_RESPONSE_BYTES``.

Each call opens its own ``httpx.Client`` inside a ``with`` block so the
connection is released on every exit path.  There are no retries at this
layer; the poll state machine decides what happens next.

TLS certificate and hostname verification are always on unless both the
endpoint's ``insecure_tls`` flag and the process-level
``ALLOW_INSECURE_TLS`` setting are enabled.
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

import httpx

from rest_task.core.config import EngineConfig
from rest_task.core.constants import (
    AUTHORIZATION_HEADER,
    IO_ERROR,
    MALFORMED_HEADER_ERROR,
    MALFORMED_URL_ERROR,
    MAX_RESPONSE_BYTES,
    READ_CHUNK_BYTES,
    STATUS_LINE_HEADER,
    UNSUPPORTED_METHOD_ERROR,
)
from rest_task.core.exceptions import TransportError, TransportFailure
from rest_task.models.request import HttpMethod
from rest_task.models.response import ResponseRecord

if TYPE_CHECKING:
    from rest_task.models.request import Endpoint, RequestSpec

logger = logging.getLogger("rest_task.http.executor")

_SUPPORTED_SCHEMES = ("http", "https")


def execute(
    endpoint: Endpoint,
    request_spec: RequestSpec,
    *,
    config: EngineConfig | None = None,
    transport: httpx.BaseTransport | None = None,
    log: logging.Logger | None = None,
) -> ResponseRecord:
    """Issue one HTTP request and return a bounded response record.

    Args:
        endpoint: Base URL and credentials.
        request_spec: Path, method, headers and body.
        config: Engine settings (timeout, redirects, TLS gate, user agent).
            Defaults to ``EngineConfig()``.
        transport: Optional ``httpx`` transport, used in place of the
            default network transport.
        log: Logging sink for this call (defaults to the module logger).

    Returns:
        The ``ResponseRecord`` for the exchange.

    Raises:
        TransportError: ``UNSUPPORTED_METHOD`` or ``MALFORMED`` (URL or
            headers) before any I/O; ``IO`` for any network failure.
    """
    log = log or logger
    cfg = config or EngineConfig()
    method = parse_method(request_spec.method, log=log)
    url = resolve_url(endpoint.url, request_spec.path, log=log)
    headers = build_headers(endpoint, request_spec.headers, log=log)
    content = request_spec.body if method.has_body else None

    verify = True
    if endpoint.insecure_tls:
        if cfg.allow_insecure_tls:
            log.warning(
                "TLS verification disabled for endpoint | host=%s",
                url.host,
            )
            verify = False
        else:
            log.warning(
                "insecure_tls requested but ALLOW_INSECURE_TLS is off; verifying | host=%s",
                url.host,
            )

    log.info(
        "Making request | method=%s | scheme=%s | host=%s | path=%s | body=%s",
        method.value,
        url.scheme,
        url.host,
        url.path,
        content is not None,
    )

    try:
        with (
            httpx.Client(
                timeout=cfg.http_timeout_seconds,
                follow_redirects=cfg.follow_redirects,
                verify=verify,
                headers={"User-Agent": cfg.user_agent},
                transport=transport,
            ) as client,
            client.stream(method.value, url, headers=headers, content=content) as response,
        ):
            return _read_response(response, log=log)
    except httpx.InvalidURL as exc:
        log.error("%s%s", MALFORMED_URL_ERROR, exc)
        raise TransportError(
            f"{MALFORMED_URL_ERROR}{exc}", reason=TransportFailure.MALFORMED
        ) from exc
    except (httpx.HTTPError, OSError) as exc:
        log.error("%s%s", IO_ERROR, exc)
        raise TransportError(f"{IO_ERROR}{exc}", reason=TransportFailure.IO) from exc


# ---------------------------------------------------------------------------
# Request preparation
# ---------------------------------------------------------------------------


def parse_method(raw: str, *, log: logging.Logger | None = None) -> HttpMethod:
    """Return the ``HttpMethod`` named *raw* (exact, upper-case match).

    Raises:
        TransportError: ``UNSUPPORTED_METHOD`` for any other value.
    """
    try:
        return HttpMethod(raw)
    except ValueError as exc:
        (log or logger).error("%s | method=%r", UNSUPPORTED_METHOD_ERROR, raw)
        raise TransportError(
            UNSUPPORTED_METHOD_ERROR, reason=TransportFailure.UNSUPPORTED_METHOD
        ) from exc


def resolve_url(base_url: str, path: str, *, log: logging.Logger | None = None) -> httpx.URL:
    """Resolve *path* relative to *base_url* (RFC 3986 reference resolution).

    Raises:
        TransportError: ``MALFORMED`` if either part cannot be parsed, the
            scheme is missing or not http/https, or no host remains.
    """
    try:
        base = httpx.URL(base_url)
        if not base.scheme:
            msg = f"no protocol: {base_url}"
            raise httpx.InvalidURL(msg)
        if base.scheme not in _SUPPORTED_SCHEMES:
            msg = f"unknown protocol: {base.scheme}"
            raise httpx.InvalidURL(msg)
        url = base.join(path) if path else base
        if not url.host:
            msg = f"no host: {base_url}"
            raise httpx.InvalidURL(msg)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        (log or logger).error("%s%s", MALFORMED_URL_ERROR, exc)
        raise TransportError(
            f"{MALFORMED_URL_ERROR}{exc}", reason=TransportFailure.MALFORMED
        ) from exc
    return url


def build_headers(
    endpoint: Endpoint,
    headers: dict[str, str],
    *,
    log: logging.Logger | None = None,
) -> list[tuple[str, str]]:
    """Return the outgoing header list, adding basic auth when appropriate.

    Explicit headers always win: the ``Authorization`` header is only
    synthesised when none is present (exact-case match) and both username
    and password are non-empty.

    Raises:
        TransportError: ``MALFORMED`` if a header name or value is not ASCII.
    """
    for name, value in headers.items():
        try:
            name.encode("ascii")
            value.encode("ascii")
        except UnicodeEncodeError as exc:
            (log or logger).error("%s | header=%r", MALFORMED_HEADER_ERROR.strip(), name)
            raise TransportError(
                f"{MALFORMED_HEADER_ERROR}{name!r}", reason=TransportFailure.MALFORMED
            ) from exc

    outgoing = list(headers.items())
    if AUTHORIZATION_HEADER not in headers and endpoint.has_credentials:
        (log or logger).info("Adding Basic authentication header from endpoint credentials")
        outgoing.append(
            (AUTHORIZATION_HEADER, basic_auth_value(endpoint.username, endpoint.password))
        )
    return outgoing


def basic_auth_value(username: str, password: str) -> str:
    """Return ``Basic base64(username:password)`` using UTF-8."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


# ---------------------------------------------------------------------------
# Response reading
# ---------------------------------------------------------------------------


def _read_response(response: httpx.Response, *, log: logging.Logger) -> ResponseRecord:
    """Build a ``ResponseRecord`` from an open streaming response."""
    status = response.status_code
    headers = collect_headers(response)
    declared = _declared_length(response)

    if declared > MAX_RESPONSE_BYTES:
        log.info(
            "Skipping response body because it exceeds 4MB | status=%d | declared=%d",
            status,
            declared,
        )
        return ResponseRecord(status_code=status, headers=headers, declared_length=declared)

    buffer = bytearray()
    for chunk in response.iter_bytes(chunk_size=READ_CHUNK_BYTES):
        buffer.extend(chunk)
        if len(buffer) > MAX_RESPONSE_BYTES:
            log.info(
                "Stopped reading response body past 4MB | status=%d | read=%d",
                status,
                len(buffer),
            )
            return ResponseRecord(
                status_code=status,
                headers=headers,
                declared_length=max(declared, len(buffer)),
            )

    body = normalise_lines(bytes(buffer).decode("utf-8", errors="replace"))
    log.info("Response received | status=%d | body_bytes=%d", status, len(buffer))
    return ResponseRecord(
        status_code=status,
        headers=headers,
        declared_length=declared,
        _body=body,
    )


def collect_headers(response: httpx.Response) -> dict[str, str]:
    """Return response headers with case preserved and repeats concatenated.

    ``Status-Line`` carries the status line, plus the value of any raw
    header entry whose name is empty.
    """
    status_line = f"{response.http_version} {response.status_code} {response.reason_phrase}"
    headers: dict[str, str] = {STATUS_LINE_HEADER: status_line.strip()}
    encoding = response.headers.encoding
    for raw_name, raw_value in response.headers.raw:
        name = raw_name.decode(encoding) or STATUS_LINE_HEADER
        value = raw_value.decode(encoding)
        if name in headers and name != STATUS_LINE_HEADER:
            headers[name] += value
        else:
            headers[name] = value
    return headers


def normalise_lines(text: str) -> str:
    """Normalise line terminators so every line ends with ``\\n``.

    ``\\r\\n`` and lone ``\\r`` become ``\\n`` and a final unterminated line
    gets a trailing newline; empty text stays empty.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if text and not text.endswith("\n"):
        text += "\n"
    return text


def _declared_length(response: httpx.Response) -> int:
    raw = response.headers.get("Content-Length", "")
    try:
        return max(int(raw), 0)
    except ValueError:
        return 0
