"""Raw HTTP/1.1 wire dumps written to diagnostic sinks."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlsplit

import requests

_CRLF = b"\r\n"


def _header_lines(headers: Mapping[str, Any]) -> bytes:
    return b"".join(
        f"{name}: {value}".encode("latin-1") + _CRLF
        for name, value in headers.items()
    )


def _peek_body(body: Any) -> bytes:
    """Read a body without consuming it for the transport."""
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    seekable = getattr(body, "seekable", None)
    if callable(seekable) and seekable():
        position = body.tell()
        data = body.read()
        body.seek(position)
        return data if isinstance(data, bytes) else data.encode("utf-8")
    return b"<unreadable stream body>"


def dump_request(prepared: requests.PreparedRequest) -> bytes:
    """Render the outgoing request as it would appear on the wire."""
    parts = urlsplit(prepared.url or "")
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query
    head = f"{prepared.method} {target} HTTP/1.1".encode("latin-1") + _CRLF
    headers = dict(prepared.headers)
    if "Host" not in headers and parts.netloc:
        head += f"Host: {parts.netloc}".encode("latin-1") + _CRLF
    return head + _header_lines(headers) + _CRLF + _peek_body(prepared.body)


def dump_response(response: requests.Response) -> bytes:
    """Render ``response`` including its body.

    The body is loaded into memory; later reads are served from the buffer.
    """
    status = (
        f"HTTP/1.1 {response.status_code} {response.reason or ''}".rstrip()
    )
    body = response.content or b""
    return (
        status.encode("latin-1")
        + _CRLF
        + _header_lines(response.headers)
        + _CRLF
        + body
    )
