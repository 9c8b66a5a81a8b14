"""Request builder driven by composable options.

A request is assembled by applying :data:`RequestOption` callables, strictly
left to right, to a private :class:`RequestDraft`. :func:`new_request` then
validates the draft and materializes an immutable :class:`Request`.

Field policies:

* ``method``, ``host``, ``path``, ``url``, ``body``, ``context`` and the
  loggers: the last option wins.
* ``query``: values are always appended, never replaced.
* headers: :func:`with_header` replaces the values of each key it names,
  :func:`with_added_header` appends. The JSON, XML and form options replace
  ``Content-Type`` when they are applied, so a later header option can still
  override it.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, BinaryIO, Callable, Mapping, Sequence, Union
from urllib.parse import urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import check_header_validity

from . import codecs
from .context import Context, background
from .errors import StatusCode, StatusError
from .transport import Transport, default_transport

logger = logging.getLogger(__name__)

Body = Union[None, bytes, bytearray, str, BinaryIO]
QueryValues = Union[
    Mapping[str, Union[str, Sequence[str]]], Sequence[tuple[str, str]]
]


@dataclass
class RequestDraft:
    """Mutable state of a request under construction."""

    method: str = ""
    host: str = ""
    path: str = ""
    url: str = ""
    header: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    query: dict[str, list[str]] = field(default_factory=dict)
    body: Any = None
    context: Context | None = None
    request_logger: BinaryIO | None = None
    response_logger: BinaryIO | None = None


RequestOption = Callable[[RequestDraft], None]


@dataclass(frozen=True)
class Request:
    """Finalized, transport-ready request.

    Validators may inspect it; nothing mutates it after construction.
    """

    method: str
    url: str
    headers: Mapping[str, str]
    body: BinaryIO | None
    context: Context
    prepared: requests.PreparedRequest = field(repr=False)
    request_logger: BinaryIO | None = field(default=None, repr=False)
    response_logger: BinaryIO | None = field(default=None, repr=False)


def _resolve_body(body: Any) -> BinaryIO | None:
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        return io.BytesIO(bytes(body)) if body else None
    if isinstance(body, str):
        return io.BytesIO(body.encode("utf-8")) if body else None
    if callable(getattr(body, "read", None)):
        return body
    raise StatusError(
        f"invalid body type {type(body).__name__}",
        code=StatusCode.INVALID_BODY,
    )


def _header_value(name: str, values: Sequence[str]) -> str:
    """Join ``values`` and reject what http.client would refuse to send."""
    value = ", ".join(values)
    try:
        check_header_validity((name, value))
        value.encode("latin-1")
    except (requests.exceptions.InvalidHeader, UnicodeEncodeError) as exc:
        raise StatusError(
            f"invalid header {name!r}: {exc}", cause=exc
        ) from exc
    return value


def _append_query(url: str, query: Mapping[str, list[str]]) -> str:
    encoded = codecs.encode_form(
        (key, value) for key, values in query.items() for value in values
    )
    parts = urlsplit(url)
    merged = f"{parts.query}&{encoded}" if parts.query else encoded
    return urlunsplit(parts._replace(query=merged))


def new_request(
    *options: RequestOption, transport: Transport | None = None
) -> Request:
    """Apply ``options`` in order and build an immutable request.

    Args:
        *options: Request options, applied left to right.
        transport: Collaborator used to construct the low-level request.
            Defaults to the shared :func:`default_transport`.

    Returns:
        The finalized request.

    Raises:
        StatusError: An option failed, no address was given, the body type
            is not supported, or the transport rejected the request.
    """
    draft = RequestDraft()
    for option in options:
        option(draft)

    method = (draft.method or "GET").upper()
    if not draft.host and not draft.url:
        raise StatusError("no host/url defined", code=StatusCode.MISSING_URL)

    body = _resolve_body(draft.body)
    address = draft.url or draft.host + draft.path
    context = draft.context or background()

    transport = transport or default_transport()
    try:
        prepared = transport.build(method, address, body, context)
    except (requests.exceptions.RequestException, ValueError) as exc:
        raise StatusError(str(exc), cause=exc) from exc

    for name, values in draft.header.items():
        prepared.headers[name] = _header_value(name, values)

    url = address
    if draft.query:
        url = _append_query(address, draft.query)
        prepared.url = _append_query(prepared.url or address, draft.query)

    logger.debug("built request %s %s", method, url)
    return Request(
        method=method,
        url=url,
        headers=MappingProxyType(CaseInsensitiveDict(prepared.headers)),
        body=body,
        context=context,
        prepared=prepared,
        request_logger=draft.request_logger,
        response_logger=draft.response_logger,
    )


def with_method(method: str) -> RequestOption:
    def apply(draft: RequestDraft) -> None:
        draft.method = method

    return apply


def with_host(host: str) -> RequestOption:
    """Set the scheme and authority, e.g. ``https://api.example.com``."""

    def apply(draft: RequestDraft) -> None:
        draft.host = host

    return apply


def with_path(path: str) -> RequestOption:
    """Set the path appended verbatim to the host."""

    def apply(draft: RequestDraft) -> None:
        draft.path = path

    return apply


def with_url(url: str) -> RequestOption:
    """Set the full address; takes precedence over host and path."""

    def apply(draft: RequestDraft) -> None:
        draft.url = url

    return apply


def with_header(header: Mapping[str, str]) -> RequestOption:
    """Replace the values of every header named in ``header``."""

    def apply(draft: RequestDraft) -> None:
        for name, value in header.items():
            draft.header[name] = [value]

    return apply


def with_added_header(name: str, *values: str) -> RequestOption:
    """Append ``values`` to the header ``name``."""

    def apply(draft: RequestDraft) -> None:
        existing = draft.header.get(name, [])
        draft.header[name] = [*existing, *values]

    return apply


def with_query(query: QueryValues) -> RequestOption:
    """Append query parameters.

    Accepts a mapping of names to a value or a sequence of values, or a
    sequence of ``(name, value)`` pairs.
    """

    def apply(draft: RequestDraft) -> None:
        if isinstance(query, Mapping):
            items: list[tuple[str, Any]] = list(query.items())
        else:
            items = list(query)
        for name, value in items:
            if isinstance(value, str) or not isinstance(value, Sequence):
                values = [str(value)]
            else:
                values = [str(item) for item in value]
            draft.query.setdefault(name, []).extend(values)

    return apply


def with_body(body: Body) -> RequestOption:
    """Set a raw body: bytes, text or a readable binary stream.

    The type is checked when the request is built.
    """

    def apply(draft: RequestDraft) -> None:
        draft.body = body

    return apply


def with_form(form: Any) -> RequestOption:
    """Set a form-encoded body.

    ``form`` must be a mapping of names to a string or a sequence of
    strings, or a sequence of ``(name, value)`` pairs.
    """

    def apply(draft: RequestDraft) -> None:
        try:
            pairs = codecs.form_pairs(form)
        except TypeError as exc:
            raise StatusError(
                f"invalid form type: {exc}",
                code=StatusCode.INVALID_FORM,
                cause=exc,
            ) from exc
        draft.header["Content-Type"] = [codecs.FORM_CONTENT_TYPE]
        draft.body = codecs.encode_form(pairs).encode("ascii")

    return apply


def with_json(value: Any) -> RequestOption:
    """Serialize ``value`` as JSON and set ``Content-Type``."""

    def apply(draft: RequestDraft) -> None:
        try:
            payload = codecs.encode_json(value)
        except (TypeError, ValueError) as exc:
            raise StatusError(
                f"json encoding failed: {exc}",
                code=StatusCode.ENCODING_ERROR,
                cause=exc,
            ) from exc
        draft.header["Content-Type"] = [codecs.JSON_CONTENT_TYPE]
        draft.body = payload

    return apply


def with_xml(value: Any) -> RequestOption:
    """Serialize ``value`` as XML and set ``Content-Type``.

    See :func:`requester.codecs.to_element` for the accepted shapes.
    """

    def apply(draft: RequestDraft) -> None:
        try:
            payload = codecs.encode_xml(value)
        except (TypeError, ValueError) as exc:
            raise StatusError(
                f"xml encoding failed: {exc}",
                code=StatusCode.ENCODING_ERROR,
                cause=exc,
            ) from exc
        draft.header["Content-Type"] = [codecs.XML_CONTENT_TYPE]
        draft.body = payload

    return apply


def with_context(context: Context) -> RequestOption:
    def apply(draft: RequestDraft) -> None:
        draft.context = context

    return apply


def with_request_logger(sink: BinaryIO) -> RequestOption:
    """Write a raw dump of the outgoing request to ``sink``."""

    def apply(draft: RequestDraft) -> None:
        draft.request_logger = sink

    return apply


def with_response_logger(sink: BinaryIO) -> RequestOption:
    """Write a raw dump of the received response to ``sink``."""

    def apply(draft: RequestDraft) -> None:
        draft.response_logger = sink

    return apply
