# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
# pyright: reportMissingParameterType=false
import dataclasses
import io
from unittest.mock import patch
from xml.etree import ElementTree

import pytest

from requester.context import Context, background
from requester.errors import StatusCode, StatusError
from requester.request import (
    RequestDraft,
    new_request,
    with_added_header,
    with_body,
    with_context,
    with_form,
    with_header,
    with_host,
    with_json,
    with_method,
    with_path,
    with_query,
    with_request_logger,
    with_response_logger,
    with_url,
    with_xml,
)
from requester.transport import RequestsTransport, default_transport


def _build_error(*options) -> StatusError:
    with pytest.raises(StatusError) as exc_info:
        new_request(*options)
    return exc_info.value


def test_missing_host_and_url_fails():
    error = _build_error(with_method("POST"), with_path("/items"))

    assert error.code is StatusCode.MISSING_URL
    assert error.status_code is None


def test_no_options_fails_with_missing_url():
    assert _build_error().code is StatusCode.MISSING_URL


@pytest.mark.parametrize(
    ("host", "path", "expected"),
    [
        ("http://example.com", "/items", "http://example.com/items"),
        ("http://example.com/api", "v1", "http://example.com/apiv1"),
        ("https://example.com:8443", "/a/b", "https://example.com:8443/a/b"),
    ],
)
def test_host_and_path_are_concatenated_verbatim(host, path, expected):
    request = new_request(with_host(host), with_path(path))

    assert request.url == expected


@pytest.mark.parametrize("url_first", [True, False])
def test_url_takes_precedence_over_host_and_path(url_first):
    url = with_url("http://other.example/full")
    host_path = [with_host("http://example.com"), with_path("/ignored")]
    options = [url, *host_path] if url_first else [*host_path, url]

    request = new_request(*options)

    assert request.url == "http://other.example/full"


def test_method_defaults_to_get():
    request = new_request(with_host("http://example.com"))

    assert request.method == "GET"
    assert request.prepared.method == "GET"


def test_method_is_upper_cased():
    request = new_request(with_host("http://example.com"), with_method("post"))

    assert request.method == "POST"


def test_later_scalar_option_wins():
    request = new_request(
        with_method("POST"),
        with_host("http://first.example"),
        with_host("http://second.example"),
        with_method("PUT"),
    )

    assert request.method == "PUT"
    assert request.url == "http://second.example"
    assert request.prepared.url == "http://second.example/"


def test_query_accumulates_across_options():
    request = new_request(
        with_url("http://example.com/search"),
        with_query({"b": "2"}),
        with_query({"a": ["x y", "z"]}),
        with_query([("b", "3")]),
    )

    assert request.url == "http://example.com/search?a=x+y&a=z&b=2&b=3"


def test_query_is_appended_to_existing_query_string():
    request = new_request(
        with_url("http://example.com/search?q=1"),
        with_query({"page": "2"}),
    )

    assert request.url == "http://example.com/search?q=1&page=2"


def test_query_values_are_coerced_to_text():
    request = new_request(
        with_url("http://example.com/"), with_query({"limit": 10})
    )

    assert request.url == "http://example.com/?limit=10"


def test_header_overwrites_per_key():
    request = new_request(
        with_host("http://example.com"),
        with_header({"X-Token": "a", "X-Other": "1"}),
        with_header({"x-token": "b"}),
    )

    assert request.headers["X-Token"] == "b"
    assert request.headers["X-Other"] == "1"


def test_added_header_appends_values():
    request = new_request(
        with_host("http://example.com"),
        with_added_header("Accept", "application/json"),
        with_added_header("Accept", "text/plain", "*/*"),
    )

    assert request.headers["Accept"] == "application/json, text/plain, */*"


def test_header_replaces_previously_added_values():
    request = new_request(
        with_host("http://example.com"),
        with_added_header("Accept", "a/b", "c/d"),
        with_header({"Accept": "e/f"}),
    )

    assert request.headers["Accept"] == "e/f"


def test_draft_headers_override_transport_defaults():
    request = new_request(
        with_host("http://example.com"),
        with_header({"User-Agent": "custom/1.0"}),
    )

    assert request.prepared.headers["User-Agent"] == "custom/1.0"


def test_json_sets_body_and_content_type():
    request = new_request(
        with_host("http://example.com"),
        with_method("POST"),
        with_json({"name": "widget", "note": "<a&b>"}),
    )

    assert request.headers["Content-Type"] == "application/json"
    assert request.body is not None
    assert request.body.read() == b'{"name": "widget", "note": "<a&b>"}\n'


def test_later_header_overrides_json_content_type():
    request = new_request(
        with_host("http://example.com"),
        with_json({"a": 1}),
        with_header({"Content-Type": "application/vnd.api+json"}),
    )

    assert request.headers["Content-Type"] == "application/vnd.api+json"


def test_json_overrides_earlier_content_type_header():
    request = new_request(
        with_host("http://example.com"),
        with_header({"Content-Type": "text/plain"}),
        with_json({"a": 1}),
    )

    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.parametrize("value", [{"a": object()}, float("nan"), {1j: 1}])
def test_json_encoding_failure_is_encoding_error(value):
    error = _build_error(with_host("http://example.com"), with_json(value))

    assert error.code is StatusCode.ENCODING_ERROR


def test_xml_sets_body_and_content_type():
    request = new_request(
        with_host("http://example.com"),
        with_xml({"item": {"name": "widget", "tag": ["a", "b"]}}),
    )

    assert request.headers["Content-Type"] == "application/xml"
    assert request.body is not None
    assert request.body.read() == (
        b"<item><name>widget</name><tag>a</tag><tag>b</tag></item>"
    )


def test_xml_accepts_element():
    root = ElementTree.Element("ping")
    root.text = "pong"

    request = new_request(with_host("http://example.com"), with_xml(root))

    assert request.body is not None
    assert request.body.read() == b"<ping>pong</ping>"


@pytest.mark.parametrize("value", [42, {"a": 1, "b": 2}, {"a": object()}])
def test_xml_encoding_failure_is_encoding_error(value):
    error = _build_error(with_host("http://example.com"), with_xml(value))

    assert error.code is StatusCode.ENCODING_ERROR


def test_form_encodes_sorted_multi_values():
    request = new_request(
        with_host("http://example.com"),
        with_form({"b": "2", "a": ["1", "x y"]}),
    )

    assert request.headers["Content-Type"] == (
        "application/x-www-form-urlencoded"
    )
    assert request.body is not None
    assert request.body.read() == b"a=1&a=x+y&b=2"


def test_form_accepts_pairs():
    request = new_request(
        with_host("http://example.com"),
        with_form([("z", "1"), ("a", "2")]),
    )

    assert request.body is not None
    assert request.body.read() == b"a=2&z=1"


@pytest.mark.parametrize("value", ["a=b", 42, {"a": 1}, [("a",)]])
def test_invalid_form_type(value):
    error = _build_error(with_host("http://example.com"), with_form(value))

    assert error.code is StatusCode.INVALID_FORM


@pytest.mark.parametrize(
    ("body", "expected"),
    [(b"raw", b"raw"), (bytearray(b"raw"), b"raw"), ("téxt", "téxt".encode())],
)
def test_body_bytes_and_text_become_streams(body, expected):
    request = new_request(with_host("http://example.com"), with_body(body))

    assert request.body is not None
    assert request.body.read() == expected
    assert request.prepared.headers["Content-Length"] == str(len(expected))


def test_body_stream_is_passed_through():
    stream = io.BytesIO(b"payload")

    request = new_request(with_host("http://example.com"), with_body(stream))

    assert request.body is stream


@pytest.mark.parametrize("body", [None, b"", ""])
def test_empty_body_has_no_stream(body):
    request = new_request(with_host("http://example.com"), with_body(body))

    assert request.body is None
    assert request.prepared.body is None


@pytest.mark.parametrize("body", [42, {"a": 1}, ["a"]])
def test_invalid_body_type(body):
    error = _build_error(with_host("http://example.com"), with_body(body))

    assert error.code is StatusCode.INVALID_BODY


def test_later_body_option_wins_over_json():
    request = new_request(
        with_host("http://example.com"),
        with_json({"a": 1}),
        with_body("plain"),
    )

    assert request.body is not None
    assert request.body.read() == b"plain"
    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.parametrize("url", ["not a url", "http://"])
def test_malformed_address_is_unknown_error(url):
    error = _build_error(with_url(url))

    assert error.code is StatusCode.UNKNOWN
    assert error.message
    assert error.cause is not None


def test_context_defaults_to_background():
    request = new_request(with_host("http://example.com"))

    assert request.context is background()


def test_context_option_is_kept():
    context = Context(timeout=10)

    request = new_request(with_host("http://example.com"), with_context(context))

    assert request.context is context


def test_loggers_are_carried():
    request_sink, response_sink = io.BytesIO(), io.BytesIO()

    request = new_request(
        with_host("http://example.com"),
        with_request_logger(request_sink),
        with_response_logger(response_sink),
    )

    assert request.request_logger is request_sink
    assert request.response_logger is response_sink


def test_failing_option_aborts_composition():
    applied = []

    def failing(draft: RequestDraft) -> None:
        raise StatusError("nope", code=StatusCode.INVALID_FORM)

    def tracking(draft: RequestDraft) -> None:
        applied.append(draft)

    error = _build_error(with_host("http://example.com"), failing, tracking)

    assert error.code is StatusCode.INVALID_FORM
    assert error.message == "nope"
    assert applied == []


def test_request_is_immutable():
    request = new_request(with_host("http://example.com"))

    with pytest.raises(dataclasses.FrozenInstanceError):
        request.method = "POST"  # type: ignore[misc]
    with pytest.raises(TypeError):
        request.headers["X-New"] = "1"  # type: ignore[index]


def test_custom_transport_builds_request():
    calls = []

    class RecordingTransport(RequestsTransport):
        def build(self, method, url, body, context):
            calls.append((method, url, body, context))
            return super().build(method, url, body, context)

    request = new_request(
        with_host("http://example.com"),
        with_path("/x"),
        transport=RecordingTransport(),
    )

    assert calls == [("GET", "http://example.com/x", None, background())]
    assert request.url == "http://example.com/x"


def test_empty_path_keeps_host_verbatim():
    request = new_request(with_host("http://Example.COM"), with_path(""))

    assert request.url == "http://Example.COM"


def test_query_is_appended_to_verbatim_address():
    request = new_request(
        with_host("http://Example.COM"), with_query({"a": "1"})
    )

    assert request.url == "http://Example.COM?a=1"
    assert request.prepared.url == "http://example.com/?a=1"


@pytest.mark.parametrize(
    "header",
    [{"X-Bad": "a\r\nInjected: 1"}, {"X-Name": "€"}, {"X:Bad": "1"}],
)
def test_invalid_header_is_unknown_error(header):
    error = _build_error(with_host("http://example.com"), with_header(header))

    assert error.code is StatusCode.UNKNOWN
    assert error.status_code is None
    assert error.cause is not None


def test_default_transport_is_shared():
    transport = default_transport()

    with patch.object(transport, "build", wraps=transport.build) as build:
        new_request(with_host("http://example.com"))
        new_request(with_host("http://example.com"))

    assert default_transport() is transport
    assert build.call_count == 2
