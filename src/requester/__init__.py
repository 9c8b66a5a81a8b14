"""Option-driven HTTP request builder and client."""

from .client import (
    Client,
    ClientOption,
    with_default_options,
    with_request_validation,
    with_transport,
)
from .config import ClientConfig, RequestValidator, TransportConfig
from .context import (
    Context,
    ContextCancelled,
    ContextError,
    DeadlineExceeded,
    background,
    with_timeout,
)
from .errors import StatusCode, StatusError, code_of, status_code_of
from .request import (
    Request,
    RequestDraft,
    RequestOption,
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
from .response import Response
from .transport import RequestsTransport, Transport
from .types import Err, Ok, Result

__all__ = [
    "Client",
    "ClientConfig",
    "ClientOption",
    "Context",
    "ContextCancelled",
    "ContextError",
    "DeadlineExceeded",
    "Err",
    "Ok",
    "Request",
    "RequestDraft",
    "RequestOption",
    "RequestValidator",
    "RequestsTransport",
    "Response",
    "Result",
    "StatusCode",
    "StatusError",
    "Transport",
    "TransportConfig",
    "background",
    "code_of",
    "new_request",
    "status_code_of",
    "with_added_header",
    "with_body",
    "with_context",
    "with_default_options",
    "with_form",
    "with_header",
    "with_host",
    "with_json",
    "with_method",
    "with_path",
    "with_query",
    "with_request_logger",
    "with_request_validation",
    "with_response_logger",
    "with_timeout",
    "with_transport",
    "with_url",
    "with_xml",
]
