"""Client that composes default and per-call options and executes requests.

A call goes through building, validating, executing and classifying. Each
step can stop the call with an ``Err`` holding a :class:`StatusError`; no
step retries. Retry policy belongs to whoever wraps :meth:`Client.do`.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Callable

import requests

from .config import ClientConfig, RequestValidator
from .context import ContextError
from .dump import dump_request, dump_response
from .errors import StatusCode, StatusError
from .request import Request, RequestOption, new_request, with_method
from .response import Response
from .transport import Transport, default_transport
from .types import Err, Ok, Result

logger = logging.getLogger(__name__)

ClientOption = Callable[[ClientConfig], None]


class Client:
    """Executes requests built from default and per-call options.

    Defaults and validators are frozen at construction, so one client can
    serve concurrent calls; every call builds its own draft.
    """

    def __init__(self, *options: ClientOption) -> None:
        """Create a new Client.

        Args:
            *options: Client options, applied in order.
        """
        config = ClientConfig()
        for option in options:
            option(config)
        self._transport: Transport = (
            config.transport or default_transport()
        )
        self._default_options: tuple[RequestOption, ...] = tuple(
            config.default_options
        )
        self._validators: tuple[RequestValidator, ...] = tuple(
            config.request_validators
        )

    @property
    def transport(self) -> Transport:
        return self._transport

    def _build_meta(
        self,
        request: Request | None,
        response: requests.Response | None,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        """Construct metadata dictionary from request and response."""
        meta: dict[str, Any] = {}
        if request is not None:
            meta["method"] = request.method
            meta["url"] = request.url

        if response is not None:
            meta["status_code"] = response.status_code
            meta["reason"] = response.reason
            try:
                meta["elapsed_s"] = response.elapsed.total_seconds()
            except AttributeError:
                pass  # Not available on hand-built responses
        if final_error is not None:
            meta["final_error"] = final_error

        return meta

    def _validate(self, request: Request) -> None:
        for validator in self._validators:
            try:
                validator(request)
            except StatusError:
                raise
            except Exception as exc:
                raise StatusError(str(exc), cause=exc) from exc

    @staticmethod
    def _write_dump(sink: BinaryIO, render: Callable[[], bytes]) -> None:
        """Write a diagnostic dump; sink failures never fail the call."""
        try:
            sink.write(render())
        except (OSError, ValueError) as exc:
            logger.warning("failed to write diagnostic dump: %s", exc)

    def _transport_error(
        self, request: Request, exc: Exception
    ) -> Err[StatusError]:
        """Map a transport failure to an UNKNOWN error without status."""
        logger.debug(
            "transport failed for %s %s: %s", request.method, request.url, exc
        )
        return Err(
            StatusError(str(exc), cause=exc),
            meta=self._build_meta(request, None, type(exc).__name__),
        )

    def do(self, *options: RequestOption) -> Result[Response, StatusError]:
        """Build, validate and execute one request.

        Args:
            *options: Per-call request options, applied after the defaults.

        Returns:
            ``Ok`` with the response wrapper for 2xx statuses, otherwise
            ``Err`` with a :class:`StatusError`. For non-2xx statuses the
            wrapper is still available as ``meta["response"]``; its body
            is streamed, so the connection stays open until the caller
            decodes it or calls ``close()`` on it.
        """
        try:
            request = new_request(
                *self._default_options, *options, transport=self._transport
            )
        except StatusError as exc:
            logger.debug("request build failed: %s", exc)
            return Err(exc, meta=self._build_meta(None, None, "StatusError"))

        try:
            self._validate(request)
        except StatusError as exc:
            logger.debug("request rejected by validator: %s", exc)
            return Err(
                exc, meta=self._build_meta(request, None, "StatusError")
            )

        if request.request_logger is not None:
            self._write_dump(
                request.request_logger,
                lambda: dump_request(request.prepared),
            )

        try:
            raw = self._transport.send(request.prepared, request.context)
        except (
            requests.exceptions.RequestException,
            ContextError,
            OSError,
            ValueError,
        ) as exc:
            return self._transport_error(request, exc)
        except Exception as exc:  # fallback for injected transports
            return self._transport_error(request, exc)

        if request.response_logger is not None:
            self._write_dump(
                request.response_logger, lambda: dump_response(raw)
            )

        response = Response(raw)
        if not 200 <= raw.status_code <= 299:
            meta = self._build_meta(request, raw, "StatusError")
            meta["response"] = response
            return Err(
                StatusError(
                    f"bad status code ({raw.status_code})",
                    code=StatusCode.BAD_RESPONSE_STATUS,
                    status_code=raw.status_code,
                ),
                meta=meta,
            )

        logger.debug(
            "%s %s -> %s", request.method, request.url, raw.status_code
        )
        return Ok(response, meta=self._build_meta(request, raw))

    def get(self, *options: RequestOption) -> Result[Response, StatusError]:
        return self.do(with_method("GET"), *options)

    def head(self, *options: RequestOption) -> Result[Response, StatusError]:
        return self.do(with_method("HEAD"), *options)

    def post(self, *options: RequestOption) -> Result[Response, StatusError]:
        return self.do(with_method("POST"), *options)

    def put(self, *options: RequestOption) -> Result[Response, StatusError]:
        return self.do(with_method("PUT"), *options)

    def patch(self, *options: RequestOption) -> Result[Response, StatusError]:
        return self.do(with_method("PATCH"), *options)

    def delete(
        self, *options: RequestOption
    ) -> Result[Response, StatusError]:
        return self.do(with_method("DELETE"), *options)


def with_transport(transport: Transport) -> ClientOption:
    """Use ``transport`` instead of the shared default transport."""

    def apply(config: ClientConfig) -> None:
        config.transport = transport

    return apply


def with_default_options(*options: RequestOption) -> ClientOption:
    """Append request options replayed before every call's own options."""

    def apply(config: ClientConfig) -> None:
        config.default_options.extend(options)

    return apply


def with_request_validation(validator: RequestValidator) -> ClientOption:
    """Register a validator; it rejects a request by raising StatusError."""

    def apply(config: ClientConfig) -> None:
        config.request_validators.append(validator)

    return apply
