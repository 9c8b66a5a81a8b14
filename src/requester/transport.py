"""Transport collaborator: builds and sends low-level requests.

The builder and the client only rely on :class:`Transport`. The default
implementation wraps a ``requests.Session``; connection pooling, TLS,
redirects and proxies stay its concern.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Protocol

import requests

from .config import TransportConfig
from .context import Context

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def build(
        self,
        method: str,
        url: str,
        body: BinaryIO | None,
        context: Context,
    ) -> requests.PreparedRequest:
        """Construct a low-level request; raise on malformed input."""
        ...

    def send(
        self, prepared: requests.PreparedRequest, context: Context
    ) -> requests.Response:
        """Execute ``prepared``; raise on transport failure."""
        ...


class RequestsTransport:
    """Transport backed by a ``requests.Session``.

    Args:
        config: Timeouts, TLS verification and default headers.
        session: Optional shared session. It is used, not owned.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._session = session or requests.Session()
        if self._config.user_agent:
            self._session.headers["User-Agent"] = self._config.user_agent
        self._session.headers.update(self._config.default_headers)

    @property
    def config(self) -> TransportConfig:
        return self._config

    @property
    def session(self) -> requests.Session:
        return self._session

    def build(
        self,
        method: str,
        url: str,
        body: BinaryIO | None,
        context: Context,
    ) -> requests.PreparedRequest:
        request = requests.Request(method=method, url=url, data=body)
        return self._session.prepare_request(request)

    def _get_timeout(
        self, context: Context
    ) -> float | tuple[float, float] | None:
        """Cap the configured timeout by the context's remaining time."""
        configured = self._config.timeout()
        remaining = context.remaining()
        if remaining is None:
            return configured
        if configured is None:
            return remaining
        if isinstance(configured, tuple):
            return (
                min(configured[0], remaining),
                min(configured[1], remaining),
            )
        return min(configured, remaining)

    def send(
        self, prepared: requests.PreparedRequest, context: Context
    ) -> requests.Response:
        context.raise_if_done()
        timeout = self._get_timeout(context)
        logger.debug(
            "sending %s %s (timeout=%s)", prepared.method, prepared.url, timeout
        )
        return self._session.send(
            prepared,
            stream=True,
            timeout=timeout,
            allow_redirects=self._config.allow_redirects,
            verify=self._config.verify_tls,
        )


_default_transport: RequestsTransport | None = None


def default_transport() -> RequestsTransport:
    """Return the shared transport used when none is injected."""
    global _default_transport
    if _default_transport is None:
        _default_transport = RequestsTransport()
    return _default_transport
