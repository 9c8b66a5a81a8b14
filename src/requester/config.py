"""Configuration models for the transport and the client."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Mapping

if TYPE_CHECKING:
    from .request import Request, RequestOption
    from .transport import Transport

RequestValidator = Callable[["Request"], None]


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


@dataclass(frozen=True)
class TransportConfig:
    """Settings for the default ``requests`` based transport."""

    user_agent: str | None = None
    default_headers: Mapping[str, str] = field(default_factory=_default_headers)
    verify_tls: bool = True
    allow_redirects: bool = True
    connect_timeout_seconds: float | None = None
    read_timeout_seconds: float | None = None
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        has_connect_timeout = self.connect_timeout_seconds is not None
        has_read_timeout = self.read_timeout_seconds is not None
        if has_connect_timeout != has_read_timeout:
            raise ValueError(
                "connect_timeout_seconds and read_timeout_seconds "
                "must be set together"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when provided")
        if (
            self.connect_timeout_seconds is not None
            and self.connect_timeout_seconds <= 0
        ):
            raise ValueError(
                "connect_timeout_seconds must be > 0 when provided"
            )
        if (
            self.read_timeout_seconds is not None
            and self.read_timeout_seconds <= 0
        ):
            raise ValueError("read_timeout_seconds must be > 0 when provided")

        # Freeze copied headers to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )

    def timeout(self) -> float | tuple[float, float] | None:
        """Resolve the configured timeout in ``requests`` form."""
        if (
            self.connect_timeout_seconds is not None
            and self.read_timeout_seconds is not None
        ):
            return (self.connect_timeout_seconds, self.read_timeout_seconds)
        return self.timeout_seconds


@dataclass
class ClientConfig:
    """Client state while client options are being applied.

    ``Client`` copies the lists into tuples once construction finishes.
    """

    transport: Transport | None = None
    default_options: list[RequestOption] = field(default_factory=list)
    request_validators: list[RequestValidator] = field(default_factory=list)
