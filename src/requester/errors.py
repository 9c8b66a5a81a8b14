"""Error taxonomy shared by the request builder and the client.

Every failure surfaced by this package is a :class:`StatusError` carrying one
code from the closed :class:`StatusCode` set. Callers branch on
:func:`code_of` and :func:`status_code_of` instead of exception identity.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class StatusCode(IntEnum):
    """Closed set of failure classes."""

    UNKNOWN = 0
    INVALID_BODY = 1
    BAD_RESPONSE_STATUS = 2
    ENCODING_ERROR = 3
    INVALID_FORM = 4
    MISSING_URL = 5

    BAD_RESPONSE_CODE = 2


class StatusError(Exception):
    """Structured failure raised by options and returned by the client."""

    def __init__(
        self,
        message: str,
        *,
        code: StatusCode = StatusCode.UNKNOWN,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = StatusCode(code)
        self.status_code = status_code
        self.cause = cause

    @property
    def message(self) -> str:
        return str(self.args[0])

    def __str__(self) -> str:
        return (
            f"request error: code = {int(self.code)} "
            f"message = {self.message}"
        )

    def __repr__(self) -> str:
        return (
            f"StatusError(code={self.code.name}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": int(self.code),
            "status_code": self.status_code,
            "message": self.message,
        }


def code_of(err: BaseException | None) -> StatusCode:
    """Return the taxonomy code of ``err``.

    ``None`` and errors from outside this package map to
    :attr:`StatusCode.UNKNOWN`.
    """
    if isinstance(err, StatusError):
        return err.code
    return StatusCode.UNKNOWN


def status_code_of(err: BaseException | None) -> int | None:
    """Return the HTTP status carried by ``err``, if any."""
    if isinstance(err, StatusError):
        return err.status_code
    return None
