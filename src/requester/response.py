"""Response wrapper with one-shot body decoding."""

from __future__ import annotations

from contextlib import closing
from typing import Any, Callable, Iterable, Mapping, TypeVar
from xml.etree import ElementTree

import requests

from . import codecs

DecodedValue = TypeVar("DecodedValue")

CHUNK_SIZE = 8192


class Response:
    """Owns a raw ``requests.Response`` and exposes decoding.

    The body can be consumed once. ``json()``, ``xml()`` and ``read()``
    each consume it and close the raw response; a second call raises
    ``requests.exceptions.StreamConsumedError``.
    """

    def __init__(self, raw: requests.Response) -> None:
        self._raw = raw
        self._consumed = False

    @property
    def status_code(self) -> int:
        return self._raw.status_code

    @property
    def reason(self) -> str | None:
        return self._raw.reason

    @property
    def headers(self) -> Mapping[str, str]:
        return self._raw.headers

    @property
    def url(self) -> str | None:
        return self._raw.url

    @property
    def ok(self) -> bool:
        return 200 <= self._raw.status_code <= 299

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _decode(
        self, decode: Callable[[Iterable[bytes]], DecodedValue]
    ) -> DecodedValue:
        if self._consumed:
            raise requests.exceptions.StreamConsumedError(
                "response body already consumed"
            )
        self._consumed = True
        with closing(self._raw):
            return decode(self._raw.iter_content(chunk_size=CHUNK_SIZE))

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            json.JSONDecodeError: The body is not valid JSON.
        """
        return self._decode(codecs.decode_json)

    def xml(self) -> ElementTree.Element:
        """Decode the body as XML and return the root element.

        Raises:
            xml.etree.ElementTree.ParseError: The body is not valid XML.
        """
        return self._decode(codecs.decode_xml)

    def read(self) -> bytes:
        return self._decode(b"".join)

    def close(self) -> None:
        self._consumed = True
        self._raw.close()

    def __enter__(self) -> Response:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"
