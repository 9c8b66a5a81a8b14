"""Body encoders and streaming decoders used by options and responses."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import urlencode
from xml.etree import ElementTree

JSON_CONTENT_TYPE = "application/json"
XML_CONTENT_TYPE = "application/xml"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def encode_json(value: Any) -> bytes:
    """Serialize ``value`` as UTF-8 JSON followed by a newline.

    Raises:
        TypeError: ``value`` holds a type the encoder does not know.
        ValueError: ``value`` is circular or holds a non-finite float.
    """
    text = json.dumps(value, ensure_ascii=False, allow_nan=False)
    return (text + "\n").encode("utf-8")


def decode_json(chunks: Iterable[bytes]) -> Any:
    return json.loads(b"".join(chunks))


def _fill_element(element: ElementTree.Element, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for tag, child in value.items():
            if not isinstance(tag, str):
                raise TypeError(f"xml tag must be str, got {type(tag)!r}")
            children = (
                child
                if isinstance(child, (list, tuple))
                else (child,)
            )
            for item in children:
                _fill_element(ElementTree.SubElement(element, tag), item)
        return
    if isinstance(value, (str, int, float, bool)):
        element.text = str(value)
        return
    raise TypeError(f"cannot encode {type(value).__name__} as xml")


def to_element(value: Any) -> ElementTree.Element:
    """Convert ``value`` into an XML element.

    Accepts an ``Element``, an ``ElementTree``, or a mapping with exactly one
    root key. Nested mappings become child elements, lists and tuples repeat
    the tag, scalars become text.
    """
    if isinstance(value, ElementTree.ElementTree):
        root = value.getroot()
        if root is None:
            raise ValueError("xml document has no root element")
        return root
    if isinstance(value, ElementTree.Element):
        return value
    if isinstance(value, Mapping) and len(value) == 1:
        ((tag, content),) = value.items()
        if not isinstance(tag, str):
            raise TypeError(f"xml tag must be str, got {type(tag)!r}")
        root = ElementTree.Element(tag)
        _fill_element(root, content)
        return root
    raise TypeError(
        "xml value must be an Element, an ElementTree or a single-root mapping"
    )


def encode_xml(value: Any) -> bytes:
    return ElementTree.tostring(to_element(value), encoding="utf-8")


def decode_xml(chunks: Iterable[bytes]) -> ElementTree.Element:
    """Feed ``chunks`` to an incremental parser and return the root."""
    parser = ElementTree.XMLParser()
    for chunk in chunks:
        parser.feed(chunk)
    return parser.close()


def element_to_mapping(element: ElementTree.Element) -> dict[str, Any]:
    """Inverse of :func:`to_element` for documents without attributes.

    Repeated child tags collapse into lists; leaves become their text.
    """

    def convert(node: ElementTree.Element) -> Any:
        if len(node) == 0:
            return node.text
        result: dict[str, Any] = {}
        for child in node:
            value = convert(child)
            if child.tag in result:
                existing = result[child.tag]
                if isinstance(existing, list):
                    existing.append(value)
                else:
                    result[child.tag] = [existing, value]
            else:
                result[child.tag] = value
        return result

    return {element.tag: convert(element)}


def form_pairs(value: Any) -> list[tuple[str, str]]:
    """Normalize a form value into ``(key, value)`` pairs.

    Raises:
        TypeError: ``value`` is not a multi-valued mapping of strings or a
            sequence of string pairs.
    """
    pairs: list[tuple[str, str]] = []
    if isinstance(value, Mapping):
        for key, raw in value.items():
            if not isinstance(key, str):
                raise TypeError("form keys must be str")
            if isinstance(raw, str):
                pairs.append((key, raw))
            elif isinstance(raw, Sequence) and all(
                isinstance(item, str) for item in raw
            ):
                pairs.extend((key, item) for item in raw)
            else:
                raise TypeError(f"form value for {key!r} must be str values")
        return pairs
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TypeError("form must be a mapping or a sequence of pairs")
    for item in value:
        if (
            not isinstance(item, tuple)
            or len(item) != 2
            or not all(isinstance(part, str) for part in item)
        ):
            raise TypeError("form pairs must be (str, str) tuples")
        pairs.append(item)
    return pairs


def encode_form(pairs: Iterable[tuple[str, str]]) -> str:
    """Form-encode pairs sorted by key; values keep their order per key."""
    return urlencode(sorted(pairs, key=lambda pair: pair[0]))
