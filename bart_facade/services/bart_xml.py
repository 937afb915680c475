"""Convert BART XML payloads into plain nested Python structures.

The conversion follows the conventions BART consumers have long relied on:

- text is trimmed, and an element holding only text becomes that string
  (an empty element becomes ``""``);
- a child element that appears once stays a bare value, repeated children
  become a list in document order;
- attributes are collected under the ``"$"`` key, and the text of an element
  that also carries attributes or children is stored under ``"_"``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

from bart_facade.services.bart_errors import ParseError

ATTRIBUTES_KEY = "$"
TEXT_KEY = "_"


def _convert(element: ET.Element) -> Any:
    text = (element.text or "").strip()
    children = list(element)

    if not children and not element.attrib:
        return text

    node: dict[str, Any] = {}
    if element.attrib:
        node[ATTRIBUTES_KEY] = {
            key: value.strip() for key, value in element.attrib.items()
        }
    if text:
        node[TEXT_KEY] = text

    for child in children:
        value = _convert(child)
        existing = node.get(child.tag)
        if existing is None:
            node[child.tag] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            node[child.tag] = [existing, value]

    return node


def parse_xml(payload: str | bytes) -> dict[str, Any]:
    """Parse a BART payload and return the mapping for its root element.

    Raises:
        ParseError: If the payload is empty or not well-formed XML.
    """
    if payload is None or not payload.strip():
        raise ParseError("Empty payload received from BART.")

    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed XML payload: {exc}") from exc

    converted = _convert(root)
    if isinstance(converted, str):
        return {TEXT_KEY: converted} if converted else {}
    return converted


__all__ = ["ATTRIBUTES_KEY", "TEXT_KEY", "parse_xml"]
