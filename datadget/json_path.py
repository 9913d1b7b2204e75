"""
Path expressions for pulling a single value out of a JSON document.

A path is a sequence of segments::

    price                         property
    data.value                    property, property
    items[0].details[1].value     property, index, property, index, property

Parsing is permissive: characters that start neither a property name nor a
well-formed ``[N]`` index are skipped, so garbage input never raises. It just
stops matching anything useful. Resolution fails closed: a missing key, an
out-of-range index or indexing into a non-container yields ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

_SEPARATORS = ".[]"
_DIGITS = "0123456789"


@dataclass(frozen=True)
class Segment:
    kind: Literal["property", "index"]
    name: str = ""
    index: int = -1


def _read_index(path: str, start: int) -> tuple[int, int] | None:
    """Parse ``[N]`` at *start*; returns ``(N, position after ']')``."""
    pos = start + 1
    while pos < len(path) and path[pos] in _DIGITS:
        pos += 1
    if pos == start + 1 or pos >= len(path) or path[pos] != "]":
        return None
    return int(path[start + 1:pos]), pos + 1


def tokenize(path: str) -> list[Segment]:
    segments: list[Segment] = []
    pos = 0
    while pos < len(path):
        char = path[pos]
        if char == "[":
            parsed = _read_index(path, pos)
            if parsed is None:
                pos += 1
                continue
            index, pos = parsed
            segments.append(Segment("index", index=index))
        elif char in _SEPARATORS:
            pos += 1
        else:
            end = pos
            while end < len(path) and path[end] not in _SEPARATORS:
                end += 1
            segments.append(Segment("property", name=path[pos:end]))
            pos = end
    return segments


def _step(current: Any, segment: Segment) -> Any:
    if segment.kind == "property":
        if isinstance(current, dict):
            return current.get(segment.name)
        return None
    if isinstance(current, list) and 0 <= segment.index < len(current):
        return current[segment.index]
    return None


def extract(document: Any, path: str | None) -> Any:
    """Resolve *path* against *document*.

    An empty path returns the document itself. Any segment that cannot be
    resolved makes the whole lookup return ``None``.
    """
    if not path or document is None:
        return document

    current = document
    for segment in tokenize(path):
        if current is None:
            return None
        current = _step(current, segment)
    return current
