"""Tolerant JSON extraction from tool output.

Tools that advertise ``--json`` still mix in banners, warnings or several
concatenated documents. :func:`json_objects` decodes the whole text when it
is a single valid document, and otherwise decodes every well-formed value it
can find, skipping malformed fragments.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

_decoder = json.JSONDecoder()


def iter_json_values(text: str) -> Iterator[Any]:
    text = text.strip()
    if not text:
        return

    try:
        whole = json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        yield whole
        return

    pos = 0
    while pos < len(text):
        starts = [i for i in (text.find("{", pos), text.find("[", pos)) if i != -1]
        if not starts:
            return
        start = min(starts)
        try:
            value, end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            pos = start + 1
            continue
        yield value
        pos = end


def walk_objects(value: Any) -> Iterator[dict[str, Any]]:
    """Yield every JSON object nested in *value*, in document order."""
    if isinstance(value, dict):
        yield value
        for child in value.values():
            yield from walk_objects(child)
    elif isinstance(value, list):
        for child in value:
            yield from walk_objects(child)


def json_objects(text: str) -> Iterator[dict[str, Any]]:
    for value in iter_json_values(text):
        yield from walk_objects(value)


def string_field(obj: dict[str, Any], *keys: str) -> str | None:
    """First non-empty string (or number) among *keys* in *obj*."""
    for key in keys:
        value = obj.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
