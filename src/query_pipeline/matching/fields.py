"""Field-path resolution over dynamically shaped records.

A field path is a dotted/bracketed string such as ``"user.tags[0]"``. Paths
are split on ``.``, ``[`` and ``]`` and empty segments are dropped, so
``"a.b[0]"`` and ``"a[b].0"`` both address ``("a", "b", "0")``.

Resolution distinguishes three outcomes:

- the value found at the path;
- ``MISSING`` when the last segment is absent under a present container;
- ``None`` when the walk hits a null node (at any depth) or indexes a scalar.

Resolution never raises.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from functools import lru_cache
import re
from typing import Any, Final


_SEGMENT_SPLIT = re.compile(r"[.\[\]]")


class _Missing:
    """Sentinel type for an absent field."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


@lru_cache(maxsize=1024)
def parse_field_path(path: str) -> tuple[str, ...]:
    """Split a field path into its non-empty segments.

    Examples:
        >>> parse_field_path("a.b[0]")
        ('a', 'b', '0')
        >>> parse_field_path("..a[]")
        ('a',)
    """
    return tuple(segment for segment in _SEGMENT_SPLIT.split(path) if segment)


def is_sequence(value: object) -> bool:
    """Return True for list-like containers (strings and bytes excluded)."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _lookup(node: Any, segment: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(segment, MISSING)
    if is_sequence(node):
        if not (segment.isascii() and segment.isdigit()):
            return MISSING
        index = int(segment)
        if index >= len(node):
            return MISSING
        return node[index]
    # Scalars (strings, numbers, dates, arbitrary objects) cannot be indexed.
    return None


def resolve_field(record: Any, path: str) -> Any:
    """Resolve ``path`` against ``record``.

    Args:
        record: A mapping, sequence or scalar.
        path: Dotted/bracketed field path.

    Returns:
        The resolved value, ``MISSING`` if the final segment is absent, or
        ``None`` if a null node or scalar was traversed.
    """
    value = record
    for segment in parse_field_path(path):
        if value is None or value is MISSING:
            return None
        value = _lookup(value, segment)
    return value


def discover_fields(record: Any, threshold: int, prefix: str = "") -> list[str]:
    """Collect up to ``threshold`` leaf field paths from ``record``.

    The walk is depth-first in key order. Sequences are expanded index by
    index (``field[i]``), nested mappings recurse with a ``.``-joined path and
    dates are leaves. The budget is shared across the whole record: a nested
    subtree draws from the same remaining count as its siblings.
    """
    if not isinstance(record, Mapping):
        return []

    fields: list[str] = []
    for key, value in record.items():
        if len(fields) >= threshold:
            break
        field_path = f"{prefix}.{key}" if prefix else str(key)
        fields.extend(_discover_value(value, field_path, threshold - len(fields)))
    return fields


def _discover_value(value: Any, field_path: str, budget: int) -> list[str]:
    if isinstance(value, date):
        return [field_path]
    if isinstance(value, Mapping):
        return discover_fields(value, budget, field_path)
    if is_sequence(value):
        fields: list[str] = []
        for index, item in enumerate(value):
            if len(fields) >= budget:
                break
            fields.extend(_discover_value(item, f"{field_path}[{index}]", budget - len(fields)))
        return fields
    return [field_path]
