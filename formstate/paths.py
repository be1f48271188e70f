"""Dot-path addressing into nested plain structures.

Field names like ``user.email`` are registered flat but materialized as
nested dicts. Numeric segments are treated as ordinary dict keys when
writing, so ``items.0.name`` produces ``{"items": {"0": {"name": ...}}}``
rather than a list.
"""
from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any


def split_path(path: str) -> list[str]:
    return path.split(".") if path else []


def get_value(root: Any, path: str) -> Any:
    """Read the value at ``path``; ``None`` on any missing intermediate."""
    current = root
    for segment in split_path(path):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, Sequence) and not isinstance(current, str) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current


def set_value(root: MutableMapping[str, Any], path: str, value: Any) -> MutableMapping[str, Any]:
    """Write ``value`` at ``path`` in place, creating dicts for missing segments.

    Callers pass a working copy; ``root`` is mutated and returned.
    """
    segments = split_path(path)
    if not segments:
        return root
    current = root
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value
    return root
