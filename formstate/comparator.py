"""Type-aware comparison for cross-field validation.

``compare`` orders two values given the declared variable type of the field
being compared against. ``is_matching_value`` is the deep equality used by
``same_as``, ``different_from`` and ``unique``.

Strings are ordered with ``locale.strcoll``, which follows the process's
``LC_COLLATE``. Python starts in the C locale, where that is plain code point
order; hosts that want language-aware ordering call
``locale.setlocale(locale.LC_COLLATE, "")`` (or a specific locale) at startup.
"""
from __future__ import annotations

import json
import locale
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

DATE_TYPES = frozenset({"datetime", "date"})
NUMERIC_TYPES = frozenset({"number", "ordinal", "scalar"})


def _is_structured(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _sign(delta: float) -> int:
    return (delta > 0) - (delta < 0)


def _to_timestamp(value: Any) -> float | None:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).timestamp()
        except ValueError:
            return None
    return None


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare(a: Any, b: Any, declared_type: str | None = None) -> int:
    """Return negative, zero or positive as ``a`` orders before, with or after ``b``."""
    if a is None or b is None:
        if a is None and b is None:
            return 0
        return -1 if a is None else 1

    if _is_structured(a) and _is_structured(b):
        left = json.dumps(a, sort_keys=True, default=str)
        right = json.dumps(b, sort_keys=True, default=str)
        return (left > right) - (left < right)

    if isinstance(a, bool) and isinstance(b, bool):
        return int(a) - int(b)

    if declared_type in DATE_TYPES:
        left, right = _to_timestamp(a), _to_timestamp(b)
        if left is None or right is None:
            return 0
        return _sign(left - right)

    if declared_type in NUMERIC_TYPES:
        left, right = _to_number(a), _to_number(b)
        if math.isnan(left) or math.isnan(right):
            return 0
        return _sign(left - right)

    if _is_number(a) and _is_number(b):
        return _sign(a - b)

    if isinstance(a, str) and isinstance(b, str):
        return locale.strcoll(a, b)

    return 0


def is_matching_value(submitted: Any, existing: Any) -> bool:
    """Deep equality over primitives, lists, ``{x, y}`` coordinates and records."""
    if submitted is existing:
        return True
    if submitted is None or existing is None:
        return False

    if isinstance(submitted, (list, tuple)) and isinstance(existing, (list, tuple)):
        if len(submitted) != len(existing):
            return False
        return all(is_matching_value(s, e) for s, e in zip(submitted, existing))

    if isinstance(submitted, Mapping) and isinstance(existing, Mapping):
        if {"x", "y"} <= submitted.keys() and {"x", "y"} <= existing.keys():
            return submitted["x"] == existing["x"] and submitted["y"] == existing["y"]
        if len(submitted) != len(existing):
            return False
        return all(key in existing and is_matching_value(value, existing[key]) for key, value in submitted.items())

    if _is_number(submitted) and _is_number(existing):
        return submitted == existing
    # strict: no cross-type equality such as "1" == 1 or True == 1
    return type(submitted) is type(existing) and submitted == existing
