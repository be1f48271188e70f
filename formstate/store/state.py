"""Immutable state records.

Every mutation of a form produces a new ``FormSnapshot``; field entries and
their meta are frozen too, so a snapshot handed to a subscriber can never
change underneath it.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

from formstate.validation import ErrorTree, FieldValidator

SubmitHandler = Callable[[dict[str, Any]], Any]
SubmitInvalidHandler = Callable[[Any], "Awaitable[None] | None"]

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class FieldMeta:
    is_validating: bool = False
    is_touched: bool = False
    is_blurred: bool = False
    is_dirty: bool = False
    is_valid: bool = False
    errors: tuple[str, ...] | None = None

    def update(self, **changes: Any) -> FieldMeta: return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class FieldEntry:
    name: str
    value: Any = None
    initial_value: Any = None
    validator: FieldValidator | None = None
    meta: FieldMeta = field(default_factory=FieldMeta)

    @property
    def has_validator(self) -> bool: return self.validator is not None

    def update(self, **changes: Any) -> FieldEntry: return replace(self, **changes)

    def update_meta(self, **changes: Any) -> FieldEntry: return replace(self, meta=self.meta.update(**changes))


@dataclass(frozen=True, slots=True)
class FormSnapshot:
    """Complete state of one form at a point in time."""
    fields: Mapping[str, FieldEntry] = field(default_factory=lambda: _EMPTY)
    errors: ErrorTree | None = None
    is_submitting: bool = False
    is_validating: bool = False
    is_dirty: bool = False
    is_valid: bool = True
    context: Mapping[str, Any] | Any = None
    submit_handler: SubmitHandler | None = None
    submit_invalid_handler: SubmitInvalidHandler | None = None

    def update(self, **changes: Any) -> FormSnapshot:
        if "fields" in changes:
            changes["fields"] = MappingProxyType(dict(changes["fields"]))
        return replace(self, **changes)

    def with_derived_flags(self) -> FormSnapshot:
        """Recompute the aggregate flags from the fields and the error tree."""
        entries = self.fields.values()
        has_form_errors = self.errors is not None and self.errors.has_form_issues
        return replace(
            self,
            is_validating=any(e.meta.is_validating for e in entries),
            is_dirty=any(e.meta.is_dirty for e in entries),
            is_valid=all(e.meta.is_valid for e in entries) and not has_form_errors,
        )
