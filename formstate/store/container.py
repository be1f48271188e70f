"""Form State Container

One ``FormStore`` per mounted form. It owns the field registry and the error
tree, replaces its snapshot on every mutation and notifies subscribers with
the new snapshot.

Features:
- Independent instances (nested forms, tests); no module-level singleton
- Copy-on-write ``FormSnapshot`` with frozen field entries
- Derived ``is_valid``, ``is_dirty`` and ``is_validating`` flags
- Field-slice error updates that leave form-level errors in place

Usage:
    store = create_form_store()
    store.register_form(on_submit=save)
    store.register_field("user.email", initial_value="", validation=email())
    store.set_field_value("user.email", "a@b.co")
    await store.validate_field("user.email")
    store.get_form_values()   # {"user": {"email": "a@b.co"}}
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from formstate.config import get_settings
from formstate.logging import store_logger
from formstate.paths import set_value
from formstate.validation import ErrorTree, FlattenedErrors, as_validator

from .state import FieldEntry, FieldMeta, FormSnapshot, SubmitHandler, SubmitInvalidHandler
from .submission import SubmissionCoordinator

log = store_logger()

Listener = Callable[[FormSnapshot], None]


class FormStore(SubmissionCoordinator):
    """Field registry, error aggregator and submission coordinator for one form."""

    def __init__(self, snapshot: FormSnapshot | None = None):
        self._state = snapshot or FormSnapshot()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> FormSnapshot: return self._state

    def _commit(self, snapshot: FormSnapshot, **overrides: Any) -> None:
        self._state = snapshot.with_derived_flags().update(**overrides)
        for listener in list(self._listeners):
            listener(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with each new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _missing(self, name: str, operation: str) -> bool:
        if name in self._state.fields:
            return False
        if get_settings().WARN_ON_UNREGISTERED:
            log.warning("field_not_registered", field=name, operation=operation)
        return True

    def _replace_field(self, entry: FieldEntry) -> None:
        self._commit(self._state.update(fields={**self._state.fields, entry.name: entry}))

    # ========================================================================
    # Registration
    # ========================================================================

    def register_form(self, on_submit: SubmitHandler, on_submit_invalid: SubmitInvalidHandler | None = None,
                      additional_context: Mapping[str, Any] | Any = None) -> None:
        """Install submission handlers and the ambient context for dynamic validators."""
        self._commit(self._state.update(submit_handler=on_submit, submit_invalid_handler=on_submit_invalid,
            context=additional_context))

    def register_field(self, name: str, initial_value: Any = None, validation: Any = None) -> FieldEntry:
        """Create or replace the entry for ``name``.

        Fields without a validator start valid; fields with one start invalid
        until their first validation completes.
        """
        validator = as_validator(validation)
        entry = FieldEntry(name=name, value=initial_value, initial_value=initial_value, validator=validator,
            meta=FieldMeta(is_valid=validator is None))
        state = self._state
        self._commit(self._with_errors(state.update(fields={**state.fields, name: entry}), state.errors))
        return self._state.fields[name]

    def unregister_field(self, name: str) -> None:
        state = self._state
        if name not in state.fields:
            return
        fields = {key: entry for key, entry in state.fields.items() if key != name}
        tree = state.errors.without_field(name) if state.errors else None
        self._commit(self._with_errors(state.update(fields=fields), tree))

    # ========================================================================
    # Mutation
    # ========================================================================

    def set_field_value(self, name: str, value: Any) -> None:
        """Set the value and mark the field dirty. Does not validate."""
        if self._missing(name, "set_field_value"):
            return
        entry = self._state.fields[name]
        self._replace_field(entry.update(value=value).update_meta(is_dirty=True))

    def set_field_touched(self, name: str, touched: bool = True) -> None:
        if self._missing(name, "set_field_touched"):
            return
        self._replace_field(self._state.fields[name].update_meta(is_touched=touched))

    def set_field_blurred(self, name: str, blurred: bool = True) -> None:
        if self._missing(name, "set_field_blurred"):
            return
        self._replace_field(self._state.fields[name].update_meta(is_blurred=blurred))

    def set_errors(self, errors: ErrorTree | FlattenedErrors | Mapping[str, Any] | None) -> None:
        """Replace the whole error tree, e.g. with errors from a server response."""
        self._commit(self._with_errors(self._state, ErrorTree.coerce(errors)))

    def set_submitting(self, submitting: bool) -> None:
        self._commit(self._state.update(is_submitting=submitting))

    # ========================================================================
    # Queries
    # ========================================================================

    def get_field_state(self, name: str) -> FieldEntry | None:
        return self._state.fields.get(name)

    def get_form_values(self) -> dict[str, Any]:
        """Nested values built from the flat, dot-path keyed registry."""
        values: dict[str, Any] = {}
        for name, entry in self._state.fields.items():
            set_value(values, name, entry.value)
        return values

    def get_form_errors(self) -> list[str] | None:
        errors = self._state.errors
        return (errors.form_errors or None) if errors else None

    def get_field_errors(self, name: str) -> list[str] | None:
        errors = self._state.errors
        if errors is None:
            return None
        return [issue.message for issue in errors.field_issues(name)] or None

    # ========================================================================
    # Reset
    # ========================================================================

    @staticmethod
    def _reset_entry(entry: FieldEntry) -> FieldEntry:
        return entry.update(value=entry.initial_value, meta=FieldMeta(is_valid=not entry.has_validator))

    def reset_field(self, name: str) -> None:
        """Restore the initial value and clear interaction state and errors."""
        state = self._state
        entry = state.fields.get(name)
        if entry is None:
            return
        tree = state.errors.without_field(name) if state.errors else None
        fields = {**state.fields, name: self._reset_entry(entry)}
        self._commit(self._with_errors(state.update(fields=fields), tree))

    def reset_form(self) -> None:
        """Restore every field and the form flags to their defaults.

        The form reads as valid afterwards even while fields with validators
        are unvalidated; the next commit derives the flag again.
        """
        state = self._state
        fields = {name: self._reset_entry(entry) for name, entry in state.fields.items()}
        self._commit(state.update(fields=fields, errors=None, is_submitting=False), is_valid=True)


def create_form_store() -> FormStore:
    """New, independent form container."""
    return FormStore()
