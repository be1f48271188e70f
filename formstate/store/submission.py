"""Validation orchestration and submission.

Mixed into ``FormStore``. Validation results are folded into the error tree
one field slice at a time; ``validate_form`` fans out over every field with
a validator and commits a single combined result.

Concurrent ``validate_field`` calls for the same field are not serialized:
whichever resolves last is committed.
"""
from __future__ import annotations

import asyncio
import inspect
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from formstate.errors import ConfigurationError, ErrorCode, Result, configuration_error
from formstate.logging import bind_context, store_logger, submission_logger, unbind_context
from formstate.validation import ErrorTree, FlattenedErrors, ValidationFailure, validate_field_value

from .state import FieldEntry, FormSnapshot

if TYPE_CHECKING:
    from .container import FormStore

log = store_logger()
submit_log = submission_logger()


class SubmissionResult(BaseModel):
    """What a submit handler reports back. Failures may carry errors to display."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")

    success: bool
    form_errors: list[str] | None = None
    field_errors: dict[str, list[str]] | None = None

    def error_tree(self) -> ErrorTree:
        flattened = FlattenedErrors(form_errors=self.form_errors or [], field_errors=self.field_errors or {})
        return ErrorTree.from_flattened(flattened, ErrorCode.E2030_SUBMISSION_REJECTED)

    @classmethod
    def coerce(cls, value: Any) -> SubmissionResult | None:
        if value is None or isinstance(value, SubmissionResult):
            return value
        if isinstance(value, Mapping):
            return cls.model_validate(value)
        raise configuration_error("Submit handler must return a SubmissionResult, a mapping or None",
            returned=type(value).__name__)


class SubmissionCoordinator:
    """Field and form validation plus submit handling for ``FormStore``."""

    def _clear_validating(self: FormStore, names: Iterable[str]) -> None:
        state = self._state
        fields = dict(state.fields)
        for name in names:
            if name in fields:
                fields[name] = fields[name].update_meta(is_validating=False)
        self._commit(state.update(fields=fields))

    def _mark_validating(self: FormStore, entries: Iterable[FieldEntry]) -> None:
        state = self._state
        fields = dict(state.fields)
        for entry in entries:
            fields[entry.name] = fields[entry.name].update_meta(is_validating=True)
        self._commit(state.update(fields=fields))

    @staticmethod
    async def _run_validation(entry: FieldEntry, form_values: dict[str, Any],
                              context: Any) -> Result[Any, ValidationFailure]:
        bind_context(field=entry.name)
        try:
            return await validate_field_value(entry.value, entry.validator, form_values, context)
        finally:
            unbind_context("field")

    @staticmethod
    def _field_issues(name: str, failure: ValidationFailure):
        return tuple(issue.with_prefix(name) for issue in failure.issues)

    async def validate_field(self: FormStore, name: str) -> None:
        """Validate one field and fold the result into its slice of the error tree."""
        entry = self._state.fields.get(name)
        if entry is None or not entry.has_validator:
            return

        self._mark_validating([entry])
        try:
            result = await self._run_validation(entry, self.get_form_values(), self._state.context)
        except (ConfigurationError, asyncio.CancelledError):
            self._clear_validating([name])
            raise
        self._apply_field_result(entry, result)

    @staticmethod
    def _is_stale(origin: FieldEntry, current: FieldEntry | None) -> bool:
        """The field was removed or re-registered while its validation ran."""
        return current is None or current.validator is not origin.validator

    def _apply_field_result(self: FormStore, origin: FieldEntry, result: Result[Any, ValidationFailure]) -> None:
        name = origin.name
        state = self._state
        current = state.fields.get(name)
        if self._is_stale(origin, current):
            log.debug("stale_validation_dropped", field=name)
            return

        tree = state.errors or ErrorTree()
        if result.is_ok():
            tree = tree.without_field(name)
            current = current.update_meta(is_validating=False, is_valid=True)
        else:
            tree = tree.with_field(name, self._field_issues(name, result.unwrap_err()))
            current = current.update_meta(is_validating=False, is_valid=False)
        self._commit(self._with_errors(state.update(fields={**state.fields, name: current}), tree))

    async def validate_form(self: FormStore) -> bool:
        """Validate every field that has a validator.

        Returns True iff no field produced issues in this pass. Form-level
        issues already in the tree are kept, so ``is_valid`` may still be
        False afterwards.
        """
        targets = [entry for entry in self._state.fields.values() if entry.has_validator]
        if targets:
            self._mark_validating(targets)

        form_values = self.get_form_values()
        context = self._state.context
        try:
            results = await asyncio.gather(*(
                self._run_validation(entry, form_values, context) for entry in targets
            ))
        except (ConfigurationError, asyncio.CancelledError):
            self._clear_validating(entry.name for entry in targets)
            raise

        state = self._state
        fields = dict(state.fields)
        issues = list((state.errors or ErrorTree()).form_issues)
        has_field_issues = False
        for entry, result in zip(targets, results):
            current = fields.get(entry.name)
            if self._is_stale(entry, current):
                log.debug("stale_validation_dropped", field=entry.name)
                continue
            if result.is_err():
                has_field_issues = True
                issues.extend(self._field_issues(entry.name, result.unwrap_err()))
                fields[entry.name] = current.update_meta(is_validating=False, is_valid=False, is_touched=True)
            else:
                fields[entry.name] = current.update_meta(is_validating=False, is_valid=True)

        self._commit(self._with_errors(state.update(fields=fields), ErrorTree(tuple(issues))))
        return not has_field_issues

    async def submit_form(self: FormStore) -> SubmissionResult | None:
        """Call the submit handler with the materialized form values.

        Does not check validity first. Handler exceptions propagate. A
        failed result's errors are injected into the tree.
        """
        handler = self._state.submit_handler
        if handler is None:
            submit_log.warning("submit_handler_missing")
            return None

        outcome = handler(self.get_form_values())
        if inspect.isawaitable(outcome):
            outcome = await outcome
        result = SubmissionResult.coerce(outcome)
        if result is not None and not result.success:
            submit_log.info("submission_rejected", form_errors=result.form_errors, field_errors=result.field_errors)
            self.set_errors(result.error_tree())
        return result

    async def handle_submit(self: FormStore) -> SubmissionResult | None:
        """Validate, then submit or report invalid, with ``is_submitting`` set throughout."""
        self.set_submitting(True)
        try:
            if not await self.validate_form():
                handler = self._state.submit_invalid_handler
                if handler is not None:
                    errors = (self._state.errors or ErrorTree()).flatten()
                    outcome = handler(errors)
                    if inspect.isawaitable(outcome):
                        await outcome
                return None
            return await self.submit_form()
        finally:
            self.set_submitting(False)

    def _with_errors(self, snapshot: FormSnapshot, tree: ErrorTree | None) -> FormSnapshot:
        """Install ``tree`` and mirror each field's messages into its meta."""
        if tree is not None and not len(tree):
            tree = None
        fields = {}
        for name, entry in snapshot.fields.items():
            messages = tuple(issue.message for issue in tree.field_issues(name)) if tree else ()
            fields[name] = entry.update_meta(errors=messages or None)
        return snapshot.update(fields=fields, errors=tree)
