"""Validator resolution and execution.

A field's validator is either a fixed rule or a function of the current
form values (and the form's ambient context) that produces one, possibly
asynchronously. Both are normalized into a tagged union and resolved once
per validation attempt.
"""
from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from formstate.errors import ConfigurationError, Err, ErrorCode, Ok, Result
from formstate.logging import validation_logger

from .rules import Rule, as_rule, is_rule_factory
from .result import Issue, ValidationFailure

log = validation_logger()

GENERIC_FAILURE_MESSAGE = "Validation error"
GENERIC_ISSUE_MESSAGE = "Something went wrong during validation"

RuleFactory = Callable[..., "Rule | Awaitable[Rule]"]


@dataclass(frozen=True, slots=True)
class StaticValidator:
    rule: Rule

    async def resolve(self, form_values: Mapping[str, Any], context: Any = None) -> Rule:
        return self.rule


@dataclass(frozen=True, slots=True)
class DynamicValidator:
    """Rule produced from ``(form_values)`` or ``(form_values, context)``."""
    factory: RuleFactory

    def _accepts_context(self) -> bool:
        try:
            params = inspect.signature(self.factory).parameters.values()
        except (TypeError, ValueError):
            return False
        if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
            return True
        positional = [p for p in params if p.kind in (inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD)]
        return len(positional) >= 2

    async def resolve(self, form_values: Mapping[str, Any], context: Any = None) -> Rule:
        produced = self.factory(form_values, context) if self._accepts_context() else self.factory(form_values)
        if inspect.isawaitable(produced):
            produced = await produced
        return as_rule(produced)


FieldValidator = StaticValidator | DynamicValidator


def as_validator(validator: Any) -> FieldValidator | None:
    """Normalize a rule, schema or rule-producing function."""
    if validator is None or isinstance(validator, (StaticValidator, DynamicValidator)):
        return validator
    if is_rule_factory(validator):
        return DynamicValidator(validator)
    return StaticValidator(as_rule(validator))


def generic_failure() -> ValidationFailure:
    return ValidationFailure((Issue(GENERIC_ISSUE_MESSAGE, (), ErrorCode.E9001_UNEXPECTED_ERROR),),
        message=GENERIC_FAILURE_MESSAGE)


async def validate_field_value(
    value: Any,
    validator: FieldValidator | Any | None,
    form_values: Mapping[str, Any],
    context: Any = None,
) -> Result[Any, ValidationFailure]:
    """Resolve ``validator`` against ``form_values`` and run it on ``value``.

    Rejected values come back as ``Err``. Exceptions raised while resolving
    or running the rule become a single generic issue, except
    ConfigurationError, which propagates.
    """
    resolved = as_validator(validator)
    if resolved is None:
        return Ok(value)
    try:
        rule = await resolved.resolve(form_values, context)
        return await rule.safe_parse(value)
    except ConfigurationError:
        raise
    except Exception as exc:
        log.error("validation_execution_failed", error=str(exc), error_type=type(exc).__name__, exc_info=True)
        return Err(generic_failure())
