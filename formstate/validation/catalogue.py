"""Built-in Validation Catalogue

Every entry is a factory ``(parameter, context=None) -> (form_values) -> Rule``.
Factories check their parameters immediately and raise ConfigurationError
for a bad declaration; the inner builder runs once per validation attempt
with the current form values, which is what cross-field rules compare
against.

Usage:
    build = min_length(3)
    rule = build(form_values)
    rule.hint                      # "Enter at least 3 characters."
    await rule.safe_parse("ab")    # Err(...)
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Annotated, Any, Callable

from pydantic import BeforeValidator

from formstate.comparator import compare, is_matching_value
from formstate.errors import (
    ErrorCode,
    ensure,
    missing_context,
    missing_parameter,
    unknown_variable,
    unsupported_entity,
)

from .context import ValidationContext
from .rules import RefinementContext, Rule, SchemaRule, as_rule, is_rule_factory

FormValues = Mapping[str, Any]
RuleBuilder = Callable[[FormValues], Rule]

REQUIRED_MESSAGE = "You must answer this question before continuing."

# RFC 5322 simplified pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def _options(count: int) -> str:
    return "option" if count == 1 else "options"


# ============================================================================
# Single-value rules
# ============================================================================

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def required(parameter: Any = True, context: ValidationContext | None = None) -> RuleBuilder:
    """Reject None, whitespace-only text, NaN and empty selections. Zero and False pass."""

    def _check(value: Any, ctx: RefinementContext) -> None:
        if _is_blank(value):
            ctx.add_issue(REQUIRED_MESSAGE, code=ErrorCode.E2001_REQUIRED_FIELD_MISSING)

    # no hint: required fields are marked in the UI instead
    return lambda form_values: SchemaRule().refine(_check)


def min_length(length: int | None, context: ValidationContext | None = None) -> RuleBuilder:
    ensure(length is not None, missing_parameter("min_length", "length"))

    def _check(value: str, ctx: RefinementContext) -> None:
        if len(value) < length:
            ctx.add_issue(f"Too short. Enter at least {length} characters.", code=ErrorCode.E2003_OUT_OF_RANGE)

    rule = SchemaRule(str, strict=True, prefault="").refine(_check).with_hint(f"Enter at least {length} characters.")
    return lambda form_values: rule


def max_length(length: int | None, context: ValidationContext | None = None) -> RuleBuilder:
    ensure(length is not None, missing_parameter("max_length", "length"))

    def _check(value: str, ctx: RefinementContext) -> None:
        if len(value) > length:
            ctx.add_issue(f"Too long. Enter fewer than {length} characters.", code=ErrorCode.E2003_OUT_OF_RANGE)

    rule = SchemaRule(str, strict=True, prefault="").refine(_check).with_hint(f"Enter at most {length} characters.")
    return lambda form_values: rule


def _number_parameter(rule_name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise missing_parameter(rule_name, "value") from None
    ensure(not math.isnan(number), missing_parameter(rule_name, "value"))
    # keep ints as ints so messages read "at least 5", not "5.0"
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else number


def _blank_to_zero(value: Any) -> Any:
    # a cleared number input submits "", which numeric coercion reads as 0
    if isinstance(value, str) and not value.strip():
        return 0
    return value


CoercedNumber = Annotated[float, BeforeValidator(_blank_to_zero)]


def min_value(minimum: float | None, context: ValidationContext | None = None) -> RuleBuilder:
    """Numeric lower bound; text input such as ``"12"`` is coerced first."""
    minimum = _number_parameter("min_value", minimum)

    def _check(value: float, ctx: RefinementContext) -> None:
        if not value >= minimum:
            ctx.add_issue(f"Too small. Value must be at least {minimum}.", code=ErrorCode.E2003_OUT_OF_RANGE)

    rule = (SchemaRule(CoercedNumber, prefault=minimum - 1).refine(_check)
            .with_hint(f"Enter a value greater than or equal to {minimum}."))
    return lambda form_values: rule


def max_value(maximum: float | None, context: ValidationContext | None = None) -> RuleBuilder:
    maximum = _number_parameter("max_value", maximum)

    def _check(value: float, ctx: RefinementContext) -> None:
        if not value <= maximum:
            ctx.add_issue(f"Too large. Value must be at most {maximum}.", code=ErrorCode.E2003_OUT_OF_RANGE)

    rule = (SchemaRule(CoercedNumber, prefault=maximum - 1).refine(_check)
            .with_hint(f"Enter a value less than or equal to {maximum}."))
    return lambda form_values: rule


def min_selected(count: int | None, context: ValidationContext | None = None) -> RuleBuilder:
    ensure(isinstance(count, int) and not isinstance(count, bool), missing_parameter("min_selected", "count"))

    def _check(value: list, ctx: RefinementContext) -> None:
        if len(value) < count:
            ctx.add_issue(f"Too few selected. Select at least {count} {_options(count)}.",
                code=ErrorCode.E2003_OUT_OF_RANGE)

    rule = (SchemaRule(list[Any], prefault=[]).refine(_check)
            .with_hint(f"Select at least {count} {_options(count)}."))
    return lambda form_values: rule


def max_selected(count: int | None, context: ValidationContext | None = None) -> RuleBuilder:
    ensure(isinstance(count, int) and not isinstance(count, bool), missing_parameter("max_selected", "count"))

    def _check(value: list, ctx: RefinementContext) -> None:
        if len(value) > count:
            ctx.add_issue(f"Too many selected. Select a maximum of {count} {_options(count)}.",
                code=ErrorCode.E2003_OUT_OF_RANGE)

    rule = (SchemaRule(list[Any], prefault=[None] * count).refine(_check)
            .with_hint(f"Select a maximum of {count} {_options(count)}."))
    return lambda form_values: rule


def pattern(parameter: Mapping[str, Any] | None, context: ValidationContext | None = None) -> RuleBuilder:
    """Match ``{regex, error_message, hint}``, mirroring the HTML ``pattern`` attribute."""
    parameter = parameter or {}
    regex = parameter.get("regex")
    hint = parameter.get("hint")
    message = parameter.get("error_message") or parameter.get("errorMessage") or "Invalid format."
    ensure(regex, missing_parameter("pattern", "regex"))
    ensure(hint, missing_parameter("pattern", "hint"))
    compiled = re.compile(regex)

    def _check(value: str, ctx: RefinementContext) -> None:
        if not compiled.search(value):
            ctx.add_issue(message, code=ErrorCode.E2002_INVALID_FORMAT)

    rule = SchemaRule(str, strict=True, prefault="").refine(_check).with_hint(hint)
    return lambda form_values: rule


def email(parameter: Any = True, context: ValidationContext | None = None) -> RuleBuilder:
    def _check(value: str, ctx: RefinementContext) -> None:
        if not EMAIL_PATTERN.match(value):
            ctx.add_issue("Enter a valid email address.", code=ErrorCode.E2010_INVALID_EMAIL)

    rule = SchemaRule(str, strict=True, prefault="").refine(_check).with_hint("Must be a valid email address.")
    return lambda form_values: rule


# ============================================================================
# Rules that read the network or other fields
# ============================================================================

def unique(attribute: str | None, context: ValidationContext | None = None) -> RuleBuilder:
    """Value must differ from every same-typed peer entity's value for ``attribute``."""
    ensure(context is not None, missing_context("unique"))
    subject = context.subject
    ensure(subject is not None and subject.entity in ("node", "edge"),
        unsupported_entity("unique", subject.entity if subject else None))
    ensure(isinstance(attribute, str) and attribute, missing_parameter("unique", "attribute"))

    async def _check(value: Any, ctx: RefinementContext) -> None:
        existing = await context.peer_values(attribute)
        if any(is_matching_value(value, other) for other in existing):
            ctx.add_issue("This value is used elsewhere. It must be unique.", code=ErrorCode.E2020_NOT_UNIQUE)

    rule = SchemaRule().refine(_check).with_hint("Must be unique.")
    return lambda form_values: rule


def _display_name(rule_name: str, attribute: Any, context: ValidationContext | None) -> str:
    ensure(isinstance(attribute, str) and attribute, missing_parameter(rule_name, "attribute"))
    if context is None:
        return attribute
    name = context.display_name(attribute)
    ensure(name is not None, unknown_variable(rule_name, attribute))
    return name


def _cross_field(attribute: str, fails: Callable[[Any, Any], bool], message: str,
                 hint: str) -> RuleBuilder:
    """Builder comparing the value with ``form_values[attribute]`` when that key is present."""

    def build(form_values: FormValues) -> Rule:
        def _check(value: Any, ctx: RefinementContext) -> None:
            if attribute in form_values and fails(value, form_values[attribute]):
                ctx.add_issue(message, code=ErrorCode.E2021_CROSS_FIELD_MISMATCH)

        return SchemaRule().refine(_check).with_hint(hint)

    return build


def same_as(attribute: str | None, context: ValidationContext | None = None) -> RuleBuilder:
    name = _display_name("same_as", attribute, context)
    return _cross_field(attribute, lambda value, other: not is_matching_value(value, other),
        f"Your answer must be the same as '{name}'.", f"Must match the value of '{name}'.")


def different_from(attribute: str | None, context: ValidationContext | None = None) -> RuleBuilder:
    name = _display_name("different_from", attribute, context)
    return _cross_field(attribute, is_matching_value,
        f"Your answer must be different from '{name}'.", f"Must be different from '{name}'.")


def _variable_parameter(rule_name: str, parameter: Mapping[str, Any] | None) -> tuple[Any, Any]:
    parameter = parameter or {}
    attribute, declared_type = parameter.get("attribute"), parameter.get("type")
    ensure(isinstance(attribute, str) and attribute, missing_parameter(rule_name, "attribute"))
    ensure(isinstance(declared_type, str) and declared_type, missing_parameter(rule_name, "type"))
    return attribute, declared_type


def greater_than_variable(parameter: Mapping[str, Any] | None, context: ValidationContext | None = None) -> RuleBuilder:
    attribute, declared_type = _variable_parameter("greater_than_variable", parameter)
    name = _display_name("greater_than_variable", attribute, context)
    return _cross_field(attribute,
        lambda value, other: compare(value, other, declared_type) < 0,
        f"Your answer must be greater than the value of '{name}'.",
        f"Must be greater than the value of '{name}'.")


def less_than_variable(parameter: Mapping[str, Any] | None, context: ValidationContext | None = None) -> RuleBuilder:
    attribute, declared_type = _variable_parameter("less_than_variable", parameter)
    name = _display_name("less_than_variable", attribute, context)
    return _cross_field(attribute,
        lambda value, other: compare(value, other, declared_type) > 0,
        f"Your answer must be less than the value of '{name}'.",
        f"Must be less than the value of '{name}'.")


# ============================================================================
# Escape hatch
# ============================================================================

def custom(schema: Any, hint: str | None = None) -> dict[str, Any]:
    """Declare a custom rule entry for ``make_validation_function``.

    ``schema`` is a Rule, anything pydantic can adapt, or a function
    ``(form_values, context) -> Rule`` (sync or async).
    """
    ensure(schema is not None, missing_parameter("custom", "schema"))
    if not is_rule_factory(schema):
        schema = as_rule(schema)
    return {"schema": schema, "hint": hint}


VALIDATIONS: dict[str, Callable[..., RuleBuilder]] = {
    "required": required,
    "min_length": min_length,
    "max_length": max_length,
    "min_value": min_value,
    "max_value": max_value,
    "min_selected": min_selected,
    "max_selected": max_selected,
    "pattern": pattern,
    "email": email,
    "unique": unique,
    "same_as": same_as,
    "different_from": different_from,
    "greater_than_variable": greater_than_variable,
    "less_than_variable": less_than_variable,
}
