"""Declarative validation props.

Field components describe their validation as a flat mapping of catalogue
names to parameters, for example ``{"required": True, "min_length": 3}``,
optionally with ``custom`` entries and a ``validation_context``. The helpers
here turn that mapping into a single dynamic validator and into the list of
hints shown next to the field.
"""
from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any, Callable

from formstate.errors import ConfigurationError, ErrorCode
from formstate.logging import validation_logger

from .catalogue import VALIDATIONS, FormValues, custom as custom_entry
from .context import ValidationContext
from .rules import RefinementContext, Rule, SchemaRule, as_rule, is_rule_factory

log = validation_logger()

RULE_FAILURE_MESSAGE = "An error occurred while validating."

# camelCase protocol keys to catalogue names
PROTOCOL_KEYS = {
    "required": "required",
    "minLength": "min_length",
    "maxLength": "max_length",
    "minValue": "min_value",
    "maxValue": "max_value",
    "minSelected": "min_selected",
    "maxSelected": "max_selected",
    "pattern": "pattern",
    "email": "email",
    "unique": "unique",
    "sameAs": "same_as",
    "differentFrom": "different_from",
    "greaterThanVariable": "greater_than_variable",
    "lessThanVariable": "less_than_variable",
}


def _builtin_entries(props: Mapping[str, Any]) -> list[tuple[str, Any]]:
    entries = []
    for name, parameter in props.items():
        if name not in VALIDATIONS:
            continue
        if name == "required" and parameter is not True:
            continue
        entries.append((name, parameter))
    return entries


def _custom_entries(props: Mapping[str, Any]) -> list[dict[str, Any]]:
    entries = props.get("custom")
    if not entries:
        return []
    entries = entries if isinstance(entries, (list, tuple)) else [entries]
    return [custom_entry(entry.get("schema"), entry.get("hint")) for entry in entries]


async def _resolve_custom(schema: Any, form_values: FormValues, context: ValidationContext | None) -> Rule:
    if is_rule_factory(schema):
        schema = schema(form_values, context)
        if inspect.isawaitable(schema):
            schema = await schema
    return as_rule(schema)


def make_validation_function(props: Mapping[str, Any]) -> Callable[[FormValues], Rule]:
    """Combine the built-in and custom rules named in ``props`` into one dynamic validator.

    Every rule runs and contributes its own issues. A rule that raises adds a
    single generic issue instead; configuration errors still propagate.
    """
    context: ValidationContext | None = props.get("validation_context")
    builtins = _builtin_entries(props)
    customs = _custom_entries(props)

    def build(form_values: FormValues) -> Rule:
        async def _run_all(value: Any, ctx: RefinementContext) -> None:
            for name, parameter in builtins:
                try:
                    rule = VALIDATIONS[name](parameter, context)(form_values)
                    result = await rule.safe_parse(value)
                except ConfigurationError:
                    raise
                except Exception as exc:
                    log.error("validation_rule_failed", rule=name, error=str(exc), exc_info=True)
                    ctx.add_issue(RULE_FAILURE_MESSAGE, code=ErrorCode.E9001_UNEXPECTED_ERROR)
                    continue
                if result.is_err():
                    ctx.extend(result.unwrap_err().issues)

            for entry in customs:
                try:
                    rule = await _resolve_custom(entry["schema"], form_values, context)
                    result = await rule.safe_parse(value)
                except ConfigurationError:
                    raise
                except Exception as exc:
                    log.error("validation_rule_failed", rule="custom", error=str(exc), exc_info=True)
                    ctx.add_issue(RULE_FAILURE_MESSAGE, code=ErrorCode.E9001_UNEXPECTED_ERROR)
                    continue
                if result.is_err():
                    ctx.extend(result.unwrap_err().issues)

        return SchemaRule().refine(_run_all)

    return build


def make_validation_hints(props: Mapping[str, Any]) -> list[str] | None:
    """Hints for every rule in ``props``; None when there are none."""
    context: ValidationContext | None = props.get("validation_context")
    hints: list[str] = []

    for name, parameter in _builtin_entries(props):
        if name == "required":
            continue
        try:
            hint = VALIDATIONS[name](parameter, context)({}).hint
        except ConfigurationError as exc:
            log.warning("validation_hint_unavailable", rule=name, error=str(exc))
            continue
        if hint:
            hints.append(hint)

    hints.extend(entry["hint"] for entry in _custom_entries(props) if entry.get("hint"))
    return hints or None


def props_from_protocol(validation: Mapping[str, Any] | None,
                        context: ValidationContext | None = None) -> dict[str, Any]:
    """Translate a protocol validation object (camelCase keys) into validation props.

    ``greaterThanVariable``/``lessThanVariable`` given as a bare attribute id
    are expanded with the variable type from the codebook.
    """
    props: dict[str, Any] = {}
    for key, parameter in (validation or {}).items():
        name = PROTOCOL_KEYS.get(key)
        if name is None:
            continue
        if name in ("greater_than_variable", "less_than_variable") and isinstance(parameter, str):
            variable = context.codebook.resolve(parameter) if context and context.codebook else None
            parameter = {"attribute": parameter, "type": variable.type if variable else None}
        props[name] = parameter
    if context is not None:
        props["validation_context"] = context
    return props
