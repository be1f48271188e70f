"""Executable Validation Rules

A Rule turns a candidate value into ``Ok(data)`` or ``Err(ValidationFailure)``.
``SchemaRule`` is the workhorse: a pydantic TypeAdapter for the base type,
followed by refinements that report issues through a ``RefinementContext``.

Features:
- Frozen rules; builder methods return new instances
- Prefault substitution when the input is None
- Sync or async refinements, run only after the base type parses
- Collect-all issue accumulation
- Combination via ``&`` (both rules run, issues are concatenated)

Usage:
    rule = (SchemaRule(str, strict=True, prefault="")
            .refine(lambda value, ctx: len(value) < 3 and ctx.add_issue("Too short"))
            .with_hint("Enter at least 3 characters."))
    result = await rule.safe_parse(None)
    if result.is_err():
        print(result.unwrap_err().messages)
"""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from functools import cached_property
from types import GenericAlias
from typing import Any, Awaitable, Callable, NewType, get_origin

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from formstate.errors import Err, ErrorCode, Ok, Result

from .result import Issue, PathSegment, ValidationFailure

_MISSING: Any = object()

Refinement = Callable[[Any, "RefinementContext"], "Awaitable[None] | None"]

_PYDANTIC_CODES: dict[str, ErrorCode] = {
    "missing": ErrorCode.E2001_REQUIRED_FIELD_MISSING,
    "string_too_short": ErrorCode.E2003_OUT_OF_RANGE,
    "string_too_long": ErrorCode.E2003_OUT_OF_RANGE,
    "too_short": ErrorCode.E2003_OUT_OF_RANGE,
    "too_long": ErrorCode.E2003_OUT_OF_RANGE,
    "greater_than": ErrorCode.E2003_OUT_OF_RANGE,
    "greater_than_equal": ErrorCode.E2003_OUT_OF_RANGE,
    "less_than": ErrorCode.E2003_OUT_OF_RANGE,
    "less_than_equal": ErrorCode.E2003_OUT_OF_RANGE,
    "string_pattern_mismatch": ErrorCode.E2002_INVALID_FORMAT,
}


def issue_from_pydantic_error(error: dict[str, Any]) -> Issue:
    """Convert one entry of ``pydantic.ValidationError.errors()``."""
    err_type = error.get("type", "")
    if err_type in _PYDANTIC_CODES:
        code = _PYDANTIC_CODES[err_type]
    elif err_type.endswith(("_type", "_parsing")):
        code = ErrorCode.E2004_INVALID_TYPE
    else:
        code = ErrorCode.E2000_VALIDATION_GENERIC
    return Issue(message=error.get("msg", "Invalid value"), path=tuple(error.get("loc", ())), code=code)


class RefinementContext:
    """Issue collector handed to refinements."""

    def __init__(self):
        self._issues: list[Issue] = []

    def add_issue(self, message: str, *, path: tuple[PathSegment, ...] = (),
                  code: ErrorCode = ErrorCode.E2005_CONSTRAINT_VIOLATION) -> None:
        self._issues.append(Issue(message=message, path=tuple(path), code=code))

    def extend(self, issues: tuple[Issue, ...] | list[Issue]) -> None: self._issues.extend(issues)

    @property
    def issues(self) -> tuple[Issue, ...]: return tuple(self._issues)

    def has_issues(self) -> bool: return bool(self._issues)


class Rule(ABC):
    """Base class for executable rules."""

    @property
    @abstractmethod
    def hint(self) -> str | None:
        """Short description of the rule for display next to the field."""

    @abstractmethod
    async def safe_parse(self, value: Any) -> Result[Any, ValidationFailure]:
        """Run the rule. Never raises for a rejected value."""

    def __and__(self, other: Rule) -> AllOf: return AllOf((self, other))


@dataclass(frozen=True)
class SchemaRule(Rule):
    """pydantic-backed base type plus refinements."""
    schema: Any = Any
    strict: bool = False
    prefault: Any = _MISSING
    refinements: tuple[Refinement, ...] = ()
    hint_text: str | None = None

    @cached_property
    def _adapter(self) -> TypeAdapter:
        return TypeAdapter(self.schema)

    @property
    def hint(self) -> str | None: return self.hint_text

    def refine(self, refinement: Refinement) -> SchemaRule:
        return replace(self, refinements=(*self.refinements, refinement))

    def with_hint(self, hint: str | None) -> SchemaRule: return replace(self, hint_text=hint)

    def with_prefault(self, value: Any) -> SchemaRule: return replace(self, prefault=value)

    async def safe_parse(self, value: Any) -> Result[Any, ValidationFailure]:
        if value is None and self.prefault is not _MISSING:
            value = self.prefault
        try:
            data = self._adapter.validate_python(value, strict=self.strict or None)
        except PydanticValidationError as exc:
            return Err(ValidationFailure(tuple(issue_from_pydantic_error(e) for e in exc.errors())))

        ctx = RefinementContext()
        for refinement in self.refinements:
            outcome = refinement(data, ctx)
            if inspect.isawaitable(outcome):
                await outcome
        if ctx.has_issues():
            return Err(ValidationFailure(ctx.issues))
        return Ok(data)


@dataclass(frozen=True, slots=True)
class AllOf(Rule):
    """Run every rule against the same value and concatenate their issues."""
    rules: tuple[Rule, ...] = field(default_factory=tuple)

    @property
    def hint(self) -> str | None:
        hints = [rule.hint for rule in self.rules if rule.hint]
        return " ".join(hints) if hints else None

    def __and__(self, other: Rule) -> AllOf: return AllOf((*self.rules, other))

    async def safe_parse(self, value: Any) -> Result[Any, ValidationFailure]:
        issues: list[Issue] = []
        for rule in self.rules:
            result = await rule.safe_parse(value)
            if result.is_err():
                issues.extend(result.unwrap_err().issues)
        return Err(ValidationFailure(tuple(issues))) if issues else Ok(value)


def as_rule(schema: Any) -> Rule:
    """Wrap anything pydantic can adapt (types, models, Annotated constraints)."""
    return schema if isinstance(schema, Rule) else SchemaRule(schema)


def is_rule_factory(obj: Any) -> bool:
    """True for functions, partials and callable instances that build a rule.

    Classes and typing constructs (``Annotated[...]``, ``list[int]``,
    ``int | None``) are callable too, but they are schemas.
    """
    if isinstance(obj, (Rule, type, NewType, GenericAlias)) or not callable(obj):
        return False
    return get_origin(obj) is None
