"""Validation Issues and the Error Tree

A single ``ErrorTree`` holds every issue for a form. Issues with an empty
path are form-level; the rest belong to the field named by the first path
segment (or by the whole dot-joined path). Updates replace one field's
slice of the tree and leave everything else in place.

Flattened format (camelCase keys are accepted on input):
{
    "form_errors": ["Server rejected the submission"],
    "field_errors": {"email": ["Enter a valid email address."]}
}
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from formstate.errors import ErrorCode

PathSegment = str | int


@dataclass(frozen=True, slots=True)
class Issue:
    """One violated constraint."""
    message: str
    path: tuple[PathSegment, ...] = ()
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC

    @property
    def is_form_level(self) -> bool: return not self.path

    @property
    def dotted_path(self) -> str: return ".".join(str(p) for p in self.path)

    def with_prefix(self, *segments: PathSegment) -> Issue:
        return Issue(message=self.message, path=(*segments, *self.path), code=self.code)

    def belongs_to(self, name: str) -> bool:
        """True when this issue addresses the field registered as ``name``."""
        return bool(self.path) and (self.path[0] == name or self.dotted_path == name)


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """Error half of a rule or resolver Result."""
    issues: tuple[Issue, ...]
    message: str = "Validation failed"

    @property
    def messages(self) -> list[str]: return [issue.message for issue in self.issues]

    def __str__(self) -> str:
        return f"{self.message}: {'; '.join(self.messages)}" if self.issues else self.message


class FlattenedErrors(BaseModel):
    """Form-level messages plus messages grouped by field name."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    form_errors: list[str] = Field(default_factory=list)
    field_errors: dict[str, list[str]] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ErrorTree:
    """Immutable list of issues with field-slice replacement."""
    issues: tuple[Issue, ...] = ()

    def __len__(self) -> int: return len(self.issues)

    def __iter__(self):
        return iter(self.issues)

    @property
    def form_issues(self) -> tuple[Issue, ...]:
        return tuple(issue for issue in self.issues if issue.is_form_level)

    @property
    def has_form_issues(self) -> bool: return any(issue.is_form_level for issue in self.issues)

    def field_issues(self, name: str) -> tuple[Issue, ...]:
        return tuple(issue for issue in self.issues if issue.belongs_to(name))

    def without_field(self, name: str) -> ErrorTree:
        return ErrorTree(tuple(issue for issue in self.issues if not issue.belongs_to(name)))

    def with_field(self, name: str, issues: Iterable[Issue]) -> ErrorTree:
        """Replace the slice belonging to ``name`` with ``issues`` (already prefixed)."""
        return ErrorTree((*self.without_field(name).issues, *issues))

    @property
    def form_errors(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.is_form_level]

    @property
    def field_errors(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for issue in self.issues:
            if issue.path:
                grouped.setdefault(str(issue.path[0]), []).append(issue.message)
        return grouped

    def flatten(self) -> FlattenedErrors:
        return FlattenedErrors(form_errors=self.form_errors, field_errors=self.field_errors)

    @classmethod
    def from_flattened(cls, errors: FlattenedErrors, code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC) -> ErrorTree:
        issues = [Issue(message, (), code) for message in errors.form_errors]
        for name, messages in errors.field_errors.items():
            issues.extend(Issue(message, (name,), code) for message in messages)
        return cls(tuple(issues))

    @classmethod
    def coerce(cls, value: ErrorTree | FlattenedErrors | Mapping[str, Any] | Iterable[Issue] | None) -> ErrorTree | None:
        """Accept the shapes callers use to inject errors."""
        if value is None or isinstance(value, ErrorTree):
            return value
        if isinstance(value, FlattenedErrors):
            return cls.from_flattened(value)
        if isinstance(value, Mapping):
            return cls.from_flattened(FlattenedErrors.model_validate(value))
        return cls(tuple(value))
