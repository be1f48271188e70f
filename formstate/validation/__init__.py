"""Field Validation System

Rules are executable checks that return ``Ok(data)`` or
``Err(ValidationFailure)``. The catalogue builds rules from declarative
parameters; the resolver runs a field's validator, static or dynamic,
against a candidate value.

Key Features:
- pydantic-backed base types with refinements and hints
- Built-in catalogue (required, bounds, pattern, email, unique, cross-field)
- Dynamic validators resolved from current form values
- Single error tree with form-level and field-level issues
- Declarative props helpers for field components

Usage:
    from formstate.validation import min_length, validate_field_value

    result = await validate_field_value("", min_length(1), {})
    if result.is_err():
        print(result.unwrap_err().messages)
"""

from .result import (
    Issue,
    ValidationFailure,
    ErrorTree,
    FlattenedErrors,
)

from .rules import (
    Rule,
    SchemaRule,
    AllOf,
    RefinementContext,
    as_rule,
    issue_from_pydantic_error,
)

from .context import (
    ValidationContext,
    Subject,
    VariableDefinition,
    NetworkEntity,
    Codebook,
    MappingCodebook,
)

from .catalogue import (
    VALIDATIONS,
    REQUIRED_MESSAGE,
    required,
    min_length,
    max_length,
    min_value,
    max_value,
    min_selected,
    max_selected,
    pattern,
    email,
    unique,
    same_as,
    different_from,
    greater_than_variable,
    less_than_variable,
    custom,
)

from .resolver import (
    StaticValidator,
    DynamicValidator,
    FieldValidator,
    as_validator,
    validate_field_value,
    GENERIC_FAILURE_MESSAGE,
    GENERIC_ISSUE_MESSAGE,
)

from .props import (
    make_validation_function,
    make_validation_hints,
    props_from_protocol,
    RULE_FAILURE_MESSAGE,
)

__all__ = [
    # Results
    "Issue",
    "ValidationFailure",
    "ErrorTree",
    "FlattenedErrors",
    # Rules
    "Rule",
    "SchemaRule",
    "AllOf",
    "RefinementContext",
    "as_rule",
    "issue_from_pydantic_error",
    # Context
    "ValidationContext",
    "Subject",
    "VariableDefinition",
    "NetworkEntity",
    "Codebook",
    "MappingCodebook",
    # Catalogue
    "VALIDATIONS",
    "REQUIRED_MESSAGE",
    "required",
    "min_length",
    "max_length",
    "min_value",
    "max_value",
    "min_selected",
    "max_selected",
    "pattern",
    "email",
    "unique",
    "same_as",
    "different_from",
    "greater_than_variable",
    "less_than_variable",
    "custom",
    # Resolver
    "StaticValidator",
    "DynamicValidator",
    "FieldValidator",
    "as_validator",
    "validate_field_value",
    "GENERIC_FAILURE_MESSAGE",
    "GENERIC_ISSUE_MESSAGE",
    # Props
    "make_validation_function",
    "make_validation_hints",
    "props_from_protocol",
    "RULE_FAILURE_MESSAGE",
]
