"""Reactive form state and validation engine.

Usage:
    from formstate import create_form_store, min_length, email

    store = create_form_store()
    store.register_form(on_submit=save)
    store.register_field("user.email", initial_value="", validation=email())
    store.set_field_value("user.email", "someone@example.org")
    if await store.validate_form():
        await store.submit_form()
"""
from .errors import ConfigurationError, ErrorCode, FormEngineError
from .paths import get_value, set_value
from .comparator import compare, is_matching_value
from .validation import (
    Issue,
    ErrorTree,
    FlattenedErrors,
    ValidationFailure,
    Rule,
    SchemaRule,
    ValidationContext,
    Subject,
    MappingCodebook,
    VALIDATIONS,
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
    validate_field_value,
    make_validation_function,
    make_validation_hints,
    props_from_protocol,
)
from .store import FormStore, FormSnapshot, FieldEntry, FieldMeta, SubmissionResult, create_form_store
from .utils import Debounced, debounce

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ErrorCode",
    "FormEngineError",
    "get_value",
    "set_value",
    "compare",
    "is_matching_value",
    "Issue",
    "ErrorTree",
    "FlattenedErrors",
    "ValidationFailure",
    "Rule",
    "SchemaRule",
    "ValidationContext",
    "Subject",
    "MappingCodebook",
    "VALIDATIONS",
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
    "validate_field_value",
    "make_validation_function",
    "make_validation_hints",
    "props_from_protocol",
    "FormStore",
    "FormSnapshot",
    "FieldEntry",
    "FieldMeta",
    "SubmissionResult",
    "create_form_store",
    "Debounced",
    "debounce",
]
