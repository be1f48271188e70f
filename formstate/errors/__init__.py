"""Error Handling System

Usage:
    from formstate.errors import ConfigurationError, Ok, Err, missing_parameter

    if length is None:
        raise missing_parameter("min_length", "length")
"""
from .types import (
    ErrorCode,
    FormEngineError,
    ConfigurationError,
    Ok,
    Err,
    Result,
)
from .builders import (
    configuration_error,
    missing_parameter,
    missing_context,
    unsupported_entity,
    unknown_variable,
    ensure,
)

__all__ = [
    "ErrorCode",
    "FormEngineError",
    "ConfigurationError",
    "Ok",
    "Err",
    "Result",
    "configuration_error",
    "missing_parameter",
    "missing_context",
    "unsupported_entity",
    "unknown_variable",
    "ensure",
]
