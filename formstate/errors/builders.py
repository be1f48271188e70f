"""Configuration Error Builders

Ergonomic constructors for the errors raised when a rule is declared
incorrectly. Each returns the exception so call sites read as
``raise missing_parameter("min_length", "length")``.
"""
from __future__ import annotations

from typing import Any

from .types import ConfigurationError, ErrorCode


def configuration_error(message: str, **metadata: Any) -> ConfigurationError:
    """Generic configuration error."""
    return ConfigurationError(message, ErrorCode.E8000_CONFIGURATION_GENERIC, **metadata)


def missing_parameter(rule: str, parameter: str) -> ConfigurationError:
    """A catalogue factory was called without a parameter it needs."""
    return ConfigurationError(f"{parameter} must be specified for {rule} validation",
        ErrorCode.E8001_MISSING_PARAMETER, rule=rule, parameter=parameter)


def missing_context(rule: str) -> ConfigurationError:
    return ConfigurationError(f"Validation context must be provided when using {rule} validation",
        ErrorCode.E8002_MISSING_CONTEXT, rule=rule)


def unsupported_entity(rule: str, entity: str | None) -> ConfigurationError:
    return ConfigurationError(f"{rule} validation is not applicable to {entity or 'unknown'} entities",
        ErrorCode.E8003_UNSUPPORTED_ENTITY, rule=rule, entity=entity)


def unknown_variable(rule: str, attribute: str) -> ConfigurationError:
    """Cross-field rule referenced an attribute the codebook cannot resolve."""
    return ConfigurationError(f"Comparison variable '{attribute}' not found in codebook",
        ErrorCode.E8004_UNKNOWN_VARIABLE, rule=rule, attribute=attribute)


def ensure(condition: Any, error: ConfigurationError) -> None:
    """Raise ``error`` unless ``condition`` holds."""
    if not condition:
        raise error
