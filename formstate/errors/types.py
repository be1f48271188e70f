"""Error Taxonomy and Result Types

Two kinds of failure flow through the engine:

- Expected outcomes (a value failing a rule) travel as data, wrapped in the
  Ok/Err Result monad returned by rule execution and the resolver.
- Programmer mistakes (a catalogue factory missing a parameter) are raised as
  ConfigurationError and are never converted into field issues.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, NoReturn, TypeVar, Union, final

T = TypeVar("T")
E = TypeVar("E")


class ErrorCode(Enum):
    """Hierarchical error code taxonomy.

    E2xxx: Validation outcomes attached to fields or the form
    E8xxx: Configuration (programmer) errors
    E9xxx: Internal/Unknown errors
    """
    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2001_REQUIRED_FIELD_MISSING = 2001
    E2002_INVALID_FORMAT = 2002
    E2003_OUT_OF_RANGE = 2003
    E2004_INVALID_TYPE = 2004
    E2005_CONSTRAINT_VIOLATION = 2005
    E2010_INVALID_EMAIL = 2010
    E2020_NOT_UNIQUE = 2020
    E2021_CROSS_FIELD_MISMATCH = 2021
    E2030_SUBMISSION_REJECTED = 2030

    # Configuration (E8xxx)
    E8000_CONFIGURATION_GENERIC = 8000
    E8001_MISSING_PARAMETER = 8001
    E8002_MISSING_CONTEXT = 8002
    E8003_UNSUPPORTED_ENTITY = 8003
    E8004_UNKNOWN_VARIABLE = 8004

    # Internal (E9xxx)
    E9000_INTERNAL_GENERIC = 9000
    E9001_UNEXPECTED_ERROR = 9001


class FormEngineError(Exception):
    """Base exception carrying an error code and structured metadata."""

    def __init__(self, code: ErrorCode, message: str, **metadata: Any):
        self.code = code
        self.message = message
        self.metadata = metadata
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


class ConfigurationError(FormEngineError):
    """A rule was declared incorrectly.

    Raised synchronously by catalogue factories and allowed to propagate
    through the resolver and the store untouched.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.E8000_CONFIGURATION_GENERIC, **metadata: Any):
        super().__init__(code, message, **metadata)


# ============================================================================
# Result monad
# ============================================================================

@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool: return True

    def is_err(self) -> bool: return False

    def unwrap(self) -> T: return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result."""
    error: E

    def is_ok(self) -> bool: return False

    def is_err(self) -> bool: return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_err(self) -> E: return self.error


Result = Union[Ok[T], Err[E]]
