# tslint_conventions/errors.py
"""
Error Types for the tslint-conventions Host Layer

The two rules never raise: malformed or unexpected tree shapes degrade to
"rule does not apply" for the node in question.  Everything *around* the
rules (reading configuration, reading and parsing source files, loading
lint fixtures) can fail, and those failures are reported through the
hierarchy below.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────┐
│  ConventionsError (base)                                            │
│  ├── ConfigurationError  - bad rule options / tslint.json           │
│  ├── SourceParseError    - unreadable or unsupported source unit    │
│  └── FixtureError        - malformed .ts.lint markup or test dir    │
└─────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error carries a code of the form TSC-NNNN:
  - 1000-1999: configuration errors
  - 2000-2999: source / front end errors
  - 3000-3999: fixture errors
  - 9000-9999: internal errors
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional


@unique
class ErrorPhase(Enum):
    """Which stage of a lint run produced the error."""
    CONFIGURATION = "configuration"
    PARSING = "parsing"
    FIXTURE = "fixture"
    INTERNAL = "internal"


class ErrorCode:
    """
    Structured error code ``TSC-NNNN``.
    """

    __slots__ = ("prefix", "number", "phase")

    def __init__(self, prefix: str, number: int, phase: ErrorPhase) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    UNKNOWN_RULE_OPTION = ErrorCode("TSC", 1000, ErrorPhase.CONFIGURATION)
    CONFLICTING_RULE_OPTIONS = ErrorCode("TSC", 1001, ErrorPhase.CONFIGURATION)
    INVALID_CONFIG_FILE = ErrorCode("TSC", 1002, ErrorPhase.CONFIGURATION)
    INVALID_RULE_ENTRY = ErrorCode("TSC", 1003, ErrorPhase.CONFIGURATION)

    UNREADABLE_SOURCE = ErrorCode("TSC", 2000, ErrorPhase.PARSING)
    UNSUPPORTED_LANGUAGE = ErrorCode("TSC", 2001, ErrorPhase.PARSING)

    MALFORMED_MARKUP = ErrorCode("TSC", 3000, ErrorPhase.FIXTURE)
    UNDEFINED_MESSAGE_ALIAS = ErrorCode("TSC", 3001, ErrorPhase.FIXTURE)
    MISSING_FIXTURE_CONFIG = ErrorCode("TSC", 3002, ErrorPhase.FIXTURE)

    INTERNAL_ERROR = ErrorCode("TSC", 9000, ErrorPhase.INTERNAL)


class ConventionsError(Exception):
    """
    Base exception for all tslint-conventions host errors.
    """

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        file: str = "",
        line: int = 0,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.file = file
        self.line = line
        self.cause = cause

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    def to_gcc_format(self) -> str:
        """``file:line: error[TSC-NNNN]: message``"""
        location = self.file or "<unknown>"
        if self.line:
            location = f"{location}:{self.line}"
        return f"{location}: error[{self.code}]: {self.message}"

    def __str__(self) -> str:
        if self.file:
            return self.to_gcc_format()
        return f"[{self.code}] {self.message}"


class ConfigurationError(ConventionsError):
    """Invalid rule options or an unusable ``tslint.json``."""

    default_code = ErrorCodes.UNKNOWN_RULE_OPTION


class SourceParseError(ConventionsError):
    """A source unit could not be read or handed to the front end."""

    default_code = ErrorCodes.UNREADABLE_SOURCE


class FixtureError(ConventionsError):
    """Malformed ``.ts.lint`` markup or fixture directory."""

    default_code = ErrorCodes.MALFORMED_MARKUP


__all__ = [
    "ErrorPhase",
    "ErrorCode",
    "ErrorCodes",
    "ConventionsError",
    "ConfigurationError",
    "SourceParseError",
    "FixtureError",
]
