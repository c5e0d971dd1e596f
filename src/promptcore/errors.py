"""
Error taxonomy for the prompt system.

Every failure the prompt system reports is classified into one of the
ErrorKind members. The exception types below carry their kind so callers
can route them through an ErrorHandler without a lookup table.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of error kinds tracked by the error ledger."""

    TEMPLATE_PARSE_ERROR = "template_parse_error"
    VARIABLE_SUBSTITUTION_ERROR = "variable_substitution_error"
    VALIDATION_ERROR = "validation_error"
    CONFIGURATION_ERROR = "configuration_error"
    PROMPT_NOT_FOUND = "prompt_not_found"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: Any) -> ErrorKind:
        """
        Map a kind-like value to an ErrorKind.

        Accepts members, their string values, and hyphenated spellings
        ("prompt-not-found"). Anything else becomes UNKNOWN.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            for kind in cls:
                if kind.value == normalized:
                    return kind
        return cls.UNKNOWN


class PromptSystemError(Exception):
    """Base exception for prompt system errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class TemplateParseError(PromptSystemError):
    """Raised when a prompt definition cannot be read or parsed."""

    kind = ErrorKind.TEMPLATE_PARSE_ERROR

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to parse prompt definition '{source}': {reason}")


class TemplateProcessingError(PromptSystemError):
    """Raised when a template fails structural validation before resolution."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = list(errors or [])
        super().__init__(message)


class VariableSubstitutionError(PromptSystemError):
    """Raised when substitution fails for reasons other than a missing path."""

    kind = ErrorKind.VARIABLE_SUBSTITUTION_ERROR


class ConfigurationError(PromptSystemError):
    """Raised when a named setting holds an invalid value."""

    kind = ErrorKind.CONFIGURATION_ERROR

    def __init__(self, component: str, reason: str):
        self.component = component
        self.reason = reason
        super().__init__(f"Configuration error in {component}: {reason}")


class PromptNotFoundError(PromptSystemError):
    """Raised when a requested prompt identifier has no definition."""

    kind = ErrorKind.PROMPT_NOT_FOUND

    def __init__(self, prompt_id: str, available: list[str] | None = None):
        self.prompt_id = prompt_id
        self.available = list(available or [])
        super().__init__(f"Prompt '{prompt_id}' not found. Available prompts: {self.available}")


__all__ = [
    "ConfigurationError",
    "ErrorKind",
    "PromptNotFoundError",
    "PromptSystemError",
    "TemplateParseError",
    "TemplateProcessingError",
    "VariableSubstitutionError",
]
