"""promptcore - prompt templating and error resilience for code review prompts.

Resolves declarative prompt templates against runtime variables into
request payloads, and classifies, records and recovers from failures in
templating, configuration and presentation code.
"""

from .errors import (
    ConfigurationError,
    ErrorKind,
    PromptNotFoundError,
    PromptSystemError,
    TemplateParseError,
    TemplateProcessingError,
    VariableSubstitutionError,
)
from .prompts import (
    UNDEFINED,
    PromptCategory,
    PromptRegistry,
    PromptTemplate,
    ResolvedPayload,
    TemplateResolver,
    ValidationResult,
)
from .resilience import ErrorHandler, GuardedResult, RecoveryStrategy

__version__ = "0.1.0"

__all__ = [
    "UNDEFINED",
    "ConfigurationError",
    "ErrorHandler",
    "ErrorKind",
    "GuardedResult",
    "PromptCategory",
    "PromptNotFoundError",
    "PromptRegistry",
    "PromptSystemError",
    "PromptTemplate",
    "RecoveryStrategy",
    "ResolvedPayload",
    "TemplateParseError",
    "TemplateProcessingError",
    "TemplateResolver",
    "ValidationResult",
    "VariableSubstitutionError",
]
