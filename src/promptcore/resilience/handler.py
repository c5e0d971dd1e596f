"""
Error handler for the prompt system.

Classifies failures into ErrorKind members, computes a recovery strategy
for each, keeps per-kind counts and timestamps, and fans events out to
registered callbacks. Nothing in this module raises from log_error or
handle_error, whatever the caller passes in.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from promptcore.config import ResilienceSettings
from promptcore.errors import ErrorKind

from .guards import GuardedResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorCallback = Callable[[ErrorKind, str, Any], None]

CONTEXT_SERIALIZATION_FAILED = "[Context serialization failed]"


@dataclass(frozen=True)
class RecoveryStrategy:
    """How a caller should react to an error kind."""

    use_simple_prompt: bool
    error_message: str
    fallback_prompt_id: str | None = None


@dataclass
class ErrorStat:
    """Ledger entry for one error kind."""

    count: int = 0
    last_occurred: datetime | None = None


@dataclass
class RecoveryAssessment:
    """Result of validate_recovery_capabilities()."""

    can_recover: bool
    issues: list[str] = field(default_factory=list)


def _get(context: Any, key: str, default: Any = None) -> Any:
    if isinstance(context, Mapping):
        value = context.get(key)
        if value is not None and value != "":
            return value
    return default


def _as_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value]
    return []


def _template_parse_message(context: Any) -> str:
    prompt_id = _get(context, "prompt_id", "unknown")
    original_error = _get(context, "original_error", "Unknown parsing error")
    return (
        f"Template parsing failed for '{prompt_id}': {original_error}. "
        "Please check the template syntax and structure."
    )


def _variable_substitution_message(context: Any) -> str:
    prompt_id = _get(context, "prompt_id", "unknown")
    original_error = _get(context, "original_error", "Unknown substitution error")
    missing = _as_list(_get(context, "missing_variables"))

    message = f"Variable substitution failed for '{prompt_id}': {original_error}"
    if missing:
        message += f". Missing variables: {', '.join(missing)}"
    return message + ". Please check template variable definitions and context data."


def _validation_message(context: Any) -> str:
    prompt_id = _get(context, "prompt_id", "unknown")
    errors = _as_list(_get(context, "errors"))
    suggestions = _as_list(_get(context, "suggestions"))

    message = f"Prompt validation failed for '{prompt_id}'"
    if errors:
        message += f": {', '.join(errors)}"
    if suggestions:
        message += f". Suggestions: {', '.join(suggestions)}"
    return message


def _configuration_message(context: Any) -> str:
    component = _get(context, "component", "unknown component")
    original_error = _get(context, "original_error", "Unknown configuration error")
    return (
        f"Configuration error in {component}: {original_error}. "
        "Please check system configuration and settings."
    )


def _prompt_not_found_message(context: Any) -> str:
    requested = _get(context, "requested_type") or _get(context, "prompt_id", "unknown")
    available = _as_list(_get(context, "available_types"))
    if available:
        return (
            f"Prompt '{requested}' not found. Available prompt types: {', '.join(available)}. "
            "Please ensure the required prompt template is properly configured."
        )
    return (
        "No prompts are currently loaded. Please ensure prompt templates are properly "
        "configured and available in the templates directory."
    )


def _unknown_message(context: Any) -> str:
    return "Unknown error occurred in the prompt system. Please check system logs and configuration."


_MESSAGE_BUILDERS: dict[ErrorKind, Callable[[Any], str]] = {
    ErrorKind.TEMPLATE_PARSE_ERROR: _template_parse_message,
    ErrorKind.VARIABLE_SUBSTITUTION_ERROR: _variable_substitution_message,
    ErrorKind.VALIDATION_ERROR: _validation_message,
    ErrorKind.CONFIGURATION_ERROR: _configuration_message,
    ErrorKind.PROMPT_NOT_FOUND: _prompt_not_found_message,
    ErrorKind.UNKNOWN: _unknown_message,
}


class ErrorHandler:
    """
    Error ledger and recovery-strategy engine.

    Construct one per process (or per test) and hand it to the components
    that should report through it. All ledger updates happen under a lock,
    so a handler can be shared by worker threads.

    Usage:
        handler = ErrorHandler()
        handler.on_error(lambda kind, message, context: ...)
        payload = handler.with_error_handling(
            lambda: resolver.process_template(prompt, variables),
            ErrorKind.TEMPLATE_PARSE_ERROR,
            {"prompt_id": prompt.id},
        )
    """

    def __init__(
        self,
        settings: ResilienceSettings | None = None,
        log: logging.Logger | None = None,
    ):
        """
        Initialize the error handler.

        Args:
            settings: Resilience settings (defaults when None)
            log: Logger to emit error lines on (module logger when None)
        """
        self.settings = settings or ResilienceSettings()
        self._logger = log or logger
        self._lock = threading.Lock()
        self._counts: dict[ErrorKind, int] = dict.fromkeys(ErrorKind, 0)
        self._last_errors: dict[ErrorKind, datetime] = {}
        self._callbacks: list[ErrorCallback] = []

    def handle_error(self, kind: ErrorKind | str, context: Any = None) -> RecoveryStrategy:
        """
        Compute the recovery strategy for an error kind.

        Pure: does not touch the ledger, log, or notify callbacks.

        Args:
            kind: Error kind (unrecognized values are treated as UNKNOWN)
            context: Mapping with fields used in the message (prompt_id, original_error, ...)

        Returns:
            RecoveryStrategy for the kind
        """
        error_kind = ErrorKind.coerce(kind)
        try:
            message = _MESSAGE_BUILDERS[error_kind](context)
        except Exception:
            message = _unknown_message(context)
        return RecoveryStrategy(use_simple_prompt=False, error_message=message)

    def log_error(self, kind: ErrorKind | str, message: str, context: Any = None) -> None:
        """
        Record an error occurrence and notify callbacks.

        Args:
            kind: Error kind
            message: Human-readable message
            context: Arbitrary diagnostic data; serialized best-effort
        """
        error_kind = ErrorKind.coerce(kind)

        with self._lock:
            self._counts[error_kind] = self._counts.get(error_kind, 0) + 1
            self._last_errors[error_kind] = datetime.now(UTC)
            count = self._counts[error_kind]
            callbacks = list(self._callbacks)

        if self.settings.console_logging:
            prefix = self.settings.log_prefix
            self._logger.error(f"{prefix} {error_kind.value}: {message}")
            if context:
                self._logger.error(f"Context: {self.format_context(context)}")
            if count > 1:
                self._logger.warning(f"This error has occurred {count} times")

        for callback in callbacks:
            try:
                callback(error_kind, message, context)
            except Exception as e:
                if self.settings.console_logging:
                    self._logger.error(f"{self.settings.log_prefix} Error in error callback: {e}")

    def format_context(self, context: Any) -> str:
        """Serialize context for a log line, never raising."""
        if context is None:
            return ""
        try:
            text = json.dumps(context, indent=2, default=str)
        except Exception:
            return CONTEXT_SERIALIZATION_FAILED

        limit = self.settings.max_context_length
        if len(text) > limit:
            text = text[:limit] + "..."
        return text

    def on_error(self, callback: ErrorCallback) -> None:
        """
        Register a callback for error notifications.

        Args:
            callback: Function that receives (kind, message, context)
        """
        with self._lock:
            self._callbacks.append(callback)

    def remove_error_callback(self, callback: ErrorCallback) -> bool:
        """Unregister a callback. Returns True if it was registered."""
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                return False
            return True

    @property
    def callback_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def get_error_stats(self) -> dict[ErrorKind, ErrorStat]:
        """Return count and last occurrence for every error kind."""
        with self._lock:
            return {
                kind: ErrorStat(
                    count=self._counts.get(kind, 0),
                    last_occurred=self._last_errors.get(kind),
                )
                for kind in ErrorKind
            }

    def clear_error_stats(self) -> None:
        """Reset all counts and timestamps."""
        with self._lock:
            self._counts = dict.fromkeys(ErrorKind, 0)
            self._last_errors.clear()

    def is_error_frequent(self, kind: ErrorKind | str, threshold: int | None = None) -> bool:
        """
        Check if an error kind has occurred at least threshold times.

        Args:
            kind: Error kind
            threshold: Count to compare against (settings.frequent_threshold when None)
        """
        if threshold is None:
            threshold = self.settings.frequent_threshold
        with self._lock:
            return self._counts.get(ErrorKind.coerce(kind), 0) >= threshold

    def validate_recovery_capabilities(self) -> RecoveryAssessment:
        """
        Assess whether the system can still recover from errors.

        Flags kinds at or above the critical threshold, and the absence of
        any registered callback.
        """
        issues: list[str] = []

        frequent = [
            kind.value
            for kind in ErrorKind
            if self.is_error_frequent(kind, self.settings.critical_threshold)
        ]
        if frequent:
            issues.append(f"Frequent errors detected: {', '.join(frequent)}")

        if self.callback_count == 0:
            issues.append(
                "No callbacks registered for error notifications - errors may not be properly handled"
            )

        return RecoveryAssessment(can_recover=not issues, issues=issues)

    def attempt(
        self,
        operation: Callable[[], T],
        kind: ErrorKind | str,
        context: Any = None,
    ) -> GuardedResult[T]:
        """
        Run an operation, converting any exception into a failed result.

        Args:
            operation: Zero-argument callable
            kind: Error kind to record on failure
            context: Diagnostic context merged with original_error on failure

        Returns:
            GuardedResult carrying the value or the error and strategy
        """
        try:
            return GuardedResult.success(operation())
        except Exception as e:
            return self._record_failure(e, kind, context)

    async def attempt_async(
        self,
        operation: Callable[[], Awaitable[T]],
        kind: ErrorKind | str,
        context: Any = None,
    ) -> GuardedResult[T]:
        """Async version of attempt() for operations returning an awaitable."""
        try:
            return GuardedResult.success(await operation())
        except Exception as e:
            return self._record_failure(e, kind, context)

    def with_error_handling(
        self,
        operation: Callable[[], T],
        kind: ErrorKind | str,
        context: Any = None,
    ) -> T | None:
        """Run an operation; return its value, or None if it raised."""
        return self.attempt(operation, kind, context).value

    async def with_async_error_handling(
        self,
        operation: Callable[[], Awaitable[T]],
        kind: ErrorKind | str,
        context: Any = None,
    ) -> T | None:
        """Await an operation; return its value, or None if it raised."""
        result = await self.attempt_async(operation, kind, context)
        return result.value

    def _record_failure(
        self,
        error: Exception,
        kind: ErrorKind | str,
        context: Any,
    ) -> GuardedResult[Any]:
        if isinstance(context, Mapping):
            merged: dict[str, Any] = dict(context)
        elif context is None:
            merged = {}
        else:
            merged = {"context": context}
        merged["original_error"] = str(error) or type(error).__name__

        strategy = self.handle_error(kind, merged)
        self.log_error(kind, strategy.error_message, merged)
        return GuardedResult.failure(error, strategy)
