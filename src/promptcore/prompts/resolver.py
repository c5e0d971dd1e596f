"""
Template resolver: turns a prompt definition plus variables into a payload.

Placeholders use the ``${dotted.path}`` form. A path that cannot be walked
through the variable set leaves its placeholder in place, so a partially
populated variable set still produces a payload that shows what is missing.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from promptcore.errors import ErrorKind, TemplateProcessingError, VariableSubstitutionError

from .models import UNDEFINED, PromptMetadata, PromptTemplate, ResolvedPayload, ValidationResult

if TYPE_CHECKING:
    from promptcore.resilience import ErrorHandler

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\$\{([^}]+)\}")
PATH_SEPARATOR = "."
CYCLE_MARKER = "[Object]"

# Returned by _lookup when a path does not resolve; distinct from None/UNDEFINED.
_MISSING = object()


def _lookup(path: str, variables: Mapping[str, Any]) -> Any:
    """Walk a dotted path one segment at a time.

    Returns _MISSING if any segment is absent or the node being walked is
    not a mapping.
    """
    current: Any = variables
    for part in path.split(PATH_SEPARATOR):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _has_cycle(value: Any, ancestors: set[int] | None = None) -> bool:
    """Check whether a container reaches itself through its own children."""
    if not isinstance(value, (Mapping, list, tuple)):
        return False
    if ancestors is None:
        ancestors = set()
    if id(value) in ancestors:
        return True

    ancestors.add(id(value))
    children = value.values() if isinstance(value, Mapping) else value
    try:
        return any(_has_cycle(child, ancestors) for child in children)
    finally:
        ancestors.discard(id(value))


def _json_default(value: Any) -> Any:
    if value is UNDEFINED:
        return None
    return str(value)


def value_to_string(value: Any) -> str:
    """Render a resolved variable value as placeholder replacement text."""
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (Mapping, list, tuple)):
        if _has_cycle(value):
            return CYCLE_MARKER
        return json.dumps(value, indent=2, default=_json_default)
    return str(value)


def extract_variable_paths(text: str) -> list[str]:
    """Return the trimmed paths of every placeholder in text, in order."""
    return [match.strip() for match in VARIABLE_PATTERN.findall(text)]


class TemplateResolver:
    """
    Resolves prompt templates against variable sets.

    The resolver holds no per-call state; one instance can serve any number
    of resolutions. When an ErrorHandler is given, validation and
    substitution failures are recorded on it before being raised.
    """

    def __init__(self, error_handler: ErrorHandler | None = None):
        self._error_handler = error_handler

    def validate_template(self, template: Any) -> ValidationResult:
        """
        Validate the structure of a template body.

        Args:
            template: Body mapping (task, context, instructions, output_format, variables)

        Returns:
            ValidationResult; a body with only warnings is still valid
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not template or not isinstance(template, Mapping):
            errors.append("Template is null or undefined")
            return ValidationResult.from_messages(errors, warnings)

        task = template.get("task")
        if not isinstance(task, str) or not task.strip():
            errors.append("Template task cannot be empty")

        instructions = template.get("instructions")
        if not isinstance(instructions, str) or not instructions.strip():
            errors.append("Template must have non-empty instructions field")

        if not isinstance(template.get("context"), Mapping):
            errors.append("Template must have a context object")

        if not isinstance(template.get("output_format"), Mapping):
            errors.append("Template must have an output_format object")

        if not isinstance(template.get("variables"), list):
            warnings.append("Template should have a variables array listing expected variables")

        return ValidationResult.from_messages(errors, warnings)

    def substitute_variables(self, template: str, variables: Mapping[str, Any]) -> str:
        """
        Replace ``${path}`` placeholders in a string.

        Args:
            template: Text containing placeholders
            variables: Nested mapping of variable values

        Returns:
            Text with every resolvable placeholder replaced
        """
        if not isinstance(template, str):
            return template

        def replace(match: re.Match[str]) -> str:
            value = _lookup(match.group(1).strip(), variables)
            if value is _MISSING:
                return match.group(0)
            return value_to_string(value)

        return VARIABLE_PATTERN.sub(replace, template)

    def process_template(
        self,
        prompt: PromptTemplate | None,
        variables: Mapping[str, Any] | None,
    ) -> ResolvedPayload:
        """
        Resolve a prompt definition into a payload.

        Args:
            prompt: Prompt definition; its body is never modified
            variables: Variable set for this call

        Returns:
            ResolvedPayload with the substituted body

        Raises:
            TemplateProcessingError: If the prompt is missing or its body is invalid
            VariableSubstitutionError: If substitution fails unexpectedly
        """
        if prompt is None:
            raise TemplateProcessingError(
                "Template processing failed: Template is null or undefined",
                ["Template is null or undefined"],
            )

        variables = variables if variables is not None else {}

        validation = self.validate_template(prompt.template)
        if not validation.is_valid:
            if self._error_handler is not None:
                context = {"prompt_id": prompt.id, "errors": validation.errors}
                strategy = self._error_handler.handle_error(ErrorKind.VALIDATION_ERROR, context)
                self._error_handler.log_error(
                    ErrorKind.VALIDATION_ERROR, strategy.error_message, context
                )
            raise TemplateProcessingError(
                f"Template processing failed: {', '.join(validation.errors)}",
                validation.errors,
            )

        body = copy.deepcopy(prompt.template)
        variables_used: list[str] = []

        try:
            for key, value in body.items():
                if key == "variables":
                    continue
                body[key] = self._process_value(value, variables, variables_used, set())
        except RecursionError as e:
            self._report_substitution_failure(prompt, variables, e)
            raise VariableSubstitutionError(
                f"Template '{prompt.id}' is nested too deeply to resolve"
            ) from e
        except Exception as e:
            self._report_substitution_failure(prompt, variables, e)
            raise VariableSubstitutionError(
                f"Variable substitution failed for '{prompt.id}': {e}"
            ) from e

        for name in prompt.declared_variables:
            if name not in variables_used:
                variables_used.append(name)

        logger.debug(
            f"Resolved prompt '{prompt.id}' using {len(variables_used)} variable(s)"
        )
        return ResolvedPayload(
            content=body,
            metadata=copy.deepcopy(prompt.metadata) if prompt.metadata else PromptMetadata(),
            variables_used=variables_used,
        )

    def _process_value(
        self,
        value: Any,
        variables: Mapping[str, Any],
        variables_used: list[str],
        visited: set[int],
    ) -> Any:
        if isinstance(value, str):
            for path in extract_variable_paths(value):
                if path not in variables_used:
                    variables_used.append(path)
            return self.substitute_variables(value, variables)

        if isinstance(value, (dict, list)):
            if id(value) in visited:
                return value
            visited.add(id(value))
            if isinstance(value, dict):
                for key in value:
                    value[key] = self._process_value(value[key], variables, variables_used, visited)
            else:
                for index, item in enumerate(value):
                    value[index] = self._process_value(item, variables, variables_used, visited)

        return value

    def _report_substitution_failure(
        self,
        prompt: PromptTemplate,
        variables: Mapping[str, Any],
        error: BaseException,
    ) -> None:
        if self._error_handler is None:
            return
        context = {
            "prompt_id": prompt.id,
            "variables": list(variables.keys()),
            "original_error": str(error) or type(error).__name__,
        }
        strategy = self._error_handler.handle_error(ErrorKind.VARIABLE_SUBSTITUTION_ERROR, context)
        self._error_handler.log_error(
            ErrorKind.VARIABLE_SUBSTITUTION_ERROR, strategy.error_message, context
        )
