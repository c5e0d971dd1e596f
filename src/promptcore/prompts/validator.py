"""
Validation of complete prompt definitions.

TemplateResolver.validate_template() only checks what resolution needs.
PromptValidator checks whole definition records as they come off disk:
identity fields, body, config, and how the three agree with each other.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from promptcore.config import ValidatorSettings

from .models import PromptCategory, PromptTemplate, ValidationResult
from .resolver import extract_variable_paths


REQUIRED_PROMPT_FIELDS = ["id", "name", "description", "category", "template", "config", "schema_version"]
REQUIRED_TEMPLATE_FIELDS = ["task", "instructions", "context", "output_format", "variables"]
REQUIRED_CONFIG_FIELDS = ["configurable_fields", "default_values", "validation_rules"]
OUTPUT_FORMAT_FLAGS = [
    "include_line_numbers",
    "include_severity",
    "include_explanation",
    "include_fix_suggestion",
]

PROMPT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
VERSION_PATTERN = re.compile(r"^\d+\.\d+(\.\d+)?$")
MAX_ID_LENGTH = 100
MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000


def _require(obj: Mapping[str, Any], fields: list[str], errors: list[str]) -> None:
    for name in fields:
        if obj.get(name) is None:
            errors.append(f"Missing required field: {name}")


def _depth(obj: Any, current: int = 0, seen: set[int] | None = None) -> int:
    if not isinstance(obj, (Mapping, list)):
        return current
    seen = seen if seen is not None else set()
    if id(obj) in seen:
        return current
    seen.add(id(obj))
    children = obj.values() if isinstance(obj, Mapping) else obj
    deepest = current
    for child in children:
        deepest = max(deepest, _depth(child, current + 1, seen))
    seen.discard(id(obj))
    return deepest


def _collect_roots(obj: Any, found: set[str], seen: set[int] | None = None) -> None:
    if isinstance(obj, str):
        for path in extract_variable_paths(obj):
            found.add(path.split(".")[0])
        return
    if not isinstance(obj, (Mapping, list)):
        return
    seen = seen if seen is not None else set()
    if id(obj) in seen:
        return
    seen.add(id(obj))
    children = obj.values() if isinstance(obj, Mapping) else obj
    for child in children:
        _collect_roots(child, found, seen)
    seen.discard(id(obj))


def _is_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


class PromptValidator:
    """Validates prompt definition records, template bodies and configs."""

    def __init__(self, settings: ValidatorSettings | None = None):
        self.settings = settings or ValidatorSettings()

    def validate_prompt(self, prompt: Mapping[str, Any] | PromptTemplate | None) -> ValidationResult:
        """
        Validate a complete prompt definition.

        Args:
            prompt: Raw definition mapping or a PromptTemplate

        Returns:
            ValidationResult with errors and warnings from every layer
        """
        if isinstance(prompt, PromptTemplate):
            prompt = prompt.to_dict()

        errors: list[str] = []
        warnings: list[str] = []

        if not prompt or not isinstance(prompt, Mapping):
            errors.append("Prompt is null or undefined")
            return ValidationResult.from_messages(errors, warnings)

        _require(prompt, REQUIRED_PROMPT_FIELDS, errors)
        self._validate_prompt_fields(prompt, errors, warnings)

        template = prompt.get("template")
        if template is not None:
            result = self.validate_template(template)
            errors.extend(result.errors)
            warnings.extend(result.warnings)

        config = prompt.get("config")
        if config is not None:
            result = self.validate_config(config)
            errors.extend(result.errors)
            warnings.extend(result.warnings)

        self._validate_consistency(prompt, warnings)

        return ValidationResult.from_messages(errors, warnings)

    def validate_template(self, template: Any) -> ValidationResult:
        """Validate a template body in depth."""
        errors: list[str] = []
        warnings: list[str] = []

        if not template or not isinstance(template, Mapping):
            errors.append("Template is null or undefined")
            return ValidationResult.from_messages(errors, warnings)

        _require(template, REQUIRED_TEMPLATE_FIELDS, errors)
        self._validate_template_fields(template, errors, warnings)
        self._validate_variable_references(template, warnings)

        return ValidationResult.from_messages(errors, warnings)

    def validate_config(self, config: Any) -> ValidationResult:
        """Validate a prompt config mapping."""
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(config, Mapping):
            errors.append("Config is null or undefined")
            return ValidationResult.from_messages(errors, warnings)

        _require(config, REQUIRED_CONFIG_FIELDS, errors)

        fields = config.get("configurable_fields")
        if fields is not None:
            if not isinstance(fields, list):
                errors.append("Config configurable_fields must be an array")
            elif not all(isinstance(f, str) for f in fields):
                errors.append("All configurable_fields must be strings")

        for name in ("default_values", "validation_rules"):
            value = config.get(name)
            if value is not None and not isinstance(value, Mapping):
                errors.append(f"Config {name} must be an object")

        if config.get("focus_areas") and not isinstance(config["focus_areas"], list):
            errors.append("Config focus_areas must be an array")

        threshold = config.get("severity_threshold")
        if threshold and not isinstance(threshold, str):
            errors.append("Config severity_threshold must be a string")

        return ValidationResult.from_messages(errors, warnings)

    def _validate_prompt_fields(
        self, prompt: Mapping[str, Any], errors: list[str], warnings: list[str]
    ) -> None:
        prompt_id = prompt.get("id")
        if isinstance(prompt_id, str):
            if not PROMPT_ID_PATTERN.match(prompt_id):
                errors.append(
                    "Prompt ID must contain only alphanumeric characters, underscores, and hyphens"
                )
            if len(prompt_id) > MAX_ID_LENGTH:
                errors.append(f"Prompt ID must be {MAX_ID_LENGTH} characters or less")
        elif prompt_id is not None:
            errors.append("Prompt ID must be a string")

        name = prompt.get("name")
        if isinstance(name, str):
            if len(name) > MAX_NAME_LENGTH:
                errors.append(f"Prompt name must be {MAX_NAME_LENGTH} characters or less")
            if not name.strip():
                errors.append("Prompt name cannot be empty")
        elif name is not None:
            errors.append("Prompt name must be a string")

        description = prompt.get("description")
        if isinstance(description, str):
            if len(description) > MAX_DESCRIPTION_LENGTH:
                warnings.append(
                    f"Prompt description is very long (>{MAX_DESCRIPTION_LENGTH} characters)"
                )
        elif description is not None:
            errors.append("Prompt description must be a string")

        category = prompt.get("category")
        if category is not None:
            valid = [c.value for c in PromptCategory]
            if category not in valid:
                errors.append(
                    f"Invalid prompt category: {category}. Must be one of: {', '.join(valid)}"
                )

        schema_version = prompt.get("schema_version")
        if isinstance(schema_version, str):
            supported = self.settings.supported_schema_versions
            if schema_version not in supported:
                warnings.append(
                    f"Unsupported schema version: {schema_version}. "
                    f"Supported versions: {', '.join(supported)}"
                )
        elif schema_version is not None:
            errors.append("Schema version must be a string")

        version = prompt.get("version")
        if isinstance(version, str):
            if not VERSION_PATTERN.match(version):
                warnings.append("Version should follow semantic versioning format (e.g., 1.0.0)")
        elif version is not None:
            errors.append("Version must be a string")

        if prompt.get("created_date") and not _is_date(prompt["created_date"]):
            warnings.append("Created date is not in a valid format")
        if prompt.get("last_modified") and not _is_date(prompt["last_modified"]):
            warnings.append("Last modified date is not in a valid format")

    def _validate_template_fields(
        self, template: Mapping[str, Any], errors: list[str], warnings: list[str]
    ) -> None:
        max_length = self.settings.max_field_length

        for name, plural in (("task", False), ("instructions", True)):
            value = template.get(name)
            if value is None:
                continue
            if not isinstance(value, str):
                errors.append(f"Template {name} must be a string")
                continue
            if not value.strip():
                errors.append(f"Template {name} cannot be empty")
            if len(value) > max_length:
                verb = "are" if plural else "is"
                errors.append(f"Template {name} {verb} too long (max {max_length} characters)")

        context = template.get("context")
        if context is not None:
            if not isinstance(context, Mapping):
                errors.append("Template context must be an object")
            else:
                if not context:
                    warnings.append("Template context is empty")
                if _depth(context) > self.settings.max_context_depth:
                    warnings.append(
                        f"Template context has very deep nesting "
                        f"(>{self.settings.max_context_depth} levels)"
                    )

        output_format = template.get("output_format")
        if output_format is not None:
            if not isinstance(output_format, Mapping):
                errors.append("Template output_format must be an object")
            else:
                structure = output_format.get("structure")
                if not structure or not isinstance(structure, str):
                    errors.append("Output format must have a structure field that is a string")
                for flag in OUTPUT_FORMAT_FLAGS:
                    if flag in output_format and not isinstance(output_format[flag], bool):
                        errors.append(f"Output format {flag} must be a boolean")

        variables = template.get("variables")
        if variables is not None:
            if not isinstance(variables, list):
                errors.append("Template variables must be an array")
            else:
                self._validate_variables(variables, errors, warnings)

        language = template.get("language")
        if language and not isinstance(language, str):
            errors.append("Template language must be a string")

    def _validate_variables(self, variables: list[Any], errors: list[str], warnings: list[str]) -> None:
        if len(variables) > self.settings.max_variables:
            warnings.append(f"Template has many variables ({len(variables)}), consider simplifying")

        for index, variable in enumerate(variables):
            if not isinstance(variable, str):
                errors.append(f"Variable at index {index} must be a string")
            elif not variable.strip():
                errors.append(f"Variable at index {index} cannot be empty")

        hashable = [v for v in variables if isinstance(v, str)]
        if len(set(hashable)) != len(hashable):
            warnings.append("Template has duplicate variables")

    def _validate_variable_references(self, template: Mapping[str, Any], warnings: list[str]) -> None:
        declared_list = template.get("variables")
        declared: set[str] = set()
        if isinstance(declared_list, list):
            declared = {v.split(".")[0] for v in declared_list if isinstance(v, str)}

        used: set[str] = set()
        _collect_roots({k: v for k, v in template.items() if k != "variables"}, used)

        for name in sorted(used - declared):
            warnings.append(f"Variable '{name}' is used but not declared in variables array")
        for name in sorted(declared - used):
            warnings.append(f"Variable '{name}' is declared but not used in template")

    def _validate_consistency(self, prompt: Mapping[str, Any], warnings: list[str]) -> None:
        template = prompt.get("template")
        config = prompt.get("config")
        if not isinstance(template, Mapping) or not isinstance(config, Mapping):
            return

        configurable = config.get("configurable_fields") or []
        if not isinstance(configurable, list):
            return

        for name in configurable:
            if isinstance(name, str) and not self._field_exists(name, template):
                warnings.append(f"Configurable field '{name}' not found in template")

        defaults = config.get("default_values") or {}
        if isinstance(defaults, Mapping):
            for key in defaults:
                if key not in configurable:
                    warnings.append(f"Default value for '{key}' but field is not configurable")

    @staticmethod
    def _field_exists(path: str, template: Mapping[str, Any]) -> bool:
        current: Any = template
        for part in path.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return False
            current = current[part]
        return True
