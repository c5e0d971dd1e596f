"""
Data models for prompt definitions and resolution results.

A PromptTemplate keeps its body as the raw mapping it was loaded from, so
structural validation can report exactly what a definition file got wrong
instead of failing inside a constructor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PromptCategory(str, Enum):
    """Prompt categories."""

    CODE_REVIEW = "code_review"
    DEBUG_ANALYSIS = "debug_analysis"
    REFACTORING = "refactoring"
    DOCUMENTATION = "documentation"
    SECURITY_ANALYSIS = "security_analysis"
    PERFORMANCE_ANALYSIS = "performance_analysis"
    TEST_GENERATION = "test_generation"
    CODE_EXPLANATION = "code_explanation"
    GENERAL = "general"


class _Undefined:
    """Marker for a variable that is present but explicitly undefined."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __str__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Undefined:
        return self


UNDEFINED = _Undefined()


@dataclass
class PromptMetadata:
    """Applicability hints carried alongside a prompt."""

    supported_languages: list[str] = field(default_factory=list)
    required_context: list[str] = field(default_factory=list)
    performance_notes: str | None = None
    legacy: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PromptMetadata:
        data = data or {}
        return cls(
            supported_languages=list(data.get("supported_languages") or []),
            required_context=list(data.get("required_context") or []),
            performance_notes=data.get("performance_notes"),
            legacy=bool(data.get("legacy", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.supported_languages:
            result["supported_languages"] = list(self.supported_languages)
        if self.required_context:
            result["required_context"] = list(self.required_context)
        if self.performance_notes is not None:
            result["performance_notes"] = self.performance_notes
        if self.legacy:
            result["legacy"] = True
        return result


@dataclass
class PromptConfig:
    """User-configurable knobs declared by a prompt."""

    configurable_fields: list[str] = field(default_factory=list)
    default_values: dict[str, Any] = field(default_factory=dict)
    validation_rules: dict[str, Any] = field(default_factory=dict)
    focus_areas: list[str] | None = None
    severity_threshold: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PromptConfig:
        data = data or {}
        return cls(
            configurable_fields=list(data.get("configurable_fields") or []),
            default_values=dict(data.get("default_values") or {}),
            validation_rules=dict(data.get("validation_rules") or {}),
            focus_areas=data.get("focus_areas"),
            severity_threshold=data.get("severity_threshold"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "configurable_fields": list(self.configurable_fields),
            "default_values": dict(self.default_values),
            "validation_rules": dict(self.validation_rules),
        }
        if self.focus_areas is not None:
            result["focus_areas"] = list(self.focus_areas)
        if self.severity_threshold is not None:
            result["severity_threshold"] = self.severity_threshold
        return result


@dataclass
class PromptTemplate:
    """A named, versioned prompt definition."""

    id: str
    name: str
    template: dict[str, Any] | None
    """Body: task, context, instructions, output_format, variables."""

    description: str = ""
    category: PromptCategory = PromptCategory.GENERAL
    version: str = "1.0.0"
    schema_version: str = "1.0"
    config: PromptConfig = field(default_factory=PromptConfig)
    metadata: PromptMetadata | None = None
    author: str | None = None
    created_date: str | None = None
    last_modified: str | None = None

    @property
    def declared_variables(self) -> list[str]:
        """Variable names declared by the body, if it declares any."""
        if not isinstance(self.template, dict):
            return []
        variables = self.template.get("variables")
        if not isinstance(variables, list):
            return []
        return [v for v in variables if isinstance(v, str)]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PromptTemplate:
        """
        Build a PromptTemplate from a loaded definition record.

        The body is taken as-is; use PromptValidator to check it.

        Raises:
            ValueError: If the category is not a PromptCategory value.
        """
        category = data.get("category") or PromptCategory.GENERAL.value
        body = data.get("template")
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or data.get("id", "")),
            template=body if isinstance(body, dict) else None,
            description=data.get("description") or "",
            category=PromptCategory(category),
            version=str(data.get("version", "1.0.0")),
            schema_version=str(data.get("schema_version", "1.0")),
            config=PromptConfig.from_dict(data.get("config")),
            metadata=PromptMetadata.from_dict(data["metadata"]) if data.get("metadata") else None,
            author=data.get("author"),
            created_date=data.get("created_date"),
            last_modified=data.get("last_modified"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "version": self.version,
            "schema_version": self.schema_version,
            "template": self.template,
            "config": self.config.to_dict(),
        }
        if self.metadata is not None:
            result["metadata"] = self.metadata.to_dict()
        for key in ("author", "created_date", "last_modified"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class ValidationResult:
    """Outcome of a structural validation pass."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_messages(cls, errors: list[str], warnings: list[str]) -> ValidationResult:
        return cls(is_valid=not errors, errors=errors, warnings=warnings)


@dataclass
class ResolvedPayload:
    """A template body with placeholders substituted."""

    content: dict[str, Any]
    metadata: PromptMetadata = field(default_factory=PromptMetadata)
    variables_used: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "metadata": self.metadata.to_dict(),
            "variables_used": list(self.variables_used),
        }
