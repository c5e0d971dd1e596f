"""
Configuration management for promptcore.

Provides YAML-based configuration with dotted-key overrides,
configuration hierarchy (overrides > YAML > Defaults), and validation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

__all__ = [
    "LoggingSettings",
    "PromptCoreConfig",
    "ResilienceSettings",
    "ValidatorSettings",
    "apply_overrides",
    "load_config",
    "load_yaml",
]


class ResilienceSettings(BaseModel):
    """Error handler configuration."""

    log_prefix: str = Field(
        default="[PromptSystem]",
        description="Tag prepended to every error log line",
    )
    console_logging: bool = Field(
        default=True,
        description="Emit error log lines (counters and callbacks run regardless)",
    )
    max_context_length: int = Field(
        default=500,
        description="Serialized error context is truncated past this many characters",
    )
    frequent_threshold: int = Field(
        default=5,
        description="Default count at which an error kind is considered frequent",
    )
    critical_threshold: int = Field(
        default=10,
        description="Count at which an error kind blocks recovery",
    )

    @field_validator("max_context_length", "frequent_threshold", "critical_threshold")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @model_validator(mode="after")
    def validate_thresholds(self) -> ResilienceSettings:
        """Validate the critical threshold is not below the frequent one."""
        if self.critical_threshold < self.frequent_threshold:
            raise ValueError("critical_threshold must be >= frequent_threshold")
        return self


class ValidatorSettings(BaseModel):
    """Prompt definition validation limits."""

    max_field_length: int = Field(
        default=10000,
        description="Maximum length of the task and instructions fields",
    )
    max_variables: int = Field(
        default=50,
        description="Templates declaring more variables than this get a warning",
    )
    max_context_depth: int = Field(
        default=5,
        description="Context nesting deeper than this gets a warning",
    )
    supported_schema_versions: list[str] = Field(
        default_factory=lambda: ["1.0", "1.1"],
        description="Schema versions accepted without a warning",
    )

    @field_validator("max_field_length", "max_variables", "max_context_depth")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Log level",
    )


class PromptCoreConfig(BaseModel):
    """Top-level promptcore configuration."""

    resilience: ResilienceSettings = Field(default_factory=ResilienceSettings)
    validator: ValidatorSettings = Field(default_factory=ValidatorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    prompt_dirs: list[str] = Field(
        default_factory=list,
        description="Directories scanned for prompt definition files",
    )


def load_yaml(config_file: str | Path) -> dict[str, Any]:
    """
    Load YAML or JSON configuration file.

    Args:
        config_file: Path to YAML or JSON configuration file

    Returns:
        Dictionary with parsed YAML/JSON content

    Raises:
        ValueError: If YAML/JSON is invalid or file format is wrong
    """
    config_path = Path(config_file).expanduser()

    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in [".yaml", ".yml", ".json"]:
        raise ValueError(
            f"Config file must have .yaml, .yml, or .json extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    try:
        content = config_path.read_text(encoding="utf-8")

        if file_ext == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.safe_load(content)

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping at the top level: {config_path}")
    return data


def apply_overrides(
    config_dict: dict[str, Any],
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply overrides to a config dictionary.

    Args:
        config_dict: Configuration dictionary
        overrides: Dictionary of overrides; keys may be dotted ("resilience.frequent_threshold")

    Returns:
        Configuration dictionary with overrides applied
    """
    if overrides is None:
        return config_dict

    for key, value in overrides.items():
        if "." in key:
            parts = key.split(".")
            current = config_dict
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = value
        else:
            config_dict[key] = value

    return config_dict


def load_config(
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> PromptCoreConfig:
    """
    Load configuration with hierarchy: overrides > YAML > Defaults.

    Args:
        config_file: Path to YAML config file (defaults only when None)
        overrides: Dictionary of dotted-key overrides

    Returns:
        Validated PromptCoreConfig instance

    Raises:
        ValueError: If configuration is invalid
    """
    config_dict = load_yaml(config_file) if config_file is not None else {}
    config_dict = apply_overrides(config_dict, overrides)

    try:
        return PromptCoreConfig(**config_dict)
    except Exception as e:
        raise ValueError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e
