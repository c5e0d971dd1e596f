"""
Prompt definition loader with multi-directory override support.

Definitions are JSON or YAML files, one prompt per file. Directories are
searched in priority order: a prompt id found in an earlier directory
overrides the same id from a later one (e.g. project > user > bundled).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from promptcore.errors import ErrorKind, TemplateParseError

from .models import PromptTemplate
from .registry import PromptRegistry
from .validator import PromptValidator

if TYPE_CHECKING:
    from promptcore.resilience import ErrorHandler

logger = logging.getLogger(__name__)

PROMPT_EXTENSIONS = (".json", ".yaml", ".yml")


@dataclass
class LoadResult:
    """Result from loading a directory of prompt definitions."""

    prompts: list[PromptTemplate] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def loaded(self) -> int:
        return len(self.prompts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loaded": self.loaded,
            "prompt_ids": [p.id for p in self.prompts],
            "errors": self.errors,
        }


def read_definition(path: Path) -> dict[str, Any]:
    """
    Read a raw definition mapping from a JSON or YAML file.

    Raises:
        TemplateParseError: If the file is unreadable, malformed, or not a mapping
    """
    suffix = path.suffix.lower()
    if suffix not in PROMPT_EXTENSIONS:
        raise TemplateParseError(str(path), f"unsupported file extension '{suffix}'")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateParseError(str(path), f"cannot read file: {e}") from e

    try:
        data = json.loads(content) if suffix == ".json" else yaml.safe_load(content)
    except json.JSONDecodeError as e:
        raise TemplateParseError(str(path), f"invalid JSON: {e}") from e
    except yaml.YAMLError as e:
        raise TemplateParseError(str(path), f"invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise TemplateParseError(str(path), "definition must be a mapping")
    return data


def load_prompt_file(path: str | Path, validator: PromptValidator | None = None) -> PromptTemplate:
    """
    Load and validate a single prompt definition.

    Args:
        path: Definition file
        validator: Validator to use (default settings when None)

    Returns:
        PromptTemplate

    Raises:
        TemplateParseError: If the file cannot be parsed or fails validation
    """
    path = Path(path)
    data = read_definition(path)

    result = (validator or PromptValidator()).validate_prompt(data)
    if not result.is_valid:
        raise TemplateParseError(str(path), "; ".join(result.errors))
    for warning in result.warnings:
        logger.debug(f"{path.name}: {warning}")

    return PromptTemplate.from_dict(data)


def _definition_files(directory: Path) -> list[Path]:
    return sorted(
        p for p in directory.rglob("*") if p.is_file() and p.suffix.lower() in PROMPT_EXTENSIONS
    )


def load_prompt_directory(
    directory: str | Path,
    error_handler: ErrorHandler | None = None,
    validator: PromptValidator | None = None,
) -> LoadResult:
    """
    Load every definition file under a directory.

    Bad files are recorded in LoadResult.errors (and on error_handler as
    template parse errors) and skipped.
    """
    directory = Path(directory).expanduser()
    result = LoadResult()

    if not directory.is_dir():
        logger.debug(f"Prompt directory does not exist: {directory}")
        return result

    validator = validator or PromptValidator()
    for path in _definition_files(directory):
        if error_handler is not None:
            outcome = error_handler.attempt(
                lambda p=path: load_prompt_file(p, validator),
                ErrorKind.TEMPLATE_PARSE_ERROR,
                {"prompt_id": path.stem, "source": str(path)},
            )
            if outcome.ok and outcome.value is not None:
                result.prompts.append(outcome.value)
            else:
                result.errors.append(str(outcome.error))
            continue

        try:
            result.prompts.append(load_prompt_file(path, validator))
        except Exception as e:
            logger.warning(f"Skipping prompt definition {path}: {e}")
            result.errors.append(str(e) or f"{path}: {type(e).__name__}")

    return result


class PromptLoader:
    """Loads prompt definitions from directories into a registry.

    Usage:
        loader = PromptLoader([project_dir / "prompts", bundled_dir], registry=registry)
        result = loader.load_all()
    """

    def __init__(
        self,
        prompt_dirs: list[str | Path],
        registry: PromptRegistry | None = None,
        error_handler: ErrorHandler | None = None,
        validator: PromptValidator | None = None,
    ):
        """
        Initialize the prompt loader.

        Args:
            prompt_dirs: Directories in priority order (earlier wins)
            registry: Registry to populate (a new one when None)
            error_handler: Optional handler that records load failures
            validator: Validator for definitions (default settings when None)
        """
        self._search_paths = [Path(d).expanduser() for d in prompt_dirs]
        self.registry = registry or PromptRegistry(error_handler=error_handler)
        self._error_handler = error_handler
        self._validator = validator or PromptValidator()

    @property
    def search_paths(self) -> list[Path]:
        return list(self._search_paths)

    def load_all(self) -> LoadResult:
        """
        Load every directory into the registry.

        Lower-priority directories are loaded first so higher-priority
        definitions overwrite them. The returned prompts are the effective
        ones; overridden definitions are not counted.
        """
        combined = LoadResult()
        effective: dict[str, PromptTemplate] = {}
        for directory in reversed(self._search_paths):
            result = load_prompt_directory(directory, self._error_handler, self._validator)
            for prompt in result.prompts:
                self.registry.register(prompt.id, prompt)
                effective[prompt.id] = prompt
            combined.errors.extend(result.errors)
        combined.prompts.extend(effective.values())

        logger.debug(
            f"Loaded {combined.loaded} prompt definition(s) from "
            f"{len(self._search_paths)} director(ies), {len(combined.errors)} error(s)"
        )
        return combined

    def reload(self) -> LoadResult:
        """Clear the registry and load everything again."""
        self.registry.clear()
        return self.load_all()

    def find_file(self, prompt_id: str) -> Path | None:
        """Find the highest-priority definition file named after prompt_id."""
        for search_dir in self._search_paths:
            for suffix in PROMPT_EXTENSIONS:
                candidate = search_dir / f"{prompt_id}{suffix}"
                if candidate.exists():
                    return candidate
        return None

    def list_files(self) -> list[Path]:
        """List definition files across all search paths."""
        files: list[Path] = []
        for search_dir in self._search_paths:
            if search_dir.is_dir():
                files.extend(_definition_files(search_dir))
        return files
