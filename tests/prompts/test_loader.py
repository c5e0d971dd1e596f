"""Tests for loading prompt definitions from JSON and YAML files."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from promptcore.errors import ErrorKind, TemplateParseError
from promptcore.prompts import (
    PromptCategory,
    PromptLoader,
    TemplateResolver,
    load_prompt_directory,
    load_prompt_file,
)

pytestmark = pytest.mark.unit


def _definition(prompt_id: str, task: str = "Review the ${language} code", **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": prompt_id,
        "name": prompt_id.replace("_", " ").title(),
        "description": f"{prompt_id} prompt",
        "category": "code_review",
        "version": "1.0.0",
        "schema_version": "1.0",
        "template": {
            "task": task,
            "context": {"code": "${code}"},
            "instructions": "Be specific.",
            "output_format": {"structure": "markdown"},
            "variables": ["language", "code"],
        },
        "config": {"configurable_fields": [], "default_values": {}, "validation_rules": {}},
        "metadata": {"supported_languages": ["python"]},
    }
    data.update(extra)
    return data


def _write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _write_yaml(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadPromptFile:
    """Tests for single-file loading."""

    def test_load_json(self, tmp_path) -> None:
        path = _write_json(tmp_path / "code_review.json", _definition("code_review"))

        prompt = load_prompt_file(path)

        assert prompt.id == "code_review"
        assert prompt.category is PromptCategory.CODE_REVIEW
        assert prompt.template is not None
        assert prompt.template["task"] == "Review the ${language} code"
        assert prompt.metadata is not None
        assert prompt.metadata.supported_languages == ["python"]

    def test_load_yaml(self, tmp_path) -> None:
        path = _write_yaml(tmp_path / "debug.yaml", _definition("debug", category="debug_analysis"))

        prompt = load_prompt_file(path)

        assert prompt.category is PromptCategory.DEBUG_ANALYSIS

    def test_loaded_prompt_resolves(self, tmp_path) -> None:
        path = _write_json(tmp_path / "code_review.json", _definition("code_review"))

        payload = TemplateResolver().process_template(
            load_prompt_file(path), {"language": "Python", "code": "print(1)"}
        )

        assert payload.content["task"] == "Review the Python code"
        assert payload.content["context"] == {"code": "print(1)"}
        assert payload.metadata.supported_languages == ["python"]

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(TemplateParseError, match="invalid JSON"):
            load_prompt_file(path)

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed", encoding="utf-8")

        with pytest.raises(TemplateParseError, match="invalid YAML"):
            load_prompt_file(path)

    def test_non_mapping(self, tmp_path) -> None:
        path = _write_json(tmp_path / "list.json", ["a", "b"])

        with pytest.raises(TemplateParseError, match="must be a mapping"):
            load_prompt_file(path)

    def test_unsupported_extension(self, tmp_path) -> None:
        path = tmp_path / "prompt.txt"
        path.write_text("hello", encoding="utf-8")

        with pytest.raises(TemplateParseError, match="unsupported file extension"):
            load_prompt_file(path)

    def test_validation_failure(self, tmp_path) -> None:
        path = _write_json(tmp_path / "empty_task.json", _definition("empty_task", task=""))

        with pytest.raises(TemplateParseError, match="Template task cannot be empty"):
            load_prompt_file(path)


class TestLoadPromptDirectory:
    """Tests for directory loading."""

    def test_missing_directory(self, tmp_path) -> None:
        result = load_prompt_directory(tmp_path / "nope")

        assert result.loaded == 0
        assert result.errors == []

    def test_bad_files_are_skipped(self, tmp_path) -> None:
        _write_json(tmp_path / "a.json", _definition("a"))
        _write_yaml(tmp_path / "nested" / "b.yml", _definition("b"))
        (tmp_path / "c.json").write_text("{", encoding="utf-8")
        (tmp_path / "notes.md").write_text("# ignored", encoding="utf-8")

        result = load_prompt_directory(tmp_path)

        assert sorted(p.id for p in result.prompts) == ["a", "b"]
        assert len(result.errors) == 1
        assert "c.json" in result.errors[0]

    def test_bad_files_are_recorded_on_handler(self, tmp_path, error_handler) -> None:
        _write_json(tmp_path / "a.json", _definition("a"))
        (tmp_path / "c.json").write_text("{", encoding="utf-8")
        contexts: list[Any] = []
        error_handler.on_error(lambda kind, message, context: contexts.append(context))

        result = load_prompt_directory(tmp_path, error_handler=error_handler)

        assert [p.id for p in result.prompts] == ["a"]
        assert len(result.errors) == 1
        assert error_handler.get_error_stats()[ErrorKind.TEMPLATE_PARSE_ERROR].count == 1
        assert contexts[0]["prompt_id"] == "c"
        assert "invalid JSON" in contexts[0]["original_error"]

    def test_self_referencing_yaml_is_skipped(self, tmp_path) -> None:
        _write_json(tmp_path / "good.json", _definition("good"))
        (tmp_path / "loop.yaml").write_text("context: &c {self: *c}\n", encoding="utf-8")

        result = load_prompt_directory(tmp_path)

        assert [p.id for p in result.prompts] == ["good"]
        assert len(result.errors) == 1
        assert "loop.yaml" in result.errors[0]

    def test_self_referencing_context_loads(self, tmp_path) -> None:
        (tmp_path / "looped.yaml").write_text(
            "id: looped\n"
            "name: Looped\n"
            "description: Self-referencing context\n"
            "category: general\n"
            "schema_version: '1.0'\n"
            "config: {configurable_fields: [], default_values: {}, validation_rules: {}}\n"
            "template:\n"
            "  task: 'Review ${code}'\n"
            "  instructions: Be brief.\n"
            "  context: &c\n"
            "    code: '${code}'\n"
            "    self: *c\n"
            "  output_format: {structure: markdown}\n"
            "  variables: [code]\n",
            encoding="utf-8",
        )

        result = load_prompt_directory(tmp_path)

        assert [p.id for p in result.prompts] == ["looped"]
        context = result.prompts[0].template["context"]
        assert context["self"] is context

    def test_unexpected_failure_is_recorded(self, tmp_path) -> None:
        _write_json(tmp_path / "a.json", _definition("a"))
        validator = MagicMock()
        validator.validate_prompt.side_effect = RecursionError("maximum recursion depth exceeded")

        result = load_prompt_directory(tmp_path, validator=validator)

        assert result.prompts == []
        assert result.errors == ["maximum recursion depth exceeded"]

    def test_to_dict(self, tmp_path) -> None:
        _write_json(tmp_path / "a.json", _definition("a"))

        assert load_prompt_directory(tmp_path).to_dict() == {
            "loaded": 1,
            "prompt_ids": ["a"],
            "errors": [],
        }


class TestPromptLoader:
    """Tests for PromptLoader precedence and registry population."""

    def test_higher_priority_directory_wins(self, tmp_path) -> None:
        project = tmp_path / "project"
        bundled = tmp_path / "bundled"
        _write_json(project / "code_review.json", _definition("code_review", task="Project ${language}"))
        _write_json(bundled / "code_review.json", _definition("code_review", task="Bundled ${language}"))
        _write_json(bundled / "explain.json", _definition("explain"))

        loader = PromptLoader([project, bundled])
        result = loader.load_all()

        assert result.loaded == 2
        assert sorted(p.id for p in result.prompts) == ["code_review", "explain"]
        prompt = loader.registry.require("code_review")
        assert prompt.template is not None
        assert prompt.template["task"] == "Project ${language}"
        assert loader.registry.list_ids() == ["code_review", "explain"]

    def test_override_in_another_category(self, tmp_path) -> None:
        high = tmp_path / "high"
        low = tmp_path / "low"
        _write_json(low / "x.json", _definition("x", category="general"))
        _write_json(high / "x.json", _definition("x", category="debug_analysis"))

        loader = PromptLoader([high, low])
        result = loader.load_all()

        assert result.loaded == 1
        assert result.prompts[0].category is PromptCategory.DEBUG_ANALYSIS
        assert loader.registry.by_category("general") == []
        assert loader.registry.get_stats()["prompts_by_category"]["debug_analysis"] == 1

    def test_reload_picks_up_changes(self, tmp_path) -> None:
        _write_json(tmp_path / "a.json", _definition("a"))
        loader = PromptLoader([tmp_path])
        loader.load_all()

        (tmp_path / "a.json").unlink()
        _write_json(tmp_path / "b.json", _definition("b"))
        loader.reload()

        assert loader.registry.list_ids() == ["b"]

    def test_find_and_list_files(self, tmp_path) -> None:
        first = tmp_path / "first"
        second = tmp_path / "second"
        _write_yaml(second / "a.yaml", _definition("a"))
        _write_json(first / "b.json", _definition("b"))

        loader = PromptLoader([first, second])

        assert loader.find_file("a") == second / "a.yaml"
        assert loader.find_file("missing") is None
        assert loader.list_files() == [first / "b.json", second / "a.yaml"]
        assert loader.search_paths == [first, second]
