"""Pytest configuration and shared fixtures for promptcore tests."""

import copy
from collections.abc import Callable
from typing import Any

import pytest

from promptcore.prompts import PromptCategory, PromptMetadata, PromptTemplate, TemplateResolver
from promptcore.resilience import ErrorHandler

SAMPLE_BODY: dict[str, Any] = {
    "task": "Review the ${language} code",
    "context": {
        "file": "${file.path}",
        "experience": "${user.experience}",
        "focus": ["security", "${focus}"],
    },
    "instructions": "Give at most ${max_suggestions} suggestions.",
    "output_format": {
        "structure": "markdown list for ${language}",
        "include_line_numbers": True,
    },
    "variables": ["language", "file.path", "user.experience", "focus", "max_suggestions"],
}


@pytest.fixture
def sample_body() -> dict[str, Any]:
    """A valid template body referencing nested variables."""
    return copy.deepcopy(SAMPLE_BODY)


@pytest.fixture
def make_prompt() -> Callable[..., PromptTemplate]:
    """Factory for PromptTemplate instances with a custom body."""

    def _make(body: dict[str, Any] | None = None, **kwargs: Any) -> PromptTemplate:
        defaults: dict[str, Any] = {
            "id": "code_review",
            "name": "Code Review",
            "template": copy.deepcopy(SAMPLE_BODY) if body is None else body,
            "category": PromptCategory.CODE_REVIEW,
        }
        defaults.update(kwargs)
        return PromptTemplate(**defaults)

    return _make


@pytest.fixture
def sample_prompt(make_prompt) -> PromptTemplate:
    """A valid code review prompt with metadata."""
    return make_prompt(
        metadata=PromptMetadata(
            supported_languages=["python", "typescript"],
            required_context=["code"],
            performance_notes="Keep selections small",
        )
    )


@pytest.fixture
def error_handler() -> ErrorHandler:
    """A fresh error handler per test."""
    return ErrorHandler()


@pytest.fixture
def resolver(error_handler: ErrorHandler) -> TemplateResolver:
    """A resolver reporting to the per-test error handler."""
    return TemplateResolver(error_handler=error_handler)


@pytest.fixture
def full_variables() -> dict[str, Any]:
    """Variables covering every path in SAMPLE_BODY."""
    return {
        "language": "TypeScript",
        "file": {"path": "src/app.ts"},
        "user": {"experience": "advanced"},
        "focus": "performance",
        "max_suggestions": 5,
    }
