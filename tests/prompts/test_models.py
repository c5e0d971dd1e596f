"""Tests for prompt data models."""

import copy

import pytest

from promptcore.prompts import (
    UNDEFINED,
    PromptCategory,
    PromptConfig,
    PromptMetadata,
    PromptTemplate,
    ResolvedPayload,
)

pytestmark = pytest.mark.unit


class TestUndefined:
    """Tests for the UNDEFINED sentinel."""

    def test_singleton_survives_copies(self) -> None:
        assert copy.copy(UNDEFINED) is UNDEFINED
        assert copy.deepcopy({"x": UNDEFINED})["x"] is UNDEFINED
        assert type(UNDEFINED)() is UNDEFINED

    def test_text_and_truthiness(self) -> None:
        assert str(UNDEFINED) == "undefined"
        assert repr(UNDEFINED) == "UNDEFINED"
        assert not UNDEFINED


class TestPromptTemplate:
    """Tests for PromptTemplate conversion."""

    def test_from_dict_defaults(self) -> None:
        prompt = PromptTemplate.from_dict({"id": "general", "template": {"task": "t"}})

        assert prompt.name == "general"
        assert prompt.category is PromptCategory.GENERAL
        assert prompt.version == "1.0.0"
        assert prompt.config == PromptConfig()
        assert prompt.metadata is None

    def test_from_dict_non_mapping_body(self) -> None:
        prompt = PromptTemplate.from_dict({"id": "x", "template": "not a body"})

        assert prompt.template is None
        assert prompt.declared_variables == []

    def test_from_dict_rejects_unknown_category(self) -> None:
        with pytest.raises(ValueError):
            PromptTemplate.from_dict({"id": "x", "category": "poetry"})

    def test_round_trip_keeps_fields(self, sample_prompt) -> None:
        sample_prompt.author = "reviewer"

        rebuilt = PromptTemplate.from_dict(sample_prompt.to_dict())

        assert rebuilt == sample_prompt

    def test_declared_variables_skips_non_strings(self, make_prompt, sample_body) -> None:
        sample_body["variables"] = ["language", 3, None, "code"]

        assert make_prompt(sample_body).declared_variables == ["language", "code"]


class TestMetadataAndPayload:
    """Tests for metadata and payload serialization."""

    def test_metadata_to_dict_omits_empty(self) -> None:
        assert PromptMetadata().to_dict() == {}
        assert PromptMetadata(legacy=True, performance_notes="slow").to_dict() == {
            "performance_notes": "slow",
            "legacy": True,
        }

    def test_payload_to_dict(self) -> None:
        payload = ResolvedPayload(
            content={"task": "t"},
            metadata=PromptMetadata(supported_languages=["go"]),
            variables_used=["language"],
        )

        assert payload.to_dict() == {
            "content": {"task": "t"},
            "metadata": {"supported_languages": ["go"]},
            "variables_used": ["language"],
        }
