"""
Prompt definitions and template resolution.

Provides:
- PromptTemplate and related models
- TemplateResolver for ${dotted.path} substitution
- PromptValidator for full definition checks
- PromptRegistry and PromptLoader for JSON/YAML definitions
"""

from .loader import LoadResult, PromptLoader, load_prompt_directory, load_prompt_file
from .models import (
    UNDEFINED,
    PromptCategory,
    PromptConfig,
    PromptMetadata,
    PromptTemplate,
    ResolvedPayload,
    ValidationResult,
)
from .registry import PromptRegistry
from .resolver import TemplateResolver
from .validator import PromptValidator

__all__ = [
    "UNDEFINED",
    "LoadResult",
    "PromptCategory",
    "PromptConfig",
    "PromptLoader",
    "PromptMetadata",
    "PromptRegistry",
    "PromptTemplate",
    "PromptValidator",
    "ResolvedPayload",
    "TemplateResolver",
    "ValidationResult",
    "load_prompt_directory",
    "load_prompt_file",
]
