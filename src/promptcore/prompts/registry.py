"""
In-memory prompt registry.

Prompts are stored under the name they were registered with and under
their id, and indexed by category.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from promptcore.errors import ErrorKind, PromptNotFoundError

from .models import PromptCategory, PromptTemplate

if TYPE_CHECKING:
    from promptcore.resilience import ErrorHandler

logger = logging.getLogger(__name__)


class PromptRegistry:
    """Central registry for prompt definitions.

    Usage:
        registry = PromptRegistry(error_handler=handler)
        registry.register("code_review", prompt)
        prompt = registry.require("code_review")
    """

    def __init__(self, error_handler: ErrorHandler | None = None):
        self._error_handler = error_handler
        self._prompts: dict[str, PromptTemplate] = {}
        self._by_category: dict[PromptCategory, list[PromptTemplate]] = {
            category: [] for category in PromptCategory
        }

    def register(self, name: str, prompt: PromptTemplate) -> None:
        """
        Register a prompt under a name (and its id).

        Raises:
            ValueError: If the name or prompt is missing, or the prompt has no id
        """
        if not name or prompt is None:
            raise ValueError("Invalid prompt name or prompt object")
        if not prompt.id:
            raise ValueError("Prompt must have an id")

        replaced = self._prompts.get(prompt.id)
        if replaced is not None and replaced is not prompt:
            # Aliases of the replaced definition follow the id to the new one.
            for key in [k for k, v in self._prompts.items() if v is replaced]:
                self._prompts[key] = prompt
            if replaced.category != prompt.category:
                self._by_category[replaced.category] = [
                    p for p in self._by_category[replaced.category] if p.id != prompt.id
                ]

        self._prompts[name] = prompt
        self._prompts[prompt.id] = prompt

        entries = self._by_category[prompt.category]
        for index, existing in enumerate(entries):
            if existing.id == prompt.id:
                entries[index] = prompt
                break
        else:
            entries.append(prompt)

        logger.debug(f"Registered prompt '{prompt.id}' as '{name}'")

    def get(self, name: str) -> PromptTemplate | None:
        """Get a prompt by name or id, or None if not registered."""
        return self._prompts.get(name)

    def require(self, name: str) -> PromptTemplate:
        """
        Get a prompt by name or id.

        Raises:
            PromptNotFoundError: If no prompt is registered under name
        """
        prompt = self._prompts.get(name)
        if prompt is not None:
            return prompt

        available = self.list_ids()
        if self._error_handler is not None:
            context = {"requested_type": name, "available_types": available}
            strategy = self._error_handler.handle_error(ErrorKind.PROMPT_NOT_FOUND, context)
            self._error_handler.log_error(ErrorKind.PROMPT_NOT_FOUND, strategy.error_message, context)
        raise PromptNotFoundError(name, available)

    def has(self, name: str) -> bool:
        return name in self._prompts

    def unregister(self, name: str) -> bool:
        """
        Remove a prompt and every key it is registered under.

        Returns:
            True if a prompt was removed
        """
        prompt = self._prompts.get(name)
        if prompt is None:
            return False

        for key in [k for k, v in self._prompts.items() if v is prompt]:
            del self._prompts[key]

        self._by_category[prompt.category] = [
            p for p in self._by_category[prompt.category] if p.id != prompt.id
        ]
        return True

    def by_category(self, category: PromptCategory | str) -> list[PromptTemplate]:
        """Get prompts in a category (empty for unknown categories)."""
        try:
            key = PromptCategory(category)
        except ValueError:
            return []
        return list(self._by_category[key])

    def list_ids(self) -> list[str]:
        """Sorted ids of all registered prompts."""
        return sorted({prompt.id for prompt in self._prompts.values()})

    def all(self) -> dict[str, PromptTemplate]:
        """Copy of the name/id -> prompt mapping."""
        return dict(self._prompts)

    def clear(self) -> None:
        self._prompts.clear()
        for category in self._by_category:
            self._by_category[category] = []

    def get_stats(self) -> dict[str, Any]:
        """Count of unique prompts, overall and per category."""
        return {
            "total_prompts": len(self.list_ids()),
            "prompts_by_category": {
                category.value: len(prompts) for category, prompts in self._by_category.items()
            },
        }
