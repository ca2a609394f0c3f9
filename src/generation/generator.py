"""Content generator — turns an LLM response into validated draft fields."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from pydantic import BaseModel, Field, ValidationError, field_validator

from hackfeed.categories.models import Category
from hackfeed.config import GenerationConfig
from hackfeed.content.models import Difficulty
from hackfeed.errors import GenerationError
from hackfeed.generation.prompts import SYSTEM_PROMPT, get_generation_prompt
from hackfeed.llm import LLMError, call_claude, strip_json_fences

logger = logging.getLogger(__name__)

LLMCall = Callable[..., str]


class GeneratedContent(BaseModel):
    """Text fields returned by the generator."""

    title: str
    body: str
    summary: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "body")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("summary", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [t.strip() for t in value.split(",") if t.strip()]
        return value

    def summary_or_title(self) -> str:
        return self.summary or self.title


class ContentGenerator:
    """Generates one content item per call through the LLM.

    ``call`` defaults to :func:`hackfeed.llm.call_claude`; tests and
    alternative producers inject their own callable with the same
    signature.
    """

    def __init__(self, config: GenerationConfig | None = None, call: LLMCall | None = None) -> None:
        self._config = config or GenerationConfig()
        self._call = call or call_claude

    def generate(
        self,
        category: Category,
        difficulty: Difficulty,
        custom_prompt: str | None = None,
    ) -> GeneratedContent:
        """Generate title/body/summary/tags for ``category``.

        Raises:
            GenerationError: LLM failure (including timeout), unparseable
                output, or empty title/body.
        """
        prompt = get_generation_prompt(
            category.name,
            category.content_type,
            difficulty,
            custom_prompt if custom_prompt is not None else category.prompt,
        )
        label = f"generate-{category.slug}-{difficulty.value}"

        try:
            raw = self._call(
                SYSTEM_PROMPT,
                prompt,
                model=self._config.model,
                timeout=self._config.timeout,
                label=label,
            )
        except LLMError as exc:
            raise GenerationError(f"Generator call failed for {category.name}: {exc}") from exc

        try:
            data = json.loads(strip_json_fences(raw))
        except json.JSONDecodeError as exc:
            raise GenerationError(f"Generator returned invalid JSON for {category.name}") from exc

        if isinstance(data, list) and len(data) == 1:
            data = data[0]
        if not isinstance(data, dict):
            raise GenerationError(f"Generator returned {type(data).__name__}, expected object")

        try:
            generated = GeneratedContent.model_validate(data)
        except ValidationError as exc:
            raise GenerationError(f"Generator returned unusable content: {exc}") from exc

        logger.debug("Generated %r (%s)", generated.title[:30], label)
        return generated
