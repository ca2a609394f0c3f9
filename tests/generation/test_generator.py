"""Tests for ContentGenerator — LLM output parsing and error mapping."""

import json
from unittest.mock import MagicMock

import pytest

from hackfeed.categories.models import Category
from hackfeed.config import GenerationConfig
from hackfeed.content.models import ContentType, Difficulty
from hackfeed.errors import GenerationError
from hackfeed.generation.generator import ContentGenerator, GeneratedContent
from hackfeed.generation.prompts import SYSTEM_PROMPT, get_generation_prompt
from hackfeed.llm import LLMError


def _category(**kwargs: object) -> Category:
    defaults: dict[str, object] = {"name": "Productivity", "slug": "productivity"}
    defaults.update(kwargs)
    return Category(**defaults)  # type: ignore[arg-type]


def _payload(**kwargs: object) -> str:
    data: dict[str, object] = {
        "title": "Two Minute Rule",
        "summary": "Do small tasks now.",
        "body": "If a task takes under two minutes, do it immediately.",
        "tags": ["focus", "habits"],
    }
    data.update(kwargs)
    return json.dumps(data)


class TestGenerate:
    def test_parses_json(self):
        call = MagicMock(return_value=_payload())
        generator = ContentGenerator(GenerationConfig(model="haiku", timeout=30), call=call)

        result = generator.generate(_category(), Difficulty.BEGINNER)

        assert result.title == "Two Minute Rule"
        assert result.tags == ["focus", "habits"]
        args, kwargs = call.call_args
        assert args[0] == SYSTEM_PROMPT
        assert "Productivity" in args[1]
        assert kwargs["model"] == "haiku"
        assert kwargs["timeout"] == 30
        assert kwargs["label"] == "generate-productivity-beginner"

    def test_strips_code_fences(self):
        call = MagicMock(return_value=f"```json\n{_payload()}\n```")
        result = ContentGenerator(call=call).generate(_category(), Difficulty.ADVANCED)
        assert result.title == "Two Minute Rule"

    def test_unwraps_single_item_list(self):
        call = MagicMock(return_value=f"[{_payload()}]")
        result = ContentGenerator(call=call).generate(_category(), Difficulty.BEGINNER)
        assert result.body.startswith("If a task")

    def test_uses_category_prompt(self):
        call = MagicMock(return_value=_payload())
        category = _category(prompt="Write about email inbox zero.")
        ContentGenerator(call=call).generate(category, Difficulty.BEGINNER)
        assert "inbox zero" in call.call_args.args[1]

    def test_custom_prompt_overrides_category(self):
        call = MagicMock(return_value=_payload())
        category = _category(prompt="Category prompt.")
        ContentGenerator(call=call).generate(
            category, Difficulty.BEGINNER, custom_prompt="Explicit prompt."
        )
        prompt = call.call_args.args[1]
        assert "Explicit prompt." in prompt
        assert "Category prompt." not in prompt

    def test_llm_error_mapped(self):
        call = MagicMock(side_effect=LLMError("timed out after 120s"))
        with pytest.raises(GenerationError, match="timed out"):
            ContentGenerator(call=call).generate(_category(), Difficulty.BEGINNER)

    def test_invalid_json(self):
        call = MagicMock(return_value="not json at all")
        with pytest.raises(GenerationError):
            ContentGenerator(call=call).generate(_category(), Difficulty.BEGINNER)

    def test_empty_title(self):
        call = MagicMock(return_value=_payload(title="   "))
        with pytest.raises(GenerationError):
            ContentGenerator(call=call).generate(_category(), Difficulty.BEGINNER)

    def test_null_summary_and_tags(self):
        call = MagicMock(
            return_value=_payload(title="Fold Shirts Fast", body="Step one", summary=None, tags=None)
        )
        result = ContentGenerator(call=call).generate(_category(), Difficulty.BEGINNER)
        assert result.summary == ""
        assert result.tags == []
        assert result.summary_or_title() == "Fold Shirts Fast"

    def test_non_object(self):
        call = MagicMock(return_value="[1, 2]")
        with pytest.raises(GenerationError):
            ContentGenerator(call=call).generate(_category(), Difficulty.BEGINNER)


class TestGeneratedContent:
    def test_summary_falls_back_to_title(self):
        content = GeneratedContent(title="Title", body="Body")
        assert content.summary_or_title() == "Title"

    def test_comma_separated_tags(self):
        content = GeneratedContent(title="T", body="B", tags="a, b ,,c")
        assert content.tags == ["a", "b", "c"]


class TestPrompts:
    def test_quote_prompt(self):
        prompt = get_generation_prompt("Books", ContentType.QUOTE, Difficulty.INTERMEDIATE)
        assert "book quote" in prompt
        assert "intermediate" in prompt

    def test_custom_prompt_used(self):
        prompt = get_generation_prompt(
            "Books", ContentType.HACK, Difficulty.BEGINNER, "Focus on audiobooks."
        )
        assert prompt.startswith("Focus on audiobooks.")
