"""LLM prompts for content generation."""

from __future__ import annotations

from hackfeed.content.models import ContentType, Difficulty

SYSTEM_PROMPT = (
    "You write short, practical self-improvement content for a mobile feed. "
    "Every item must be specific, ethical and actionable."
)

_KIND_BY_TYPE: dict[ContentType, str] = {
    ContentType.HACK: "life hack",
    ContentType.HACK2: "life hack",
    ContentType.TIP: "tip",
    ContentType.TIP2: "tip",
    ContentType.QUOTE: "book quote with its title and author",
}

_DIFFICULTY_GUIDANCE: dict[Difficulty, str] = {
    Difficulty.BEGINNER: "Anyone can apply it today with no prior knowledge.",
    Difficulty.INTERMEDIATE: "Assumes some familiarity with the topic; include one non-obvious step.",
    Difficulty.ADVANCED: "Aimed at experienced readers; go deeper than common advice.",
}


def get_generation_prompt(
    category_name: str,
    content_type: ContentType,
    difficulty: Difficulty,
    custom_prompt: str | None = None,
) -> str:
    kind = _KIND_BY_TYPE[content_type]
    brief = custom_prompt.strip() if custom_prompt and custom_prompt.strip() else (
        f"Create one practical {kind} for the {category_name} category."
    )

    return f"""{brief}

## Difficulty
{difficulty.value}: {_DIFFICULTY_GUIDANCE[difficulty]}

## Output Format
Return a single JSON object:
{{
  "title": "Catchy title, under 80 characters",
  "summary": "One-sentence summary",
  "body": "1-3 short paragraphs separated by newlines with clear steps and an example",
  "tags": ["two", "to", "five", "tags"]
}}

Rules:
- title and body must not be empty
- Return ONLY the JSON object, no other text"""
