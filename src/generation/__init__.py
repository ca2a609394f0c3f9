"""Content generation via the LLM."""

from hackfeed.generation.generator import ContentGenerator, GeneratedContent  # noqa: F401
from hackfeed.generation.prompts import get_generation_prompt  # noqa: F401
