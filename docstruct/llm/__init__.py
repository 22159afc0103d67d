"""
Text generation for structured prompts.

Usage:
    from docstruct.llm import StructuredPrompt, get_text_generator

    prompt = StructuredPrompt(template, parser=parser, generator=get_text_generator(), model="gpt-4o-mini")
    for partial in prompt.stream(question="..."):
        print(partial)
"""

from docstruct.llm.chain import StructuredPrompt
from docstruct.llm.providers import (
    AnthropicGenerator,
    LLMProviderType,
    OllamaGenerator,
    OpenAIGenerator,
    TextGenerator,
    get_text_generator,
)

__all__ = [
    "AnthropicGenerator",
    "LLMProviderType",
    "OllamaGenerator",
    "OpenAIGenerator",
    "StructuredPrompt",
    "TextGenerator",
    "get_text_generator",
]
