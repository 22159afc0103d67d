"""
Prompted structured generation.

Formats a prompt template with the parser's format instructions, sends it to
a text generator and parses the reply, either in one go or as a stream of
partial values.

Usage:
    parser = StructuredOutputParser.from_names_and_descriptions({
        "answer": "answer to the user's question",
        "source": "source used to answer the user's question, should be a website.",
    })
    prompt = StructuredPrompt(
        "Answer the users question as best as possible.\\n{format_instructions}\\n{question}",
        parser=parser,
        generator=get_text_generator(),
    )
    result = prompt.invoke(question="What is the capital of France?")
"""

from __future__ import annotations

import logging
import string
from collections.abc import AsyncIterator, Iterator
from typing import Any

from docstruct.concurrency import iterate_in_thread
from docstruct.errors import ConfigurationError
from docstruct.llm.providers import TextGenerator
from docstruct.parsers.base import OutputParser
from docstruct.settings import get_settings

logger = logging.getLogger(__name__)


class StructuredPrompt:
    """Prompt template bound to a parser and a generator.

    Without an explicit `model`, the configured model for the generator's
    provider is used.
    """

    def __init__(
        self,
        template: str,
        *,
        parser: OutputParser,
        generator: TextGenerator,
        model: str | None = None,
        system_prompt: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> None:
        self._template = template
        self._parser = parser
        self._generator = generator
        self._model = model or get_settings().get_default_model_for_provider(generator.provider_type)
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._variables = {
            name for _, name, _, _ in string.Formatter().parse(template) if name
        }

    @property
    def input_variables(self) -> set[str]:
        """Template variables the caller must supply."""
        return self._variables - {"format_instructions"}

    def format(self, **variables: Any) -> str:
        missing = self.input_variables - set(variables)
        if missing:
            raise ConfigurationError(f"Missing prompt variables: {sorted(missing)}")
        return self._template.format(
            format_instructions=self._parser.get_format_instructions(), **variables
        )

    def _messages(self, variables: dict[str, Any]) -> list[dict[str, str]]:
        messages = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.append({"role": "user", "content": self.format(**variables)})
        return messages

    def invoke(self, **variables: Any) -> Any:
        """Generate a full reply and strictly parse it."""
        text = self._generator.complete(
            self._messages(variables),
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return self._parser.parse(text)

    def stream(self, **variables: Any) -> Iterator[Any]:
        """Yield partial values while the reply streams in, then the final value."""
        messages = self._messages(variables)
        logger.debug("Streaming structured reply from %s", self._model)
        chunks = self._generator.stream(
            messages,
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return self._parser.stream(chunks)

    def astream(self, **variables: Any) -> AsyncIterator[Any]:
        """Async variant of stream(); generator calls run in worker threads."""
        messages = self._messages(variables)
        chunks = self._generator.stream(
            messages,
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return self._parser.astream(iterate_in_thread(chunks))
