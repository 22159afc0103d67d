"""Tests for prompted structured generation."""
from __future__ import annotations

from collections.abc import Iterator

import pytest

from docstruct.errors import ConfigurationError, ParseError
from docstruct.llm import LLMProviderType, StructuredPrompt, TextGenerator
from docstruct.parsers import JsonOutputParser, StructuredOutputParser

TEMPLATE = "Answer the users question as best as possible.\n{format_instructions}\n{question}"


class MockTextGenerator(TextGenerator):
    """Generator replaying a fixed reply."""

    def __init__(self, reply: str, chunk_size: int = 4):
        self._reply = reply
        self._chunk_size = chunk_size
        self.messages: list[list[dict[str, str]]] = []
        self.models: list[str] = []

    def complete(self, messages, model, temperature=0.0, max_tokens=None, timeout=60.0) -> str:
        self.messages.append(messages)
        self.models.append(model)
        return self._reply

    def stream(self, messages, model, temperature=0.0, max_tokens=None, timeout=60.0) -> Iterator[str]:
        self.messages.append(messages)
        self.models.append(model)
        for i in range(0, len(self._reply), self._chunk_size):
            yield self._reply[i:i + self._chunk_size]

    def is_available(self) -> bool:
        return True

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OPENAI


@pytest.fixture
def parser() -> StructuredOutputParser:
    return StructuredOutputParser.from_names_and_descriptions(
        {
            "answer": "answer to the user's question",
            "source": "source used to answer the user's question, should be a website.",
        }
    )


REPLY = '```json\n{"answer": "Paris", "source": "https://en.wikipedia.org/wiki/Paris"}\n```'


class TestStructuredPrompt:
    def test_format_inserts_instructions(self, parser) -> None:
        prompt = StructuredPrompt(TEMPLATE, parser=parser, generator=MockTextGenerator(REPLY), model="m")

        text = prompt.format(question="What is the capital of France?")

        assert parser.get_format_instructions() in text
        assert text.endswith("What is the capital of France?")
        assert prompt.input_variables == {"question"}

    def test_missing_variable_detected_before_generation(self, parser) -> None:
        generator = MockTextGenerator(REPLY)
        prompt = StructuredPrompt(TEMPLATE, parser=parser, generator=generator, model="m")

        with pytest.raises(ConfigurationError):
            prompt.stream()
        assert generator.messages == []

    def test_invoke_parses_reply(self, parser) -> None:
        generator = MockTextGenerator(REPLY)
        prompt = StructuredPrompt(
            TEMPLATE, parser=parser, generator=generator, model="m", system_prompt="Be brief."
        )

        result = prompt.invoke(question="What is the capital of France?")

        assert result == {"answer": "Paris", "source": "https://en.wikipedia.org/wiki/Paris"}
        assert [m["role"] for m in generator.messages[0]] == ["system", "user"]

    def test_model_defaults_from_settings(self, parser, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCSTRUCT_LLM_PROVIDER", "openai")
        monkeypatch.setenv("DOCSTRUCT_LLM_MODEL", "gpt-4.1-mini")
        generator = MockTextGenerator(REPLY)
        prompt = StructuredPrompt(TEMPLATE, parser=parser, generator=generator)

        prompt.invoke(question="?")

        assert generator.models == ["gpt-4.1-mini"]

    def test_explicit_model_wins(self, parser, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCSTRUCT_LLM_MODEL", "gpt-4.1-mini")
        generator = MockTextGenerator(REPLY)
        prompt = StructuredPrompt(TEMPLATE, parser=parser, generator=generator, model="m")

        list(prompt.stream(question="?"))

        assert generator.models == ["m"]

    def test_invoke_surfaces_parse_error(self, parser) -> None:
        prompt = StructuredPrompt(
            TEMPLATE, parser=parser, generator=MockTextGenerator("Paris, obviously."), model="m"
        )
        with pytest.raises(ParseError):
            prompt.invoke(question="?")

    def test_stream_yields_growing_partials(self, parser) -> None:
        prompt = StructuredPrompt(TEMPLATE, parser=parser, generator=MockTextGenerator(REPLY), model="m")

        values = list(prompt.stream(question="What is the capital of France?"))

        assert values[-1] == {"answer": "Paris", "source": "https://en.wikipedia.org/wiki/Paris"}
        assert any(set(v) == {"answer"} for v in values)

    @pytest.mark.asyncio
    async def test_astream_with_json_parser(self) -> None:
        prompt = StructuredPrompt(
            "List three numbers. {format_instructions}",
            parser=JsonOutputParser(),
            generator=MockTextGenerator("[1, 2, 3]", chunk_size=1),
            model="m",
        )

        values = [value async for value in prompt.astream()]

        assert values[0] == []
        assert values[-1] == [1, 2, 3]
