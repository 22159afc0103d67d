"""
Generic JSON output parser.

Accepts any JSON-legal value. `parse` is strict; `parse_partial` is lenient
and built on `repair` so it can run on every streamed chunk.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from docstruct.errors import ParseError
from docstruct.parsers.base import OutputParser
from docstruct.parsers.fences import strip_fence
from docstruct.parsers.repair import repair

logger = logging.getLogger(__name__)

SCHEMA_FORMAT_INSTRUCTIONS = """You must format your output as a JSON value that adheres to a given "JSON Schema" instance.

"JSON Schema" is a declarative language that allows you to annotate and validate JSON documents.

For example, the example "JSON Schema" instance {{"properties": {{"foo": {{"description": "a list of test words", "type": "array", "items": {{"type": "string"}}}}}}, "required": ["foo"]}}
would match an object with one required property, "foo". The "type" property specifies "foo" must be an "array", and the "description" property semantically describes it as "a list of test words". The items within "foo" must be strings.
Thus, the object {{"foo": ["bar", "baz"]}} is a well-formatted instance of this example "JSON Schema". The object {{"properties": {{"foo": ["bar", "baz"]}}}} is not well-formatted.

Your output will be parsed and type-checked according to the provided schema instance, so make sure all fields in your output match the schema exactly and there are no trailing commas!

Here is the JSON Schema instance your output must adhere to. Include the enclosing markdown codeblock:
```json
{schema}
```
"""

PLAIN_FORMAT_INSTRUCTIONS = "Return a JSON object."


def schema_format_instructions(schema: dict[str, Any]) -> str:
    """Render format instructions embedding a compact JSON schema."""
    return SCHEMA_FORMAT_INSTRUCTIONS.format(schema=json.dumps(schema, ensure_ascii=False))


def parse_json_markdown(text: str) -> Any:
    """Strictly decode JSON, tolerating one surrounding code fence."""
    try:
        return json.loads(strip_fence(text))
    except (json.JSONDecodeError, RecursionError) as e:
        logger.warning("JSON parsing failed: %s. Output (first 200 chars): %s", e, text[:200])
        raise ParseError(
            message=f"Invalid JSON output: {e}",
            raw_text=text,
            parse_error=e,
        ) from e


def parse_partial_json(text: str) -> Any | None:
    """Decode the longest closed prefix of a truncated JSON document."""
    repaired = repair(text)
    if repaired is None:
        return None
    try:
        return json.loads(repaired)
    except (json.JSONDecodeError, RecursionError):
        logger.debug("Repaired text still undecodable: %r", repaired[:200])
        return None


class JsonOutputParser(OutputParser):
    """Parser for arbitrary JSON output.

    Usage:
        parser = JsonOutputParser()
        for partial in parser.stream(chunks):
            print(partial)
    """

    def __init__(self, schema: dict[str, Any] | None = None) -> None:
        self._schema = schema

    def get_format_instructions(self) -> str:
        if self._schema is None:
            return PLAIN_FORMAT_INSTRUCTIONS
        return schema_format_instructions(self._schema)

    def parse(self, text: str) -> Any:
        return parse_json_markdown(text)

    def parse_partial(self, text: str) -> Any | None:
        return parse_partial_json(text)
