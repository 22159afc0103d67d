"""
Fixed-schema output parser.

Validates model output against a closed set of named fields: the decoded
object must carry exactly the declared keys, nothing more and nothing less.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from docstruct.errors import ConfigurationError, ParseError
from docstruct.parsers.base import OutputParser
from docstruct.parsers.fences import extract_fenced_block, strip_fence
from docstruct.parsers.json_parser import parse_partial_json, schema_format_instructions

logger = logging.getLogger(__name__)

JSON_SCHEMA_DRAFT_07 = "http://json-schema.org/draft-07/schema#"


def _drop_titles(schema: Any) -> Any:
    if isinstance(schema, dict):
        # A property named "title" maps to a dict and is kept
        return {
            k: _drop_titles(v)
            for k, v in schema.items()
            if not (k == "title" and isinstance(v, str))
        }
    if isinstance(schema, list):
        return [_drop_titles(v) for v in schema]
    return schema


class StructuredOutputParser(OutputParser):
    """Parser for a fixed set of named fields.

    Build it with `from_names_and_descriptions` (string fields) or
    `from_model` (fields and types from a pydantic model).
    """

    def __init__(
        self,
        schema: dict[str, Any],
        field_names: tuple[str, ...],
        model: type[BaseModel] | None = None,
    ) -> None:
        if not field_names:
            raise ConfigurationError("A structured parser needs at least one field")
        self._schema = schema
        self._field_names = field_names
        self._model = model

    @classmethod
    def from_names_and_descriptions(cls, fields: Mapping[str, str]) -> StructuredOutputParser:
        """Parser whose output is an object of string fields, one per name."""
        if not fields:
            raise ConfigurationError("A structured parser needs at least one field")
        schema = {
            "type": "object",
            "properties": {
                name: {"type": "string", "description": description}
                for name, description in fields.items()
            },
            "required": list(fields),
            "additionalProperties": False,
            "$schema": JSON_SCHEMA_DRAFT_07,
        }
        return cls(schema, tuple(fields))

    @classmethod
    def from_model(cls, model: type[BaseModel]) -> StructuredOutputParser:
        """Parser validating output with a pydantic model; `parse` returns a model instance."""
        schema = _drop_titles(model.model_json_schema())
        schema["additionalProperties"] = False
        schema["$schema"] = JSON_SCHEMA_DRAFT_07
        return cls(schema, tuple(model.model_fields), model=model)

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._field_names

    @property
    def schema(self) -> dict[str, Any]:
        return self._schema

    def get_format_instructions(self) -> str:
        return schema_format_instructions(self._schema)

    def _decode(self, text: str) -> Any:
        # Try the whole text before any fenced block found inside it.
        candidates = [strip_fence(text)]
        block = extract_fenced_block(text)
        if block is not None and block not in candidates:
            candidates.append(block)

        error: Exception | None = None
        for body in candidates:
            try:
                return json.loads(body)
            except (json.JSONDecodeError, RecursionError) as e:
                error = e
        logger.warning(
            "Structured output parsing failed: %s. Output (first 200 chars): %s",
            error, text[:200],
        )
        raise ParseError(
            message=f"Failed to parse structured JSON: {error}",
            raw_text=text,
            parse_error=error,
        ) from error

    def _check_keys(self, data: dict[str, Any], text: str) -> None:
        expected = set(self._field_names)
        actual = set(data)
        if self._model is not None:
            # Optional model fields may be omitted; unknown keys never pass.
            required = {
                name for name, info in self._model.model_fields.items() if info.is_required()
            }
            missing = required - actual
        else:
            missing = expected - actual
        unexpected = actual - expected
        if missing or unexpected:
            parts = []
            if missing:
                parts.append(f"missing keys {sorted(missing)}")
            if unexpected:
                parts.append(f"unexpected keys {sorted(unexpected)}")
            raise ParseError(message="Output keys do not match schema: " + ", ".join(parts), raw_text=text)

    def parse(self, text: str) -> Any:
        data = self._decode(text)
        if not isinstance(data, dict):
            raise ParseError(
                message=f"Expected a JSON object, got {type(data).__name__}",
                raw_text=text,
            )
        self._check_keys(data, text)

        if self._model is not None:
            try:
                return self._model.model_validate(data)
            except ValidationError as e:
                raise ParseError(
                    message=f"Output failed schema validation: {e}",
                    raw_text=text,
                    parse_error=e,
                ) from e

        non_strings = sorted(name for name, value in data.items() if not isinstance(value, str))
        if non_strings:
            raise ParseError(message=f"Fields must be strings: {non_strings}", raw_text=text)
        return data

    def parse_partial(self, text: str) -> dict[str, Any] | None:
        partial = parse_partial_json(text)
        if not isinstance(partial, dict):
            return None
        return {name: partial[name] for name in self._field_names if name in partial}
