from docstruct.parsers.base import OutputParser, StreamAccumulator, StreamState
from docstruct.parsers.fences import extract_fenced_block, strip_fence
from docstruct.parsers.json_parser import JsonOutputParser, parse_json_markdown, parse_partial_json
from docstruct.parsers.repair import MAX_DEPTH, repair
from docstruct.parsers.structured import StructuredOutputParser

__all__ = [
    "MAX_DEPTH",
    "JsonOutputParser",
    "OutputParser",
    "StreamAccumulator",
    "StreamState",
    "StructuredOutputParser",
    "extract_fenced_block",
    "parse_json_markdown",
    "parse_partial_json",
    "repair",
    "strip_fence",
]
