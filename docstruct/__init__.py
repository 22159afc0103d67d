"""
docstruct: dataset examples in, structured values out.

Two independent adapters:
- DatasetLoader turns examples stored in a hosted dataset service into Documents.
- StructuredOutputParser / JsonOutputParser turn model text into structured
  values, optionally while the text is still streaming in.
"""

from docstruct.errors import (
    ConfigurationError,
    DocstructError,
    NotFoundError,
    ParseError,
    TransportError,
)
from docstruct.loaders import (
    DatasetLoader,
    DatasetLoaderConfig,
    DatasetServiceClient,
    Document,
    ExampleRecord,
    ExampleSource,
)
from docstruct.parsers import (
    JsonOutputParser,
    OutputParser,
    StreamState,
    StructuredOutputParser,
    repair,
)
from docstruct.settings import Settings, get_settings

__all__ = [
    # Errors
    "ConfigurationError",
    "DocstructError",
    "NotFoundError",
    "ParseError",
    "TransportError",
    # Loading
    "DatasetLoader",
    "DatasetLoaderConfig",
    "DatasetServiceClient",
    "Document",
    "ExampleRecord",
    "ExampleSource",
    # Parsing
    "JsonOutputParser",
    "OutputParser",
    "StreamState",
    "StructuredOutputParser",
    "repair",
    # Configuration
    "Settings",
    "get_settings",
]
