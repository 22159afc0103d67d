"""
Dataset Loader

Turns examples stored in the dataset service into `Document` objects.

Responsible for:
1. Validating the dataset selector before any call is made
2. Pulling records through an `ExampleSource`, in service order, up to a limit
3. Extracting the content field and copying the record into metadata

Usage:
    client = DatasetServiceClient.from_settings(get_settings())
    loader = DatasetLoader(client, dataset_name="qa-eval", content_key="question", limit=5)
    docs = loader.load()
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docstruct.concurrency import iterate_in_thread
from docstruct.errors import ConfigurationError
from docstruct.loaders.client import DatasetServiceClient, ExampleSource
from docstruct.loaders.types import Document, ExampleRecord
from docstruct.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class DatasetLoaderConfig(BaseModel):
    """Explicit configuration for one dataset load."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    dataset_name: str | None = None
    dataset_id: str | None = None
    content_key: str = Field(default="", description="Dotted path into the example inputs")
    format_content: Callable[[Mapping[str, Any]], str] | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
    splits: list[str] | None = None
    as_of: str | None = None
    metadata: dict[str, Any] | None = None


def stringify_content(value: Any) -> str:
    """Render extracted content as text."""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2)
    except (TypeError, ValueError):
        return str(value)


class DatasetLoader:
    def __init__(
        self,
        client: ExampleSource,
        config: DatasetLoaderConfig | None = None,
        **config_fields: Any,
    ) -> None:
        if config is not None and config_fields:
            raise ConfigurationError("Pass either a DatasetLoaderConfig or keyword fields, not both")
        if config is None:
            try:
                config = DatasetLoaderConfig(**config_fields)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid loader configuration: {e}") from e

        has_name = bool(config.dataset_name)
        has_id = bool(config.dataset_id)
        if has_name == has_id:
            raise ConfigurationError(
                "Exactly one of dataset_name or dataset_id must be provided"
                + (" (got both)" if has_name else " (got neither)")
            )

        self._client = client
        self._config = config
        self._content_path = config.content_key.split(".") if config.content_key else []

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **config_fields: Any) -> DatasetLoader:
        """Build a loader backed by the HTTP dataset client."""
        client = DatasetServiceClient.from_settings(settings or get_settings())
        return cls(client, **config_fields)

    @property
    def config(self) -> DatasetLoaderConfig:
        return self._config

    def _extract_content(self, record: ExampleRecord) -> str:
        if self._config.format_content is not None:
            content = self._config.format_content(record.inputs)
            if not isinstance(content, str):
                raise TypeError(
                    f"format_content must return str, got {type(content).__name__}"
                )
            return content

        value: Any = record.inputs
        for key in self._content_path:
            value = value[key]
        return stringify_content(value)

    def to_document(self, record: ExampleRecord) -> Document:
        return Document(page_content=self._extract_content(record), metadata=record.to_metadata())

    def lazy_load(self) -> Iterator[Document]:
        """Fetch and convert records one at a time. Each call re-issues the fetch."""
        cfg = self._config
        logger.debug(
            "Loading examples (dataset_name=%s, dataset_id=%s, limit=%s)",
            cfg.dataset_name, cfg.dataset_id, cfg.limit,
        )
        records = self._client.list_examples(
            dataset_id=cfg.dataset_id,
            dataset_name=cfg.dataset_name,
            limit=cfg.limit,
            offset=cfg.offset,
            splits=cfg.splits,
            as_of=cfg.as_of,
            metadata=cfg.metadata,
        )
        count = 0
        try:
            for record in records:
                yield self.to_document(record)
                count += 1
                if cfg.limit is not None and count >= cfg.limit:
                    break
        finally:
            close = getattr(records, "close", None)
            if close is not None:
                close()
        logger.debug("Loaded %d documents", count)

    def load(self) -> list[Document]:
        return list(self.lazy_load())

    async def alazy_load(self) -> AsyncIterator[Document]:
        """Async variant of lazy_load; each fetch step runs in a worker thread."""
        async for doc in iterate_in_thread(self.lazy_load()):
            yield doc

    async def aload(self) -> list[Document]:
        return [doc async for doc in self.alazy_load()]
