from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Record fields that are identifiers or timestamps on the wire and are
# stringified when copied into document metadata.
STRINGIFIED_FIELDS = ("id", "dataset_id", "source_run_id", "created_at", "modified_at")


class ExampleRecord(BaseModel):
    """A stored example as returned by the dataset service."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    created_at: datetime
    modified_at: datetime | None = None
    name: str | None = None
    dataset_id: str
    source_run_id: str | None = None
    metadata: dict[str, Any] | None = Field(default_factory=dict)
    inputs: dict[str, Any] = Field(default_factory=dict)
    outputs: dict[str, Any] | None = None

    def to_metadata(self) -> dict[str, Any]:
        """Dump the full record with ids and timestamps as strings."""
        data = self.model_dump()
        for key in STRINGIFIED_FIELDS:
            value = data.get(key)
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif value is not None:
                data[key] = str(value)
        return data


def freeze(value: Any) -> Any:
    """Read-only copy of a JSON-like value: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


@dataclass(frozen=True)
class Document:
    """Normalized (content, metadata) pair produced from one example.

    Metadata is frozen all the way down, so a document never changes after
    it is created.
    """
    page_content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", freeze(self.metadata))
