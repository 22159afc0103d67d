"""
Pytest configuration and shared fixtures.

The in-memory ExampleSource stands in for the dataset service so loader tests
run without network access.
"""
from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import pytest

from docstruct.errors import NotFoundError
from docstruct.loaders.types import ExampleRecord
from docstruct.settings import get_settings


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Drop cached settings so each test reads its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# --- Test Constants ---
DATASET_ID = "9f1c2d3e-0000-4000-8000-000000000001"
DATASET_NAME = "capitals-qa"
CREATED_AT = datetime(2024, 10, 1, 12, 0, 0, tzinfo=UTC)


def make_record(index: int, dataset_id: str = DATASET_ID, **overrides: Any) -> ExampleRecord:
    """Build an example whose input question carries its index."""
    data: dict[str, Any] = {
        "id": f"00000000-0000-4000-8000-{index:012d}",
        "created_at": CREATED_AT,
        "modified_at": CREATED_AT,
        "name": f"#{index}",
        "dataset_id": dataset_id,
        "source_run_id": None,
        "metadata": {"dataset_split": ["base"]},
        "inputs": {"question": f"question {index}", "context": {"lang": "en"}},
        "outputs": {"answer": f"answer {index}"},
    }
    data.update(overrides)
    return ExampleRecord(**data)


class InMemoryExampleSource:
    """ExampleSource backed by a dict of dataset id -> records."""

    def __init__(self, datasets: dict[str, list[ExampleRecord]], names: dict[str, str] | None = None):
        self._datasets = datasets
        self._names = names or {}
        self.calls: list[dict[str, Any]] = []

    def list_examples(
        self,
        *,
        dataset_id: str | None = None,
        dataset_name: str | None = None,
        limit: int | None = None,
        offset: int = 0,
        splits: list[str] | None = None,
        as_of: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Iterator[ExampleRecord]:
        self.calls.append(
            {
                "dataset_id": dataset_id,
                "dataset_name": dataset_name,
                "limit": limit,
                "offset": offset,
                "splits": splits,
                "as_of": as_of,
                "metadata": metadata,
            }
        )
        if dataset_name is not None:
            if dataset_name not in self._names:
                raise NotFoundError(f"No dataset named {dataset_name!r}")
            dataset_id = self._names[dataset_name]
        if dataset_id not in self._datasets:
            raise NotFoundError(f"No dataset with id {dataset_id!r}")

        records = self._datasets[dataset_id][offset:]
        if limit is not None:
            records = records[:limit]
        yield from records


@pytest.fixture
def ten_records() -> list[ExampleRecord]:
    return [make_record(i) for i in range(10)]


@pytest.fixture
def example_source(ten_records: list[ExampleRecord]) -> InMemoryExampleSource:
    return InMemoryExampleSource({DATASET_ID: ten_records}, names={DATASET_NAME: DATASET_ID})


@pytest.fixture
def record_factory():
    """Factory fixture for building example records."""
    return make_record


@pytest.fixture
def source_factory():
    """Factory fixture for building in-memory example sources."""
    return InMemoryExampleSource
