"""
Dataset service access.

`ExampleSource` is the only surface the loader depends on, so tests can swap
in an in-memory fake. `DatasetServiceClient` is the httpx implementation
against the hosted dataset REST API.

Usage:
    with DatasetServiceClient(api_url="https://api.smith.langchain.com", api_key="...") as client:
        for record in client.list_examples(dataset_name="qa-eval", limit=5):
            print(record.inputs)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from typing import Any, Protocol

import httpx

from docstruct.errors import NotFoundError, TransportError
from docstruct.loaders.types import ExampleRecord
from docstruct.settings import Settings

logger = logging.getLogger(__name__)


class ExampleSource(Protocol):
    """Protocol for anything that can list stored examples of one dataset."""

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
    ) -> Iterable[ExampleRecord]:
        """Yield examples in service order.

        Raises NotFoundError when the selector matches no dataset and
        TransportError when the service call fails.
        """
        ...


class DatasetServiceClient:
    def __init__(
        self,
        *,
        api_url: str,
        api_key: str | None = None,
        timeout_s: float = 30.0,
        page_size: int = 100,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._page_size = page_size
        headers = {"Accept": "application/json"}
        if api_key:
            headers["x-api-key"] = api_key
        self._client = httpx.Client(
            base_url=self._api_url,
            timeout=timeout_s,
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> DatasetServiceClient:
        return cls(
            api_url=settings.api_url,
            api_key=settings.api_key,
            timeout_s=settings.timeout_s,
            page_size=settings.page_size,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> DatasetServiceClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_url}{path}"
        try:
            resp = self._client.get(path, params=params)
        except httpx.RequestError as e:
            raise TransportError(
                f"Request to dataset service failed: {e}",
                method="GET",
                url=url,
            ) from e

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Dataset service returned HTTP {resp.status_code}",
                method="GET",
                url=str(resp.request.url),
                status_code=resp.status_code,
            ) from e
        return resp.json()

    def resolve_dataset_id(self, *, dataset_id: str | None, dataset_name: str | None) -> str:
        """Map a selector to a dataset id, checking that the dataset exists."""
        if dataset_id is not None:
            try:
                data = self._get(f"/datasets/{dataset_id}")
            except TransportError as e:
                if e.status_code == 404:
                    raise NotFoundError(f"No dataset with id {dataset_id!r}") from e
                raise
            return str(data["id"])

        data = self._get("/datasets", params={"name": dataset_name, "limit": 1})
        if not data:
            raise NotFoundError(f"No dataset named {dataset_name!r}")
        return str(data[0]["id"])

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
        resolved_id = self.resolve_dataset_id(dataset_id=dataset_id, dataset_name=dataset_name)

        base_params: dict[str, Any] = {"dataset": resolved_id}
        if splits:
            base_params["splits"] = splits
        if as_of:
            base_params["as_of"] = as_of
        if metadata:
            base_params["metadata"] = json.dumps(metadata)

        yielded = 0
        page_offset = offset
        while limit is None or yielded < limit:
            page_limit = self._page_size if limit is None else min(self._page_size, limit - yielded)
            params = {**base_params, "offset": page_offset, "limit": page_limit}
            page = self._get("/examples", params=params)
            logger.debug(
                "Fetched %d examples from dataset %s (offset=%d)", len(page), resolved_id, page_offset
            )
            for item in page:
                yield ExampleRecord.model_validate(item)
                yielded += 1
            if len(page) < page_limit:
                break
            page_offset += len(page)
