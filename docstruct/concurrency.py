from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from typing import TypeVar

T = TypeVar("T")

_EXHAUSTED = object()


async def iterate_in_thread(iterator: Iterator[T]) -> AsyncIterator[T]:
    """Drive a blocking iterator from async code, one item per worker-thread hop.

    The event loop is free while each item is produced. If the consumer stops
    early or is cancelled, the in-flight step is awaited, the iterator is
    closed and nothing further is pulled from it.
    """
    pending: asyncio.Future | None = None
    try:
        while True:
            pending = asyncio.ensure_future(asyncio.to_thread(next, iterator, _EXHAUSTED))
            # Shielded so a cancelled consumer leaves the worker step running to completion
            item = await asyncio.shield(pending)
            pending = None
            if item is _EXHAUSTED:
                break
            yield item  # type: ignore[misc]
    finally:
        if pending is not None:
            await asyncio.wait([pending])
            if not pending.cancelled():
                # Marks a failed step as retrieved
                pending.exception()
        close = getattr(iterator, "close", None)
        if close is not None:
            close()
