"""
Base Output Parser

All parsers turn model text into structured values and share the streaming
machinery defined here.

Stream lifecycle (one accumulator per stream, never shared):
    EMPTY -> ACCUMULATING   first chunk arrives
    ACCUMULATING -> ACCUMULATING   each further chunk; partial value recomputed
    ACCUMULATING -> COMPLETE   end of stream, strict parse succeeded
    * -> FAILED   strict parse failed; ParseError is raised to the caller
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from enum import Enum
from typing import Any

from docstruct.errors import ParseError

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    FAILED = "failed"


class StreamAccumulator:
    """Private accumulated text and last partial value of one stream."""

    def __init__(self, parser: OutputParser) -> None:
        self._parser = parser
        self.text = ""
        self.state = StreamState.EMPTY
        self.partial: Any = None
        self.has_partial = False

    def feed(self, chunk: str) -> bool:
        """Append a chunk and recompute the partial value.

        Returns True when a new, different partial value is available.
        """
        if self.state in (StreamState.COMPLETE, StreamState.FAILED):
            raise RuntimeError(f"Cannot feed a stream in state {self.state.value}")
        self.text += chunk
        self.state = StreamState.ACCUMULATING

        partial = self._parser.parse_partial(self.text)
        if partial is None:
            return False
        if self.has_partial and partial == self.partial:
            return False
        self.partial = partial
        self.has_partial = True
        return True

    def finish(self) -> Any:
        """Strictly parse the full text once the stream has ended."""
        try:
            value = self._parser.parse(self.text)
        except ParseError:
            self.state = StreamState.FAILED
            logger.warning("Stream ended with unparseable output (%d chars)", len(self.text))
            raise
        self.state = StreamState.COMPLETE
        return value

    def discard(self) -> None:
        self.text = ""
        self.partial = None
        self.has_partial = False


class OutputParser(ABC):
    """Abstract base class for model output parsers."""

    @abstractmethod
    def get_format_instructions(self) -> str:
        """Prompt text telling a model how to shape its output."""
        pass

    @abstractmethod
    def parse(self, text: str) -> Any:
        """Strictly parse complete model output. Raises ParseError."""
        pass

    @abstractmethod
    def parse_partial(self, text: str) -> Any | None:
        """Best-effort value for incomplete output; None when nothing is decodable yet.

        Never raises for incomplete input.
        """
        pass

    def stream(self, chunks: Iterable[str]) -> Iterator[Any]:
        """Yield partial values as chunks arrive, then the final parsed value.

        The final value is only yielded if it differs from the last partial;
        normal exhaustion of the generator means the strict parse succeeded.
        Closing the generator early discards the accumulated text and closes
        `chunks` when it supports it.
        """
        acc = StreamAccumulator(self)
        try:
            for chunk in chunks:
                if acc.feed(chunk):
                    yield acc.partial
            final = acc.finish()
            if not acc.has_partial or final != acc.partial:
                yield final
        finally:
            if acc.state is not StreamState.COMPLETE:
                acc.discard()
            close = getattr(chunks, "close", None)
            if close is not None:
                close()

    async def astream(self, chunks: AsyncIterable[str]) -> AsyncIterator[Any]:
        """Async variant of stream()."""
        acc = StreamAccumulator(self)
        try:
            async for chunk in chunks:
                if acc.feed(chunk):
                    yield acc.partial
            final = acc.finish()
            if not acc.has_partial or final != acc.partial:
                yield final
        finally:
            if acc.state is not StreamState.COMPLETE:
                acc.discard()
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()
