"""Incremental splitting of a streamed model reply into separate bubbles."""

import enum
import logging
from collections.abc import AsyncIterable
from typing import AsyncIterator

from chaat.services.chat.tags import SEPARATOR

logger = logging.getLogger(__name__)


class SegmenterClosedError(RuntimeError):
    pass


class SegmenterState(enum.Enum):
    AWAITING_CHUNK = "awaiting_chunk"
    BUFFERING = "buffering"
    EMITTING = "emitting"
    DRAINED = "drained"


class StreamSegmenter:
    """Buffers chunks and cuts completed segments off at each separator.

    A separator can arrive split over several chunks, so every scan covers the
    tail of the previous buffer as well as the new chunk. One instance serves
    exactly one stream: after ``finish()`` it rejects further input.
    """

    def __init__(self, separator: str = SEPARATOR):
        if not separator:
            raise ValueError("Separator must be a non-empty string")
        self.separator = separator
        self.state = SegmenterState.AWAITING_CHUNK
        self._buffer = ""
        # Offset before which the buffer is known to hold no separator
        self._scan_from = 0

    @property
    def pending(self) -> str:
        """Text received since the last separator."""
        return self._buffer

    def feed(self, chunk: str) -> list[str]:
        """Add a chunk and return the segments it completed, in order."""
        if self.state is SegmenterState.DRAINED:
            raise SegmenterClosedError("Segmenter already finished")

        self.state = SegmenterState.BUFFERING
        self._buffer += chunk

        completed: list[str] = []
        while True:
            index = self._buffer.find(self.separator, self._scan_from)
            if index < 0:
                break
            self.state = SegmenterState.EMITTING
            completed.append(self._buffer[:index])
            self._buffer = self._buffer[index + len(self.separator):]
            self._scan_from = 0

        self._scan_from = max(0, len(self._buffer) - len(self.separator) + 1)
        self.state = SegmenterState.AWAITING_CHUNK
        return completed

    def finish(self) -> str:
        """Close the stream and return whatever followed the last separator."""
        if self.state is SegmenterState.DRAINED:
            raise SegmenterClosedError("Segmenter already finished")

        remainder, self._buffer = self._buffer, ""
        self._scan_from = 0
        self.state = SegmenterState.DRAINED
        return remainder


async def iter_segments(
    chunks: AsyncIterable[str], separator: str = SEPARATOR
) -> AsyncIterator[str]:
    """Yield each segment as soon as it is complete, then the trailing one.

    The trailing segment is always yielded, even when blank; callers decide
    whether to keep it.
    """
    segmenter = StreamSegmenter(separator)
    count = 0
    async for chunk in chunks:
        for segment in segmenter.feed(chunk):
            count += 1
            yield segment
    yield segmenter.finish()
    logger.debug(f"Stream drained into {count + 1} segments")
