from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Iterator

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8


class Source(enum.Enum):
    STDOUT = "stdout"
    STDERR = "stderr"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Chunk:
    """
    The bytes returned by a single successful read on one of the streams.
    """

    data: bytes
    source: Source

    @property
    def length(self) -> int:
        return len(self.data)


class ChunkStore:
    """
    An ordered, append-only sequence of :py:class:`Chunk`.

    The store has a single lock. Readers are expected to hold it for the
    whole read-then-append step (see :py:attr:`lock`), which makes the
    order in which the lock was granted the order of the chunks.

    :param capacity: the maximum number of bytes a single chunk can hold.
    """

    def __init__(self, capacity: int = DEFAULT_CHUNK_SIZE) -> None:
        if capacity < 1:
            raise ValueError(
                f"Chunk capacity must be at least 1, got {capacity}"
            )

        self.capacity = capacity
        self._chunks: list[Chunk] = []
        self._lock = RLock()

    @property
    def lock(self) -> RLock:
        """
        The lock serializing every append on this store.

        It is re-entrant, so that :py:func:`append` can be called while
        holding it.
        """
        return self._lock

    def append(self, data: bytes, source: Source) -> Chunk:
        if not data:
            raise ValueError("Can't append an empty chunk")
        if len(data) > self.capacity:
            raise ValueError(
                f"Chunk of {len(data)} bytes exceeds the store capacity"
                f" of {self.capacity} bytes"
            )

        chunk = Chunk(bytes(data), source)
        with self._lock:
            self._chunks.append(chunk)
        return chunk

    def drain(self) -> list[Chunk]:
        """
        Return every chunk in order, and reset the store to empty.

        This does not take the lock: it must only be called once every
        reader feeding this store has terminated.
        """
        chunks = self._chunks
        self._chunks = []
        LOGGER.debug("Drained %d chunks", len(chunks))
        return chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(list(self._chunks))
