from __future__ import annotations

import logging
import os
import selectors
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Tuple

if TYPE_CHECKING:
    from ._chunks import ChunkStore, Source

LOGGER = logging.getLogger(__name__)


class _BaseReader:
    name: str

    def __init__(self, store: ChunkStore) -> None:
        self.errors: Dict[Source, OSError] = {}
        self.finished = False
        self._store = store

    def run(self) -> None:
        raise NotImplementedError()

    def _watch(
        self, selector: selectors.BaseSelector, fd: int, source: Source
    ) -> bool:
        """
        Make ``fd`` non-blocking and wait for it to be readable in
        ``selector``.

        :return: whether the stream can be read from.
        """
        try:
            os.set_blocking(fd, False)
            selector.register(fd, selectors.EVENT_READ, source)
        except OSError as exc:
            self._record_error(source, exc)
            return False
        return True

    def _record_error(self, source: Source, error: OSError) -> None:
        LOGGER.error("Failed reading from %s: %s", source, error)
        self.errors[source] = error

    def _read_chunk(self, fd: int, source: Source) -> Optional[bytes]:
        """
        Read at most one chunk from ``fd`` and append it to the store.

        The store lock is held for the read and the append together.

        :return: the bytes read, an empty bytes on EOF or on error and
                 ``None`` if no data is currently available.
        """
        error = None

        with self._store.lock:
            try:
                data = os.read(fd, self._store.capacity)
            except BlockingIOError:
                return None
            except OSError as exc:
                error = exc
                data = b""
            else:
                if data:
                    self._store.append(data, source)

        if error is not None:
            self._record_error(source, error)

        return data


class StreamReader(_BaseReader):
    """
    Copy a single stream into the store, one chunk per successful read.

    The descriptor is switched to non-blocking mode so that the store lock
    is never held while waiting for data. When nothing is available, the
    reader waits for the descriptor to become readable, without the lock.

    :param fd: the file descriptor to read from.
    :param source: the tag to attach to every chunk read from ``fd``.
    :param store: where to append chunks.
    """

    def __init__(self, fd: int, source: Source, store: ChunkStore) -> None:
        super().__init__(store)
        self.fd = fd
        self.source = source
        self.name = f"{source}-reader"

    @property
    def error(self) -> Optional[OSError]:
        return self.errors.get(self.source)

    def run(self) -> None:
        LOGGER.debug("Starting reader for %s on fd %d", self.source, self.fd)
        try:
            with selectors.DefaultSelector() as selector:
                if not self._watch(selector, self.fd, self.source):
                    return

                while True:
                    data = self._read_chunk(self.fd, self.source)
                    if data is None:
                        selector.select()
                    elif not data:
                        break
        finally:
            self.finished = True
            LOGGER.debug("Reader for %s finished", self.source)


class SelectorMultiplexer(_BaseReader):
    """
    Copy several streams into the store from a single thread.

    Streams are read whenever the selector reports them as readable. This
    removes the race between two threads competing for the store lock, at
    the cost of relying on the selector's ordering when several streams are
    ready at once.

    :param streams: pairs of file descriptor and the source tag to use.
    :param store: where to append chunks.
    """

    name = "multiplexer"

    def __init__(
        self, streams: Iterable[Tuple[int, Source]], store: ChunkStore
    ) -> None:
        super().__init__(store)
        self.streams = list(streams)

    def run(self) -> None:
        LOGGER.debug(
            "Starting multiplexer for %s",
            ", ".join(str(source) for _, source in self.streams),
        )

        try:
            with selectors.DefaultSelector() as selector:
                for fd, source in self.streams:
                    self._watch(selector, fd, source)

                while selector.get_map():
                    for key, _ in selector.select():
                        data = self._read_chunk(key.fd, key.data)
                        if data is not None and not data:
                            LOGGER.debug("Stream %s closed", key.data)
                            selector.unregister(key.fd)
        finally:
            self.finished = True
            LOGGER.debug("Multiplexer finished")
