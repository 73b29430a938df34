# pylint: disable=redefined-outer-name
from threading import Thread

import pytest

from vexec import Chunk, ChunkStore, Source


def test_keeps_chunks_in_append_order(store):
    store.append(b"ab", Source.STDOUT)
    store.append(b"c", Source.STDERR)
    store.append(b"defg", Source.STDOUT)

    assert store.drain() == [
        Chunk(b"ab", Source.STDOUT),
        Chunk(b"c", Source.STDERR),
        Chunk(b"defg", Source.STDOUT),
    ]


def test_drain_resets_the_store(store):
    store.append(b"ab", Source.STDOUT)

    assert len(store.drain()) == 1
    assert len(store) == 0
    assert store.drain() == []


def test_can_append_while_holding_the_lock(store):
    with store.lock:
        chunk = store.append(b"ab", Source.STDERR)

    assert chunk.length == 2
    assert list(store) == [chunk]


@pytest.mark.parametrize(
    "data",
    (
        pytest.param(b"", id="empty"),
        pytest.param(b"12345", id="too-big"),
    ),
)
def test_rejects_invalid_chunks(store, data):
    with pytest.raises(ValueError):
        store.append(data, Source.STDOUT)

    assert len(store) == 0


def test_rejects_invalid_capacity():
    with pytest.raises(ValueError):
        ChunkStore(capacity=0)


def test_concurrent_appends_are_not_lost(store):
    def _append(source):
        for _ in range(500):
            store.append(b"x", source)

    threads = [
        Thread(target=_append, args=[source])
        for source in [Source.STDOUT, Source.STDERR]
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    chunks = store.drain()
    assert len(chunks) == 1000
    assert {
        source: sum(1 for c in chunks if c.source == source)
        for source in Source
    } == {Source.STDOUT: 500, Source.STDERR: 500}
