from __future__ import annotations

import threading

import numpy as np

from live_dictation.streaming.buffer import StreamingBuffer


def test_append_and_snapshot_keep_order() -> None:
    buf = StreamingBuffer()
    buf.append(np.array([1.0, 2.0], dtype=np.float32))
    buf.append([3.0])

    snap = buf.snapshot()
    assert snap.dtype == np.float32
    assert snap.tolist() == [1.0, 2.0, 3.0]
    assert len(buf) == 3


def test_snapshot_is_a_copy() -> None:
    buf = StreamingBuffer()
    buf.append(np.ones(4, dtype=np.float32))
    snap = buf.snapshot()
    snap[:] = 7.0
    assert buf.snapshot().tolist() == [1.0, 1.0, 1.0, 1.0]


def test_append_grows_capacity() -> None:
    buf = StreamingBuffer(initial_capacity=16000)
    data = np.arange(50000, dtype=np.float32)
    for part in np.array_split(data, 7):
        buf.append(part)
    assert len(buf) == 50000
    assert buf.capacity >= 50000
    assert np.array_equal(buf.snapshot(), data)


def test_append_empty_is_noop() -> None:
    buf = StreamingBuffer()
    assert buf.append(np.zeros(0, dtype=np.float32)) == 0
    assert len(buf) == 0


def test_commit_and_clear_respects_decision() -> None:
    buf = StreamingBuffer()
    buf.append(np.arange(10, dtype=np.float32))
    seen: list[int] = []

    def _no(length: int) -> int | None:
        seen.append(length)
        return None

    assert buf.commit_and_clear(_no) == 0
    assert seen == [10]
    assert len(buf) == 10

    assert buf.commit_and_clear(lambda length: 0) == 10
    assert len(buf) == 0


def test_commit_and_clear_keeps_tail() -> None:
    buf = StreamingBuffer()
    buf.append(np.arange(10, dtype=np.float32))
    assert buf.commit_and_clear(lambda length: 3) == 7
    assert buf.snapshot().tolist() == [7.0, 8.0, 9.0]

    buf.append([10.0])
    assert buf.snapshot().tolist() == [7.0, 8.0, 9.0, 10.0]


def test_concurrent_appends_lose_nothing() -> None:
    buf = StreamingBuffer(initial_capacity=16000)
    chunk = np.ones(160, dtype=np.float32)

    def _writer() -> None:
        for _ in range(200):
            buf.append(chunk)

    threads = [threading.Thread(target=_writer) for _ in range(4)]
    for t in threads:
        t.start()
    for _ in range(50):
        buf.snapshot()
    for t in threads:
        t.join()

    assert len(buf) == 4 * 200 * 160
