"""
Потоковый буфер аудио.

Накапливает float32 сэмплы между коммитами. Пишет поток приёма аудио
(append), читает и очищает фоновый поток движка (snapshot, commit_and_clear).

Лок держится только на время копирования, никогда на время декодирования.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import numpy as np

_MIN_CAPACITY = 16000


class StreamingBuffer:
    def __init__(self, initial_capacity: int = _MIN_CAPACITY * 4) -> None:
        self._lock = threading.Lock()
        self._data = np.zeros(max(_MIN_CAPACITY, initial_capacity), dtype=np.float32)
        self._size = 0

    def __len__(self) -> int:
        with self._lock:
            return self._size

    @property
    def capacity(self) -> int:
        return int(self._data.size)

    def append(self, samples: np.ndarray) -> int:
        """
        Дописывает сэмплы в хвост. Амортизированно O(1) на сэмпл:
        при нехватке места ёмкость удваивается.
        """
        chunk = np.asarray(samples, dtype=np.float32).ravel()
        n = int(chunk.size)
        if n == 0:
            return 0

        with self._lock:
            need = self._size + n
            if need > self._data.size:
                grown = np.empty(max(need, self._data.size * 2), dtype=np.float32)
                grown[: self._size] = self._data[: self._size]
                self._data = grown
            self._data[self._size : need] = chunk
            self._size = need
        return n

    def snapshot(self) -> np.ndarray:
        """
        Копия текущего содержимого без очистки.
        """
        with self._lock:
            return self._data[: self._size].copy()

    def commit_and_clear(self, decide: Callable[[int], int | None]) -> int:
        """
        Атомарная проверка и очистка.

        decide(length) вызывается под локом:
        - None -> буфер не трогаем
        - keep -> оставляем последние keep сэмплов (0 = очистить полностью)

        Возвращает количество удалённых сэмплов.
        """
        with self._lock:
            keep = decide(self._size)
            if keep is None:
                return 0

            keep = max(0, min(int(keep), self._size))
            dropped = self._size - keep
            if keep:
                self._data[:keep] = self._data[dropped : self._size].copy()
            self._size = keep
            return dropped

    def clear(self) -> None:
        with self._lock:
            self._size = 0
