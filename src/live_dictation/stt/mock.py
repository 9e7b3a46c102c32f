from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .base import AbortCheck, InferenceEngine, never_abort


@dataclass
class DecodeCall:
    samples: int
    context: str | None
    aborted: bool = False


class MockInferenceEngine(InferenceEngine):
    """
    Заглушка STT: отдаёт заранее заданные ответы по очереди.

    - элемент сценария str -> возвращается как результат
    - элемент сценария Exception -> выбрасывается
    - сценарий закончился -> повторяется последний элемент
      (без сценария: "mock_transcript samples=<n>")
    - delay_sec > 0 -> имитация долгого декодирования с опросом should_abort
    """

    def __init__(
        self,
        script: Iterable[str | Exception] | None = None,
        *,
        delay_sec: float = 0.0,
        poll_interval_sec: float = 0.005,
    ) -> None:
        self._script: list[str | Exception] = list(script or [])
        self._cursor = 0
        self.delay_sec = delay_sec
        self.poll_interval_sec = poll_interval_sec
        self.calls: list[DecodeCall] = []
        self.started = threading.Event()
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def _next_result(self, samples: int) -> str | Exception:
        if not self._script:
            return f"mock_transcript samples={samples}"
        idx = min(self._cursor, len(self._script) - 1)
        self._cursor += 1
        return self._script[idx]

    def decode(
        self,
        samples: np.ndarray,
        *,
        context: str | None = None,
        should_abort: AbortCheck | None = None,
    ) -> str:
        aborted = should_abort or never_abort
        call = DecodeCall(samples=int(samples.size), context=context)
        with self._lock:
            self.calls.append(call)
            result = self._next_result(call.samples)
        self.started.set()

        deadline = time.monotonic() + self.delay_sec
        while time.monotonic() < deadline:
            if aborted():
                call.aborted = True
                return ""
            time.sleep(self.poll_interval_sec)

        if aborted():
            call.aborted = True
            return ""
        if isinstance(result, Exception):
            raise result
        return result
