"""
Базовый интерфейс STT (Speech-to-Text) для потокового движка.

Назначение:
- единый контракт для всех движков распознавания
- кооперативная отмена: движок периодически опрашивает should_abort()
  и при True быстро возвращает пустую строку

Вход: непрерывный буфер float32 PCM, моно, 16 кГц.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import numpy as np

AbortCheck = Callable[[], bool]


def never_abort() -> bool:
    return False


class InferenceEngine(Protocol):
    def decode(
        self,
        samples: np.ndarray,
        *,
        context: str | None = None,
        should_abort: AbortCheck | None = None,
    ) -> str: ...
