"""
Доменные перечисления (enum).

Используются во всей системе:
- состояние жизненного цикла потокового движка
- стратегия коммита частичного текста
"""

from __future__ import annotations

import enum


class EngineState(str, enum.Enum):
    """
    Состояние потокового движка.
    """

    idle = "idle"
    running = "running"
    stopping = "stopping"


class CommitStrategy(str, enum.Enum):
    """
    Стратегия коммита.

    duration — весь буфер перераспознаётся, коммит по порогу длительности;
    window   — коммит фиксированного окна с перекрытием и подсказкой из хвоста текста.
    """

    duration = "duration"
    window = "window"
