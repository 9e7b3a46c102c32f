"""
Машина состояний жизненного цикла потокового движка.

Назначение:
- централизованное описание разрешённых переходов
- предсказуемое поведение при повторных start()/stop()

Цикл: idle -> running -> stopping -> idle
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import EngineState


# =============================================================================
# РЕЗУЛЬТАТ ПЕРЕХОДА
# =============================================================================
@dataclass
class TransitionResult:
    ok: bool
    state: EngineState
    reason: str | None = None


# =============================================================================
# РАЗРЕШЁННЫЕ ПЕРЕХОДЫ
# =============================================================================
_ALLOWED: dict[EngineState, set[EngineState]] = {
    EngineState.idle: {EngineState.running},
    EngineState.running: {EngineState.stopping},
    EngineState.stopping: {EngineState.idle},
}


def can_transition(current: EngineState, target: EngineState) -> bool:
    return target in _ALLOWED.get(current, set())


def transition(current: EngineState, target: EngineState) -> TransitionResult:
    """
    Правила перехода:
    - разрешённый переход -> ok, новое состояние
    - тот же самый state  -> ok, без изменений (повторный вызов = no-op)
    - остальное          -> not ok, состояние не меняется
    """
    if current == target:
        return TransitionResult(ok=True, state=current, reason="noop")

    if can_transition(current, target):
        return TransitionResult(ok=True, state=target)

    return TransitionResult(
        ok=False,
        state=current,
        reason=f"illegal_transition:{current.value}->{target.value}",
    )
