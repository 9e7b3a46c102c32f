"""
Единые ошибки и коды ошибок.

Назначение:
- предсказуемые коды для логов и метрик
- единый стиль исключений по проекту

Наружу (потребителю транскрипта) ошибки декодирования не пробрасываются:
движок превращает их в "нет обновления на этом проходе".
Громко падать может только start().
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Жизненный цикл движка
    ENGINE_STATE = "engine_state"
    ENGINE_STARTUP = "engine_startup"
    ENGINE_UNAVAILABLE = "engine_unavailable"

    # Провайдеры
    STT_PROVIDER_ERROR = "stt_provider_error"


@dataclass
class AppError(Exception):
    """
    Базовая ошибка приложения.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без аудио и текста транскрипта)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class EngineStateError(AppError):
    def __init__(self, message: str = "Illegal engine state", details: dict | None = None) -> None:
        super().__init__(ErrCode.ENGINE_STATE, message, details)


class EngineStartupError(AppError):
    def __init__(self, message: str = "Engine failed to start", details: dict | None = None) -> None:
        super().__init__(ErrCode.ENGINE_STARTUP, message, details)


class ProviderError(AppError):
    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(code, message, details)
