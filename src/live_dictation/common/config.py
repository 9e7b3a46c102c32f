"""
Централизованная конфигурация проекта (ENV / .env).

Важно:
- настройки читаются из .env и переменных окружения
- типизированные значения через pydantic-settings
- значения по умолчанию совпадают с параметрами потокового движка
"""

from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Аудио
    # -------------------------------------------------------------------------
    sample_rate: int = Field(default=16000, alias="SAMPLE_RATE")

    # -------------------------------------------------------------------------
    # Потоковый движок
    # -------------------------------------------------------------------------
    stream_initial_interval_ms: int = Field(default=300, alias="STREAM_INITIAL_INTERVAL_MS")
    stream_interval_ms: int = Field(default=400, alias="STREAM_INTERVAL_MS")
    stream_min_audio_sec: float = Field(default=0.25, alias="STREAM_MIN_AUDIO_SEC")
    stream_commit_sec: float = Field(default=25.0, alias="STREAM_COMMIT_SEC")
    stream_commit_strategy: str = Field(
        default="duration", alias="STREAM_COMMIT_STRATEGY"
    )  # duration|window
    stream_window_sec: float = Field(default=10.0, alias="STREAM_WINDOW_SEC")
    stream_overlap_sec: float = Field(default=1.0, alias="STREAM_OVERLAP_SEC")
    stream_context_words: int = Field(default=32, alias="STREAM_CONTEXT_WORDS")
    stream_accept_while_idle: bool = Field(default=True, alias="STREAM_ACCEPT_WHILE_IDLE")

    # -------------------------------------------------------------------------
    # STT
    # -------------------------------------------------------------------------
    stt_provider: str = Field(default="whisper_local", alias="STT_PROVIDER")  # whisper_local|mock

    # Локальный Whisper (faster-whisper)
    whisper_model_size: str = Field(default="base.en", alias="WHISPER_MODEL_SIZE")
    whisper_device: str = Field(default="cpu", alias="WHISPER_DEVICE")  # cpu|cuda
    whisper_compute_type: str = Field(default="int8", alias="WHISPER_COMPUTE_TYPE")
    whisper_language: str = Field(default="en", alias="WHISPER_LANGUAGE")
    whisper_beam_size: int = Field(default=1, alias="WHISPER_BEAM_SIZE")
    whisper_cpu_threads: int = Field(default=0, alias="WHISPER_CPU_THREADS")  # 0 = авто

    # -------------------------------------------------------------------------
    # Логи
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|text


def inference_thread_count(configured: int = 0) -> int:
    """
    Количество потоков для инференса.

    0 -> число ядер, зажатое в диапазон [4, 16].
    """
    if configured > 0:
        return configured
    cores = os.cpu_count() or 1
    return max(4, min(cores, 16))


_SETTINGS = Settings()


def get_settings() -> Settings:
    return _SETTINGS
