"""
Утилиты времени.

Назначение:
- перевод количества сэмплов в секунды и обратно
- подпись "m:ss" для индикатора записи
"""

from __future__ import annotations


def samples_to_seconds(samples: int, sample_rate: int) -> float:
    """
    Длительность в секундах для количества сэмплов.
    """
    if samples <= 0 or sample_rate <= 0:
        return 0.0
    return samples / float(sample_rate)


def seconds_to_samples(seconds: float, sample_rate: int) -> int:
    """
    Количество сэмплов для длительности (округление вниз).
    """
    if seconds <= 0:
        return 0
    return int(seconds * sample_rate)


def format_recording_time(seconds: float) -> str:
    """
    125.7 -> "2:05"
    """
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"
