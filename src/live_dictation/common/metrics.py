"""
Метрики Prometheus для потокового движка.

Назначение:
- счётчики проходов декодирования и коммитов
- задержка декодирования
- текущий размер незакоммиченного буфера
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

DECODE_PASSES_TOTAL = Counter(
    "dictation_decode_passes_total",
    "Количество проходов декодирования",
    ["result"],  # ok|empty|failed|cancelled
)

DECODE_LATENCY_MS = Histogram(
    "dictation_decode_latency_ms",
    "Задержка одного прохода декодирования (мс)",
    buckets=(25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000),
)

COMMITS_TOTAL = Counter(
    "dictation_commits_total",
    "Количество коммитов частичного текста в подтверждённый",
    ["strategy"],  # duration|window
)

SKIPPED_PASSES_TOTAL = Counter(
    "dictation_skipped_passes_total",
    "Проходы без вызова движка распознавания",
    ["reason"],  # min_audio|commit|discard|no_engine
)

BUFFER_SECONDS = Gauge(
    "dictation_buffer_seconds",
    "Длительность незакоммиченного аудио в буфере (сек)",
)


@contextmanager
def track_decode_latency() -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        DECODE_LATENCY_MS.observe(elapsed_ms)


def record_decode_result(result: str) -> None:
    DECODE_PASSES_TOTAL.labels(result=result).inc()


def record_skipped_pass(reason: str) -> None:
    SKIPPED_PASSES_TOTAL.labels(reason=reason).inc()


def record_commit(strategy: str) -> None:
    COMMITS_TOTAL.labels(strategy=strategy).inc()


def set_buffer_seconds(seconds: float) -> None:
    BUFFER_SECONDS.set(max(0.0, float(seconds)))
