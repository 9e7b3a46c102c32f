"""
Потоковый движок распознавания.

Алгоритм фонового потока (пока состояние running):
- ждём интервал (первый короче) или сигнал остановки
- под локом буфера проверяем коммит: подтверждаем прошлый частичный текст
  и очищаем буфер, декодирование на этом проходе пропускаем
- меньше минимума аудио -> пропуск
- декодируем весь незакоммиченный буфер (снимок, без лока)
- остановка во время декодирования -> результат выбрасывается, выходим
- частичный текст = очищенный результат; callback(отображаемый текст)

Ошибки декодирования и пустой результат = "нет обновления на этом проходе".

Потоки:
- process() вызывается потоком приёма аудио
- проходы (фоновые и ручные run_pass()) сериализованы: callback
  никогда не вызывается параллельно сам с собой
- stop() блокирует до выхода фонового потока
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import numpy as np

from live_dictation.common import metrics
from live_dictation.common.errors import EngineStartupError, EngineStateError
from live_dictation.common.logging import get_project_logger
from live_dictation.common.time import (
    format_recording_time,
    samples_to_seconds,
    seconds_to_samples,
)
from live_dictation.domain.enums import EngineState
from live_dictation.domain.state_machine import transition
from live_dictation.stt.base import InferenceEngine

from .buffer import StreamingBuffer
from .policy import CommitAction, CommitDecision, CommitPolicy, DurationCommitPolicy
from .text import clean_annotations, join_text

log = get_project_logger()

TextCallback = Callable[[str], None]

SAMPLE_RATE = 16000
INITIAL_INTERVAL_SEC = 0.3
STREAM_INTERVAL_SEC = 0.4
MIN_AUDIO_SEC = 0.25
COMMIT_SEC = 25.0
PASS_LOCK_POLL_SEC = 0.05


class StreamingEngine:
    def __init__(
        self,
        inference: InferenceEngine | None,
        *,
        policy: CommitPolicy | None = None,
        sample_rate: int = SAMPLE_RATE,
        initial_interval_sec: float = INITIAL_INTERVAL_SEC,
        interval_sec: float = STREAM_INTERVAL_SEC,
        min_audio_sec: float = MIN_AUDIO_SEC,
        accept_while_idle: bool = True,
        callback: TextCallback | None = None,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if initial_interval_sec <= 0 or interval_sec <= 0:
            raise ValueError("intervals must be > 0")
        if min_audio_sec <= 0:
            raise ValueError("min_audio_sec must be > 0")

        self.sample_rate = sample_rate
        self.initial_interval_sec = initial_interval_sec
        self.interval_sec = interval_sec
        self.accept_while_idle = accept_while_idle
        self._min_samples = seconds_to_samples(min_audio_sec, sample_rate)

        self._policy: CommitPolicy = policy or DurationCommitPolicy(
            commit_samples=seconds_to_samples(COMMIT_SEC, sample_rate)
        )
        if self._policy.threshold_samples <= self._min_samples:
            raise ValueError("commit threshold must be longer than min_audio_sec")

        self._inference = inference
        self._buffer = StreamingBuffer(initial_capacity=sample_rate * 4)
        self._callback = callback

        self._state = EngineState.idle
        self._control_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        # один проход за раз: фоновый цикл и ручной run_pass() не пересекаются
        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        self._confirmed = ""
        self._partial = ""
        self._displayed = ""
        self._total_samples = 0

    # ------------------------------------------------------------------
    # Состояние
    # ------------------------------------------------------------------
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def policy(self) -> CommitPolicy:
        return self._policy

    @property
    def partial_text(self) -> str:
        return self._partial

    def full_text(self) -> str:
        """
        Подтверждённый текст (никогда не переписывается, только дополняется).
        """
        return self._confirmed

    def displayed_text(self) -> str:
        return self._displayed

    def recording_seconds(self) -> float:
        return samples_to_seconds(self._total_samples, self.sample_rate)

    def recording_label(self) -> str:
        """
        Длительность записи для статусной строки ("m:ss").
        """
        return format_recording_time(self.recording_seconds())

    def buffered_seconds(self) -> float:
        return samples_to_seconds(len(self._buffer), self.sample_rate)

    def set_callback(self, callback: TextCallback | None) -> None:
        self._callback = callback

    # ------------------------------------------------------------------
    # Приём аудио
    # ------------------------------------------------------------------
    def process(self, samples: np.ndarray, count: int | None = None) -> None:
        """
        Принимает float32 моно сэмплы. Не блокирует дольше копирования.

        Без движка распознавания сэмплы отбрасываются.
        В idle сэмплы буферизуются (accept_while_idle) или отбрасываются.
        """
        if self._inference is None:
            return

        chunk = np.asarray(samples, dtype=np.float32).ravel()
        if count is not None:
            chunk = chunk[: max(0, count)]
        if chunk.size == 0:
            return

        if self._state != EngineState.running and not self.accept_while_idle:
            return

        appended = self._buffer.append(chunk)
        with self._counter_lock:
            self._total_samples += appended

    # ------------------------------------------------------------------
    # Управление
    # ------------------------------------------------------------------
    def start(self) -> None:
        with self._control_lock:
            if self._state != EngineState.idle:
                return

            res = transition(self._state, EngineState.running)
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._confirmed = ""
            self._partial = ""
            self._displayed = ""
            self._state = res.state

            thread = threading.Thread(
                target=self._run_loop,
                args=(stop_event,),
                name="stream-engine",
                daemon=True,
            )
            try:
                thread.start()
            except RuntimeError as e:
                self._state = EngineState.idle
                log.error("stream_engine_start_failed", extra={"payload": {"err": str(e)[:200]}})
                raise EngineStartupError("Failed to spawn streaming thread") from e
            self._thread = thread

        log.info(
            "stream_engine_started",
            extra={
                "payload": {
                    "strategy": self._policy.strategy.value,
                    "buffered_sec": round(self.buffered_seconds(), 3),
                }
            },
        )

    def stop(self) -> None:
        with self._control_lock:
            if self._state != EngineState.running:
                return
            self._state = transition(self._state, EngineState.stopping).state
            self._stop_event.set()
            thread = self._thread

        # stop() из callback'а: свой поток не джойним, он выйдет сам после возврата
        if thread is not None and thread is not threading.current_thread():
            thread.join()

        with self._control_lock:
            if self._thread is thread:
                self._thread = None
            self._state = transition(self._state, EngineState.idle).state

        log.info(
            "stream_engine_stopped",
            extra={"payload": {"recording_sec": round(self.recording_seconds(), 3)}},
        )

    def reset(self) -> None:
        """
        Полный сброс: буфер, тексты, счётчик сэмплов.

        Только в idle: сначала stop().
        """
        with self._control_lock:
            if self._state != EngineState.idle:
                raise EngineStateError(
                    "reset() requires a stopped engine",
                    {"state": self._state.value},
                )
            self._buffer.clear()
            self._confirmed = ""
            self._partial = ""
            self._displayed = ""
            with self._counter_lock:
                self._total_samples = 0
        metrics.set_buffer_seconds(0.0)

    # ------------------------------------------------------------------
    # Фоновый цикл
    # ------------------------------------------------------------------
    def _run_loop(self, stop_event: threading.Event) -> None:
        first = True
        while not stop_event.is_set():
            interval = self.initial_interval_sec if first else self.interval_sec
            first = False

            if stop_event.wait(interval):
                break
            if not self._run_pass(stop_event):
                break

    def run_pass(self) -> bool:
        """
        Один проход цикла (ожидание не входит).

        Возвращает False, если движок остановлен и цикл должен завершиться.
        """
        if self._state != EngineState.running:
            return False
        return self._run_pass(self._stop_event)

    def _commit_check(self) -> CommitDecision:
        decision = CommitDecision()
        last_partial = self._partial

        def _decide(buffered: int) -> int | None:
            nonlocal decision
            decision = self._policy.decide(buffered, last_partial)
            return decision.keep_samples if decision.clears_buffer else None

        dropped = self._buffer.commit_and_clear(_decide)

        if decision.action == CommitAction.commit:
            self._confirmed = join_text(self._confirmed, last_partial)
            self._partial = ""
            metrics.record_commit(self._policy.strategy.value)
            metrics.record_skipped_pass("commit")
            log.info(
                "stream_commit",
                extra={
                    "payload": {
                        "committed_sec": round(samples_to_seconds(dropped, self.sample_rate), 3),
                        "confirmed_chars": len(self._confirmed),
                    }
                },
            )
        elif decision.action == CommitAction.discard:
            self._partial = ""
            metrics.record_skipped_pass("discard")
            log.info(
                "stream_buffer_discarded",
                extra={
                    "payload": {
                        "discarded_sec": round(samples_to_seconds(dropped, self.sample_rate), 3)
                    }
                },
            )
        return decision

    def _run_pass(self, stop_event: threading.Event) -> bool:
        # Ждём чужой проход, но не дольше остановки: stop() из callback'а
        # ручного прохода джойнит фоновый поток, который может стоять тут.
        while not self._pass_lock.acquire(timeout=PASS_LOCK_POLL_SEC):
            if stop_event.is_set():
                return False
        try:
            if stop_event.is_set():
                return False
            return self._run_pass_locked(stop_event)
        finally:
            self._pass_lock.release()

    def _run_pass_locked(self, stop_event: threading.Event) -> bool:
        if self._inference is None:
            metrics.record_skipped_pass("no_engine")
            return True

        if self._commit_check().clears_buffer:
            metrics.set_buffer_seconds(self.buffered_seconds())
            return True

        audio = self._buffer.snapshot()
        metrics.set_buffer_seconds(samples_to_seconds(audio.size, self.sample_rate))
        if audio.size < self._min_samples:
            metrics.record_skipped_pass("min_audio")
            return True

        if stop_event.is_set():
            return False

        try:
            with metrics.track_decode_latency():
                raw = self._inference.decode(
                    audio,
                    context=self._policy.context(self._confirmed),
                    should_abort=stop_event.is_set,
                )
        except Exception as e:
            if stop_event.is_set():
                metrics.record_decode_result("cancelled")
                return False
            metrics.record_decode_result("failed")
            log.warning(
                "stream_decode_failed",
                extra={"payload": {"err": str(e)[:250], "samples": int(audio.size)}},
            )
            return True

        if stop_event.is_set():
            metrics.record_decode_result("cancelled")
            log.info("stream_decode_cancelled", extra={"payload": {"samples": int(audio.size)}})
            return False

        if not raw or not raw.strip():
            metrics.record_decode_result("empty")
            return True

        partial = self._policy.merge(self._confirmed, clean_annotations(raw).strip())
        self._partial = partial
        self._displayed = join_text(self._confirmed, partial)
        metrics.record_decode_result("ok")
        self._publish(self._displayed)
        return True

    def _publish(self, text: str) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            callback(text)
        except Exception as e:
            log.error("stream_callback_failed", extra={"payload": {"err": str(e)[:250]}})
