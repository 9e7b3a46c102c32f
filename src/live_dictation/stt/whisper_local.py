"""
Локальный STT на базе faster-whisper.

Что делает:
- принимает float32 PCM 16 кГц моно (уже в памяти, без ffmpeg)
- запускает Whisper модель локально, greedy, без таймстампов
- между сегментами опрашивает should_abort() и прерывается

Примечание:
- faster-whisper генерирует сегменты лениво, но первый сегмент появляется
  только после полного декодирования первого 30-секундного окна. Для буфера
  потокового режима (до ~25 с) это и есть весь вызов: отмена замечается
  после него, и stop() может ждать одно полное декодирование.
  Прерывание внутри окна faster-whisper не поддерживает.
"""

from __future__ import annotations

import numpy as np
from faster_whisper import WhisperModel

from live_dictation.common.config import get_settings, inference_thread_count
from live_dictation.common.errors import ErrCode, ProviderError
from live_dictation.common.logging import get_stt_logger

from .base import AbortCheck, InferenceEngine, never_abort

log = get_stt_logger()


class WhisperLocalEngine(InferenceEngine):
    def __init__(
        self,
        model_size: str | None = None,
        device: str | None = None,
        compute_type: str | None = None,
        language: str | None = None,
        beam_size: int | None = None,
        cpu_threads: int | None = None,
        **_: object,
    ) -> None:
        s = get_settings()

        # берём параметры из аргументов, иначе из настроек
        model_size = model_size or s.whisper_model_size
        device = device or s.whisper_device
        compute_type = compute_type or s.whisper_compute_type
        threads = inference_thread_count(
            s.whisper_cpu_threads if cpu_threads is None else cpu_threads
        )

        self.model = WhisperModel(
            model_size,
            device=device,
            compute_type=compute_type,
            cpu_threads=threads,
        )

        self.language = language or s.whisper_language
        self.beam_size = beam_size or s.whisper_beam_size

        log.info(
            "whisper_local_loaded",
            extra={"payload": {"model": model_size, "device": device, "threads": threads}},
        )

    def decode(
        self,
        samples: np.ndarray,
        *,
        context: str | None = None,
        should_abort: AbortCheck | None = None,
    ) -> str:
        aborted = should_abort or never_abort
        if samples.size == 0 or aborted():
            return ""

        audio = np.ascontiguousarray(samples, dtype=np.float32)
        try:
            segments, _info = self.model.transcribe(
                audio,
                language=self.language,
                beam_size=self.beam_size,
                initial_prompt=context or None,
                condition_on_previous_text=False,
                without_timestamps=True,
                vad_filter=False,
            )

            text_parts: list[str] = []
            for seg in segments:
                if aborted():
                    return ""
                if seg.text:
                    text_parts.append(seg.text.strip())
        except Exception as e:
            raise ProviderError(
                ErrCode.STT_PROVIDER_ERROR,
                "whisper decode failed",
                {"err": str(e)[:200], "samples": int(samples.size)},
            ) from e

        if aborted():
            return ""
        return " ".join([t for t in text_parts if t]).strip()
