from __future__ import annotations

from live_dictation.common.config import Settings, get_settings
from live_dictation.common.errors import ErrCode
from live_dictation.common.logging import get_project_logger, setup_logging
from live_dictation.streaming.engine import StreamingEngine, TextCallback
from live_dictation.streaming.policy import CommitPolicy, build_commit_policy
from live_dictation.stt.base import InferenceEngine
from live_dictation.stt.mock import MockInferenceEngine

log = get_project_logger()


def build_inference_engine(settings: Settings | None = None) -> InferenceEngine:
    s = settings or get_settings()
    provider = (s.stt_provider or "").strip().lower()

    if provider == "mock":
        return MockInferenceEngine()

    # default: whisper_local (тяжёлые зависимости импортируем только тут)
    from live_dictation.stt.whisper_local import WhisperLocalEngine

    return WhisperLocalEngine(
        model_size=s.whisper_model_size,
        device=s.whisper_device,
        compute_type=s.whisper_compute_type,
        language=s.whisper_language,
        beam_size=s.whisper_beam_size,
        cpu_threads=s.whisper_cpu_threads,
    )


def build_commit_policy_from_settings(settings: Settings | None = None) -> CommitPolicy:
    s = settings or get_settings()
    return build_commit_policy(
        s.stream_commit_strategy,
        sample_rate=s.sample_rate,
        commit_sec=s.stream_commit_sec,
        window_sec=s.stream_window_sec,
        overlap_sec=s.stream_overlap_sec,
        context_words=s.stream_context_words,
    )


def build_streaming_engine(
    *,
    inference: InferenceEngine | None = None,
    callback: TextCallback | None = None,
    settings: Settings | None = None,
) -> StreamingEngine:
    """
    Собирает движок из настроек.

    inference=None -> движок распознавания строится по STT_PROVIDER.
    Ошибка загрузки модели не роняет сборку: движок работает без распознавания
    (process() и фоновый цикл ничего не делают).
    """
    s = settings or get_settings()
    setup_logging()

    if inference is None:
        try:
            inference = build_inference_engine(s)
        except Exception as e:
            log.error(
                "stt_engine_unavailable",
                extra={
                    "payload": {
                        "code": ErrCode.ENGINE_UNAVAILABLE,
                        "provider": s.stt_provider,
                        "err": str(e)[:250],
                    }
                },
            )
            inference = None

    return StreamingEngine(
        inference,
        policy=build_commit_policy_from_settings(s),
        sample_rate=s.sample_rate,
        initial_interval_sec=s.stream_initial_interval_ms / 1000.0,
        interval_sec=s.stream_interval_ms / 1000.0,
        min_audio_sec=s.stream_min_audio_sec,
        accept_while_idle=s.stream_accept_while_idle,
        callback=callback,
    )
