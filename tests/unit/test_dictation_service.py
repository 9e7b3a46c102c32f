from __future__ import annotations

import logging

import numpy as np
import pytest

from live_dictation.common.config import get_settings
from live_dictation.services.dictation_service import (
    build_inference_engine,
    build_streaming_engine,
)
from live_dictation.streaming.policy import DurationCommitPolicy, WindowCommitPolicy
from live_dictation.stt import whisper_local
from live_dictation.stt.mock import MockInferenceEngine


@pytest.fixture()
def stream_settings():
    s = get_settings()
    keys = [
        "stt_provider",
        "stream_commit_strategy",
        "stream_commit_sec",
        "stream_window_sec",
        "stream_overlap_sec",
        "stream_initial_interval_ms",
        "stream_interval_ms",
        "stream_accept_while_idle",
    ]
    saved = {k: getattr(s, k) for k in keys}
    try:
        yield s
    finally:
        for k, v in saved.items():
            setattr(s, k, v)


def test_build_inference_engine_mock(stream_settings) -> None:
    stream_settings.stt_provider = "mock"
    assert isinstance(build_inference_engine(), MockInferenceEngine)


def test_build_streaming_engine_from_settings(stream_settings) -> None:
    stream_settings.stt_provider = "mock"
    stream_settings.stream_commit_strategy = "duration"
    stream_settings.stream_commit_sec = 5.0
    stream_settings.stream_initial_interval_ms = 100
    stream_settings.stream_interval_ms = 250

    engine = build_streaming_engine()
    assert isinstance(engine.policy, DurationCommitPolicy)
    assert engine.policy.commit_samples == 5 * 16000
    assert engine.initial_interval_sec == pytest.approx(0.1)
    assert engine.interval_sec == pytest.approx(0.25)


def test_build_streaming_engine_window_strategy(stream_settings) -> None:
    stream_settings.stream_commit_strategy = "window"
    stream_settings.stream_window_sec = 6.0
    stream_settings.stream_overlap_sec = 0.5

    engine = build_streaming_engine(inference=MockInferenceEngine())
    assert isinstance(engine.policy, WindowCommitPolicy)
    assert engine.policy.window_samples == 6 * 16000
    assert engine.policy.overlap_samples == 8000


def test_build_streaming_engine_survives_model_load_failure(monkeypatch, stream_settings) -> None:
    def _fail(*args, **kwargs):
        raise RuntimeError("model not found")

    monkeypatch.setattr(whisper_local, "WhisperModel", _fail)
    stream_settings.stt_provider = "whisper_local"

    engine = build_streaming_engine()
    engine.process(np.zeros(16000, dtype=np.float32))
    assert engine.recording_seconds() == 0.0


def test_build_streaming_engine_sets_up_logging(monkeypatch, stream_settings) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    stt_lib = logging.getLogger("faster_whisper")
    monkeypatch.setattr(stt_lib, "level", stt_lib.level)

    build_streaming_engine(inference=MockInferenceEngine())

    assert len(root.handlers) == 1
    assert stt_lib.level >= logging.WARNING
