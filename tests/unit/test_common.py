from __future__ import annotations

import json
import logging

import numpy as np

from live_dictation.common import config, metrics
from live_dictation.common.config import Settings, inference_thread_count
from live_dictation.common.logging import JsonFormatter, setup_logging
from live_dictation.common.time import (
    format_recording_time,
    samples_to_seconds,
    seconds_to_samples,
)
from live_dictation.streaming.engine import StreamingEngine
from live_dictation.stt.mock import MockInferenceEngine


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("STREAM_COMMIT_STRATEGY", "window")
    monkeypatch.setenv("STREAM_INTERVAL_MS", "250")
    monkeypatch.setenv("STREAM_ACCEPT_WHILE_IDLE", "false")

    s = Settings()
    assert s.stream_commit_strategy == "window"
    assert s.stream_interval_ms == 250
    assert s.stream_accept_while_idle is False
    assert s.sample_rate == 16000


def test_inference_thread_count_is_clamped(monkeypatch) -> None:
    monkeypatch.setattr(config.os, "cpu_count", lambda: 2)
    assert inference_thread_count() == 4
    monkeypatch.setattr(config.os, "cpu_count", lambda: 64)
    assert inference_thread_count() == 16
    monkeypatch.setattr(config.os, "cpu_count", lambda: 8)
    assert inference_thread_count() == 8
    assert inference_thread_count(3) == 3


def test_time_helpers() -> None:
    assert samples_to_seconds(8000, 16000) == 0.5
    assert samples_to_seconds(0, 16000) == 0.0
    assert seconds_to_samples(0.25, 16000) == 4000
    assert format_recording_time(0) == "0:00"
    assert format_recording_time(125.7) == "2:05"
    assert format_recording_time(-3) == "0:00"


def test_json_formatter_includes_payload() -> None:
    record = logging.LogRecord("live-dictation", logging.INFO, __file__, 1, "stream_commit", None, None)
    record.payload = {"committed_sec": 25.1}

    data = json.loads(JsonFormatter().format(record))
    assert data["msg"] == "stream_commit"
    assert data["level"] == "INFO"
    assert data["payload"] == {"committed_sec": 25.1}


def test_decode_pass_updates_metrics() -> None:
    ok = metrics.DECODE_PASSES_TOTAL.labels(result="ok")
    skipped = metrics.SKIPPED_PASSES_TOTAL.labels(reason="min_audio")
    ok_before = ok._value.get()
    skipped_before = skipped._value.get()

    engine = StreamingEngine(MockInferenceEngine(["text"]), initial_interval_sec=60, interval_sec=60)
    engine.start()
    try:
        engine.process(np.zeros(1600, dtype=np.float32))
        engine.run_pass()
        engine.process(np.zeros(4800, dtype=np.float32))
        engine.run_pass()
    finally:
        engine.stop()

    assert skipped._value.get() == skipped_before + 1
    assert ok._value.get() == ok_before + 1
    assert metrics.BUFFER_SECONDS._value.get() == 0.4


def test_setup_logging_is_idempotent(monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    setup_logging()
    setup_logging()

    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
