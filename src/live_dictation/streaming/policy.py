"""
Политики коммита частичного текста.

duration:
- весь незакоммиченный буфер перераспознаётся каждый проход
- когда буфер длиннее порога и прошлый проход дал текст,
  этот текст становится подтверждённым, буфер очищается

window:
- коммит фиксированного окна; хвост overlap остаётся в буфере
- хвост подтверждённого текста передаётся как подсказка в декодер
- повтор слов из перекрытия вырезается из начала нового частичного текста

Если буфер перерос порог, а прошлый проход текста не дал (тишина/шум),
аудио выбрасывается без изменения подтверждённого текста.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol

from live_dictation.common.time import seconds_to_samples
from live_dictation.domain.enums import CommitStrategy

from .text import drop_repeated_prefix, tail_words

# примерная скорость речи для оценки числа слов в перекрытии
_WORDS_PER_SECOND = 4


class CommitAction(str, enum.Enum):
    none = "none"
    commit = "commit"
    discard = "discard"


@dataclass(frozen=True)
class CommitDecision:
    action: CommitAction = CommitAction.none
    keep_samples: int = 0

    @property
    def clears_buffer(self) -> bool:
        return self.action != CommitAction.none


class CommitPolicy(Protocol):
    strategy: CommitStrategy

    @property
    def threshold_samples(self) -> int:
        """Размер буфера, после которого политика очищает его."""
        ...

    def decide(self, buffered: int, last_partial: str) -> CommitDecision: ...
    def context(self, confirmed: str) -> str | None: ...
    def merge(self, confirmed: str, partial: str) -> str: ...


class DurationCommitPolicy:
    strategy = CommitStrategy.duration

    def __init__(self, *, commit_samples: int) -> None:
        if commit_samples <= 0:
            raise ValueError("commit_samples must be > 0")
        self.commit_samples = commit_samples

    @property
    def threshold_samples(self) -> int:
        return self.commit_samples

    def decide(self, buffered: int, last_partial: str) -> CommitDecision:
        if buffered <= self.commit_samples:
            return CommitDecision()
        if last_partial:
            return CommitDecision(CommitAction.commit)
        return CommitDecision(CommitAction.discard)

    def context(self, confirmed: str) -> str | None:
        return None

    def merge(self, confirmed: str, partial: str) -> str:
        return partial


class WindowCommitPolicy:
    strategy = CommitStrategy.window

    def __init__(
        self,
        *,
        window_samples: int,
        overlap_samples: int,
        context_words: int = 32,
        sample_rate: int = 16000,
    ) -> None:
        if window_samples <= 0:
            raise ValueError("window_samples must be > 0")
        if overlap_samples < 0:
            raise ValueError("overlap_samples must be >= 0")
        if overlap_samples >= window_samples:
            raise ValueError("overlap_samples must be < window_samples")
        self.window_samples = window_samples
        self.overlap_samples = overlap_samples
        self.context_words = max(0, context_words)
        overlap_sec = overlap_samples / float(sample_rate)
        self.overlap_words = int(overlap_sec * _WORDS_PER_SECOND) + 1 if overlap_samples else 0

    @property
    def threshold_samples(self) -> int:
        return self.window_samples

    def decide(self, buffered: int, last_partial: str) -> CommitDecision:
        if buffered < self.window_samples:
            return CommitDecision()
        action = CommitAction.commit if last_partial else CommitAction.discard
        return CommitDecision(action, keep_samples=self.overlap_samples)

    def context(self, confirmed: str) -> str | None:
        return tail_words(confirmed, self.context_words) or None

    def merge(self, confirmed: str, partial: str) -> str:
        return drop_repeated_prefix(confirmed, partial, self.overlap_words)


def build_commit_policy(
    strategy: CommitStrategy | str,
    *,
    sample_rate: int,
    commit_sec: float = 25.0,
    window_sec: float = 10.0,
    overlap_sec: float = 1.0,
    context_words: int = 32,
) -> CommitPolicy:
    if isinstance(strategy, CommitStrategy):
        kind = strategy
    else:
        try:
            kind = CommitStrategy((strategy or "").strip().lower())
        except ValueError as e:
            raise ValueError(f"unknown commit strategy: {strategy}") from e

    if kind == CommitStrategy.window:
        return WindowCommitPolicy(
            window_samples=seconds_to_samples(window_sec, sample_rate),
            overlap_samples=seconds_to_samples(overlap_sec, sample_rate),
            context_words=context_words,
            sample_rate=sample_rate,
        )
    return DurationCommitPolicy(commit_samples=seconds_to_samples(commit_sec, sample_rate))
