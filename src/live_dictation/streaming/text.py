"""
Сборка отображаемого текста.

Назначение:
- очистка вывода распознавания от пометок без речи: [BLANK_AUDIO], (wind blowing)
- склейка подтверждённого и частичного текста
- хвост подтверждённого текста как подсказка для следующего декодирования

Все функции чистые, без состояния.
"""

from __future__ import annotations

import string

_CLOSERS = {"[": "]", "(": ")"}


def clean_annotations(text: str) -> str:
    """
    Вырезает фрагменты [...] и (...) вместе со скобками.

    Открывающая скобка без пары после неё остаётся как есть (строка до конца
    не удаляется). Для каждой открывающей ищем ближайшую закрывающую вперёд;
    найденный фрагмент пропускается целиком, а закрывающая, которой в хвосте
    нет, запоминается и больше не ищется, поэтому проход линейный.
    """
    if not text:
        return ""

    out: list[str] = []
    missing: set[str] = set()
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        closer = _CLOSERS.get(ch)
        if closer is not None and closer not in missing:
            end = text.find(closer, i + 1)
            if end != -1:
                i = end + 1
                continue
            missing.add(closer)
        out.append(ch)
        i += 1
    return "".join(out)


def join_text(confirmed: str, partial: str) -> str:
    """
    confirmed + " " + partial, если оба непустые; иначе непустой из двух.
    """
    if confirmed and partial:
        return f"{confirmed} {partial}"
    return confirmed or partial


def tail_words(text: str, count: int) -> str:
    if count <= 0 or not text:
        return ""
    return " ".join(text.split()[-count:])


def _norm_word(word: str) -> str:
    return word.strip(string.punctuation).lower()


def drop_repeated_prefix(confirmed: str, partial: str, max_words: int) -> str:
    """
    Убирает из начала partial слова, повторяющие конец confirmed.

    Нужна при коммите окна с перекрытием: перекрытое аудио распознаётся дважды.
    Берётся самое длинное совпадение не длиннее max_words.
    """
    if max_words <= 0 or not confirmed or not partial:
        return partial

    tail = [_norm_word(w) for w in confirmed.split()[-max_words:]]
    words = partial.split()
    head = [_norm_word(w) for w in words[:max_words]]

    for k in range(min(len(tail), len(head)), 0, -1):
        if tail[-k:] == head[:k] and any(tail[-k:]):
            return " ".join(words[k:])
    return partial
