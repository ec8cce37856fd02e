from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, Optional

from .delivery_signals import FILLER_WORDS


PAUSE_THRESHOLD_SECONDS = 0.60
MAX_SENTENCE_WORDS = 30
SINGLE_WORD_FILLERS = {term for term in FILLER_WORDS if " " not in term}
MULTI_WORD_FILLERS = [tuple(term.split()) for term in FILLER_WORDS if " " in term]


def _to_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _normalize_token(raw_word: str) -> str:
    lowered = str(raw_word or "").lower().strip()
    return lowered.strip(",.!?;:\"'")


def _count_alpha_like_words(tokens: Iterable[str]) -> int:
    return sum(1 for token in tokens if token and re.search(r"[A-Za-z]", token))


def _normalize_words(words: list[dict]) -> list[dict]:
    normalized = [
        {
            "word": str(item.get("word") or "").strip(),
            "start": _to_float(item.get("start"), 0.0),
            "end": _to_float(item.get("end"), 0.0),
        }
        for item in words
        if isinstance(item, dict)
    ]
    return sorted(
        (item for item in normalized if item["word"]),
        key=lambda item: item["start"],
    )


def count_fillers(tokens: list[str]) -> Counter:
    counter: Counter[str] = Counter()
    for token in tokens:
        if token in SINGLE_WORD_FILLERS:
            counter[token] += 1

    for phrase in MULTI_WORD_FILLERS:
        width = len(phrase)
        for index in range(len(tokens) - width + 1):
            if tuple(tokens[index : index + width]) == phrase:
                counter[" ".join(phrase)] += 1
    return counter


def compute_derived_metrics(words: list[dict]) -> dict:
    """Pace metrics from word-level timestamps of a transcription response."""
    sorted_words = _normalize_words(words or [])
    if not sorted_words:
        return {
            "duration_seconds": 0.0,
            "wpm": 0.0,
            "pause_count": 0,
            "longest_pause_seconds": 0.0,
            "filler_count": 0,
            "filler_rate_per_min": 0.0,
            "top_fillers": [],
        }

    start = min(item["start"] for item in sorted_words)
    end = max(item["end"] for item in sorted_words)
    duration_seconds = max(0.0, end - start)
    duration_minutes = max(duration_seconds / 60.0, 1e-6)

    word_count = _count_alpha_like_words(item["word"] for item in sorted_words)
    wpm = float(word_count) / duration_minutes

    pause_count = 0
    longest_pause_seconds = 0.0
    for current, nxt in zip(sorted_words, sorted_words[1:]):
        gap = nxt["start"] - current["end"]
        if gap >= PAUSE_THRESHOLD_SECONDS:
            pause_count += 1
        longest_pause_seconds = max(longest_pause_seconds, gap)

    filler_counter = count_fillers([_normalize_token(item["word"]) for item in sorted_words])
    filler_count = int(sum(filler_counter.values()))

    return {
        "duration_seconds": duration_seconds,
        "wpm": wpm,
        "pause_count": pause_count,
        "longest_pause_seconds": longest_pause_seconds,
        "filler_count": filler_count,
        "filler_rate_per_min": float(filler_count) / duration_minutes,
        "top_fillers": [
            {"token": token, "count": count}
            for token, count in filler_counter.most_common(5)
        ],
    }


def _close_sentence(tokens: list[str], start: float, end: float) -> dict:
    duration = max(end - start, 0.01)
    wpm = (_count_alpha_like_words(tokens) / duration) * 60.0
    return {
        "sentence": " ".join(tokens),
        "wpm": round(wpm, 0),
        "duration_sec": round(duration, 2),
        "start": round(start, 2),
        "end": round(end, 2),
    }


def compute_sentence_pacing(words: list[dict]) -> Optional[list[dict]]:
    """Per-sentence WPM computed from word timestamps.

    A sentence ends at a token ending in ``.``, ``!`` or ``?``, or after
    ``MAX_SENTENCE_WORDS`` tokens. Returns None when there are no words.
    """
    sorted_words = _normalize_words(words or [])
    if not sorted_words:
        return None

    sentences: list[dict] = []
    current_tokens: list[str] = []
    current_start = 0.0
    current_end = 0.0

    for item in sorted_words:
        if not current_tokens:
            current_start = item["start"]
        current_tokens.append(item["word"])
        current_end = item["end"]

        if item["word"].rstrip(",;:").endswith((".", "!", "?")) or len(current_tokens) >= MAX_SENTENCE_WORDS:
            sentences.append(_close_sentence(current_tokens, current_start, current_end))
            current_tokens = []

    if current_tokens:
        sentences.append(_close_sentence(current_tokens, current_start, current_end))
    return sentences
