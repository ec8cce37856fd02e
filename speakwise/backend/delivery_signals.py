from __future__ import annotations

import re
from dataclasses import asdict, dataclass


FILLER_WORDS = (
    "uh",
    "um",
    "er",
    "ah",
    "like",
    "you know",
    "so",
    "well",
    "actually",
    "basically",
    "literally",
)
UNCERTAINTY_MARKERS = (
    "maybe",
    "perhaps",
    "might",
    "could",
    "i think",
    "i guess",
    "sort of",
    "kind of",
)
MIN_REPEATED_TOKEN_LENGTH = 3

_ELLIPSIS_RE = re.compile(r"\.{2,}")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    words = [re.escape(part) for part in phrase.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


_FILLER_PATTERNS = tuple(_phrase_pattern(term) for term in FILLER_WORDS)
_UNCERTAINTY_PATTERNS = tuple(_phrase_pattern(term) for term in UNCERTAINTY_MARKERS)


@dataclass(frozen=True)
class SignalThresholds:
    """Magnitudes used to turn raw counts into delivery flags.

    Every ``*_count`` / ``*_words_per_sentence`` field is an exclusive lower
    bound (the flag fires when the value is strictly greater). ``confident_max_*``
    fields are inclusive upper bounds.
    """

    name: str
    nervous_filler_count: int = 3
    nervous_repetition_count: int = 1
    nervous_uncertainty_count: int = 2
    hesitation_ellipsis_count: int = 1
    hesitation_question_count: int = 1
    hesitation_uncertainty_count: int = 2
    enthusiasm_exclamation_count: int = 1
    rushed_words_per_sentence: float = 20.0
    confident_max_fillers: int = 2
    confident_max_repetitions: int = 0
    confident_max_questions: int = 0
    confident_max_uncertainty: int = 0


# Freeform text typed or pasted by the user.
TEXT_THRESHOLDS = SignalThresholds(name="text")

# Text returned by a speech-to-text provider, which transcribes disfluencies
# that a typed transcript would not contain.
TRANSCRIPTION_THRESHOLDS = SignalThresholds(
    name="transcription",
    nervous_filler_count=5,
    nervous_repetition_count=2,
    nervous_uncertainty_count=3,
    hesitation_ellipsis_count=2,
    hesitation_question_count=2,
    hesitation_uncertainty_count=3,
    enthusiasm_exclamation_count=2,
    rushed_words_per_sentence=25.0,
    confident_max_fillers=3,
)

THRESHOLD_PRESETS = {
    TEXT_THRESHOLDS.name: TEXT_THRESHOLDS,
    TRANSCRIPTION_THRESHOLDS.name: TRANSCRIPTION_THRESHOLDS,
}


@dataclass(frozen=True)
class DeliverySignals:
    filler_word_count: int
    repetition_count: int
    question_mark_count: int
    exclamation_mark_count: int
    ellipsis_count: int
    uncertainty_marker_count: int
    word_count: int
    sentence_count: int
    average_words_per_sentence: float
    nervousness: bool
    hesitation: bool
    enthusiasm: bool
    rushed: bool
    confidence: bool

    def as_dict(self) -> dict:
        return asdict(self)

    def active_flags(self) -> list[str]:
        flags = ("nervousness", "hesitation", "enthusiasm", "rushed", "confidence")
        return [flag for flag in flags if getattr(self, flag)]


def _count_phrases(text: str, patterns) -> int:
    return sum(len(pattern.findall(text)) for pattern in patterns)


def count_repetitions(text: str) -> int:
    tokens = text.lower().split()
    return sum(
        1
        for left, right in zip(tokens, tokens[1:])
        if left == right and len(left) >= MIN_REPEATED_TOKEN_LENGTH
    )


def split_sentences(text: str) -> list[str]:
    return [fragment.strip() for fragment in _SENTENCE_SPLIT_RE.split(text) if fragment.strip()]


def extract_signals(transcript: str, thresholds: SignalThresholds = TEXT_THRESHOLDS) -> DeliverySignals:
    """Estimate delivery signals from transcript text alone.

    Total over all strings: an empty or punctuation-free transcript yields
    zero counts and ``average_words_per_sentence == 0``. Note that an empty
    transcript is reported as ``confidence=True``; callers should treat it
    as "no detectable signal".
    """
    text = transcript or ""

    filler_count = _count_phrases(text, _FILLER_PATTERNS)
    uncertainty_count = _count_phrases(text, _UNCERTAINTY_PATTERNS)
    repetition_count = count_repetitions(text)
    question_count = text.count("?")
    exclamation_count = text.count("!")
    ellipsis_count = len(_ELLIPSIS_RE.findall(text))

    word_count = len(text.split())
    sentence_count = len(split_sentences(text))
    average = word_count / sentence_count if sentence_count > 0 else 0.0

    t = thresholds
    return DeliverySignals(
        filler_word_count=filler_count,
        repetition_count=repetition_count,
        question_mark_count=question_count,
        exclamation_mark_count=exclamation_count,
        ellipsis_count=ellipsis_count,
        uncertainty_marker_count=uncertainty_count,
        word_count=word_count,
        sentence_count=sentence_count,
        average_words_per_sentence=float(average),
        nervousness=(
            filler_count > t.nervous_filler_count
            or repetition_count > t.nervous_repetition_count
            or uncertainty_count > t.nervous_uncertainty_count
        ),
        hesitation=(
            ellipsis_count > t.hesitation_ellipsis_count
            or question_count > t.hesitation_question_count
            or uncertainty_count > t.hesitation_uncertainty_count
        ),
        enthusiasm=exclamation_count > t.enthusiasm_exclamation_count,
        rushed=average > t.rushed_words_per_sentence,
        confidence=(
            filler_count <= t.confident_max_fillers
            and repetition_count <= t.confident_max_repetitions
            and question_count <= t.confident_max_questions
            and uncertainty_count <= t.confident_max_uncertainty
        ),
    )


def format_signals_block(signals: DeliverySignals) -> str:
    """Render signals as the plain-text block appended to the feedback prompt."""
    if signals.word_count == 0:
        return "Delivery signals: no words detected, so no delivery signal is available."

    flags = [flag for flag in signals.active_flags() if flag != "confidence"]
    if signals.confidence:
        flags.append("confident wording")

    lines = [
        "Delivery signals (heuristic, inferred from transcript text only):",
        f"- Filler words: {signals.filler_word_count}",
        f"- Repeated words: {signals.repetition_count}",
        f"- Uncertainty markers: {signals.uncertainty_marker_count}",
        f"- Question marks: {signals.question_mark_count}",
        f"- Exclamation marks: {signals.exclamation_mark_count}",
        f"- Ellipses: {signals.ellipsis_count}",
        f"- Words: {signals.word_count} across {signals.sentence_count} sentence(s)",
        f"- Average words per sentence: {signals.average_words_per_sentence:.1f}",
        f"- Indicators: {', '.join(flags) if flags else 'none'}",
    ]
    return "\n".join(lines)
