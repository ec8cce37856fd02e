from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .delivery_signals import (
    TEXT_THRESHOLDS,
    TRANSCRIPTION_THRESHOLDS,
    DeliverySignals,
    SignalThresholds,
    extract_signals,
    format_signals_block,
)
from .metrics import compute_derived_metrics, compute_sentence_pacing
from .models import PitchContext
from .ports import FeedbackGenerator, Transcriber
from .prompts.feedback import CONTEXT_LABELS, FEEDBACK_VERSION, SYSTEM_PROMPT, USER_PROMPT_TEMPLATE


logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class FeedbackResult:
    feedback: str
    signals: DeliverySignals
    prompt_version: str = FEEDBACK_VERSION


@dataclass(frozen=True)
class DeliveryReport:
    transcript: dict
    signals: DeliverySignals
    metrics: dict


@dataclass(frozen=True)
class RecordingAnalysis:
    transcript: dict
    signals: DeliverySignals
    metrics: dict
    feedback: str
    prompt_version: str = FEEDBACK_VERSION


def format_context_block(context: Optional[PitchContext]) -> str:
    if context is None or context.is_empty():
        return ""
    lines = ["", "Context:"]
    for field_name, label in CONTEXT_LABELS:
        value = getattr(context, field_name)
        if value:
            lines.append(f"- {label}: {value}")
    return "\n".join(lines)


def build_feedback_user_prompt(
    transcript: str,
    context: Optional[PitchContext],
    signals: DeliverySignals,
) -> str:
    return (
        USER_PROMPT_TEMPLATE.replace("{transcript}", transcript.strip())
        .replace("{context_block}", format_context_block(context))
        .replace("{signals_block}", "\n" + format_signals_block(signals))
    )


class CoachingPipeline:
    """Speech-to-text, signal extraction, prompt assembly and feedback generation."""

    def __init__(
        self,
        *,
        transcriber: Transcriber,
        feedback_generator: FeedbackGenerator,
        text_thresholds: SignalThresholds = TEXT_THRESHOLDS,
        transcription_thresholds: SignalThresholds = TRANSCRIPTION_THRESHOLDS,
    ) -> None:
        self.transcriber = transcriber
        self.feedback_generator = feedback_generator
        self.text_thresholds = text_thresholds
        self.transcription_thresholds = transcription_thresholds

    def _generate(self, transcript: str, context: Optional[PitchContext], signals: DeliverySignals) -> str:
        user_prompt = build_feedback_user_prompt(transcript, context, signals)
        return self.feedback_generator.generate_feedback(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
        )

    def analyze_transcript(
        self,
        transcript: str,
        context: Optional[PitchContext] = None,
    ) -> FeedbackResult:
        text = (transcript or "").strip()
        if not text:
            raise ValueError("Transcript is required.")

        signals = extract_signals(text, self.text_thresholds)
        feedback = self._generate(text, context, signals)
        logger.info(
            "analyze_done source=text words=%s flags=%s",
            signals.word_count,
            signals.active_flags(),
        )
        return FeedbackResult(feedback=feedback, signals=signals)

    def transcribe(self, audio_path: Path) -> dict:
        return self.transcriber.transcribe(audio_path)

    def transcribe_with_signals(self, audio_path: Path) -> tuple[dict, DeliverySignals]:
        transcript = self.transcribe(audio_path)
        signals = extract_signals(transcript.get("full_text") or "", self.transcription_thresholds)
        return transcript, signals

    def delivery_report(self, audio_path: Path) -> DeliveryReport:
        transcript, signals = self.transcribe_with_signals(audio_path)
        words = transcript.get("words") or []
        metrics = compute_derived_metrics(words)
        metrics["sentence_pacing"] = compute_sentence_pacing(words) or []
        return DeliveryReport(transcript=transcript, signals=signals, metrics=metrics)

    def analyze_recording(
        self,
        audio_path: Path,
        context: Optional[PitchContext] = None,
    ) -> RecordingAnalysis:
        report = self.delivery_report(audio_path)
        full_text = (report.transcript.get("full_text") or "").strip()
        if not full_text:
            raise ValueError("No speech was detected in the recording.")

        feedback = self._generate(full_text, context, report.signals)
        logger.info(
            "analyze_done source=audio words=%s wpm=%.0f flags=%s",
            report.signals.word_count,
            report.metrics.get("wpm", 0.0),
            report.signals.active_flags(),
        )
        return RecordingAnalysis(
            transcript=report.transcript,
            signals=report.signals,
            metrics=report.metrics,
            feedback=feedback,
        )
