"""
Shared fixtures: fake provider adapters and a test client wired to them.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from speakwise.backend.pipeline import CoachingPipeline
from speakwise.backend.settings import Settings
from speakwise.backend.web import create_app


class FakeTranscriber:
    def __init__(self, payload: dict) -> None:
        self.payload = payload
        self.calls: list[Path] = []

    def transcribe(self, audio_path: Path) -> dict:
        self.calls.append(audio_path)
        assert audio_path.exists(), "upload should be on disk while transcribing"
        return self.payload


class FakeFeedbackGenerator:
    def __init__(self, reply: str = "## Summary\nSolid pitch.") -> None:
        self.reply = reply
        self.calls: list[dict] = []
        self.error: Exception | None = None

    def generate_feedback(self, *, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt})
        if self.error is not None:
            raise self.error
        return self.reply


class FakeTextGenerator:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class FakeModelCatalog:
    def __init__(self, models: list[dict]) -> None:
        self.models = models

    def list_models(self) -> list[dict]:
        return self.models


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="sk-test", google_ai_api_key="gk-test")


@pytest.fixture
def sample_transcription() -> dict:
    """A speech-to-text payload with word timings."""
    words = [
        ("Um", 0.0, 0.3),
        ("so", 0.4, 0.6),
        ("we", 0.7, 0.8),
        ("help", 0.9, 1.2),
        ("small", 1.3, 1.6),
        ("shops", 1.7, 2.0),
        ("sell", 2.1, 2.4),
        ("online.", 2.5, 3.0),
        ("Maybe", 4.0, 4.3),
        ("we", 4.4, 4.5),
        ("could", 4.6, 4.9),
        ("grow", 5.0, 5.3),
        ("fast!", 5.4, 6.0),
    ]
    return {
        "full_text": "Um so we help small shops sell online. Maybe we could grow fast!",
        "segments": [
            {"start": 0.0, "end": 3.0, "text": "Um so we help small shops sell online."},
            {"start": 4.0, "end": 6.0, "text": "Maybe we could grow fast!"},
        ],
        "words": [{"word": word, "start": start, "end": end} for word, start, end in words],
    }


@pytest.fixture
def transcriber(sample_transcription: dict) -> FakeTranscriber:
    return FakeTranscriber(sample_transcription)


@pytest.fixture
def feedback_generator() -> FakeFeedbackGenerator:
    return FakeFeedbackGenerator()


@pytest.fixture
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator('{"audience": "investors", "goal": "raise funding", "duration": "3 minutes"}')


@pytest.fixture
def model_catalog() -> FakeModelCatalog:
    return FakeModelCatalog(
        [
            {
                "name": "gemini-1.5-flash",
                "display_name": "Gemini 1.5 Flash",
                "supported_methods": ["generateContent", "countTokens"],
            },
            {
                "name": "embedding-001",
                "display_name": "Embedding 001",
                "supported_methods": ["embedContent"],
            },
        ]
    )


@pytest.fixture
def pipeline(transcriber: FakeTranscriber, feedback_generator: FakeFeedbackGenerator) -> CoachingPipeline:
    return CoachingPipeline(transcriber=transcriber, feedback_generator=feedback_generator)


@pytest.fixture
def client(
    settings: Settings,
    pipeline: CoachingPipeline,
    text_generator: FakeTextGenerator,
    model_catalog: FakeModelCatalog,
) -> TestClient:
    app = create_app(
        settings,
        pipeline=pipeline,
        text_generator=text_generator,
        model_catalog=model_catalog,
    )
    return TestClient(app)
