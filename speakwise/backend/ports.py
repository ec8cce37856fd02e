from pathlib import Path
from typing import Protocol


class Transcriber(Protocol):
    def transcribe(self, audio_path: Path) -> dict:
        """Return ``{"full_text", "segments", "words"}`` for an audio file."""


class FeedbackGenerator(Protocol):
    def generate_feedback(self, *, system_prompt: str, user_prompt: str) -> str:
        """Return the coach's markdown feedback."""


class TextGenerator(Protocol):
    def generate_text(self, prompt: str) -> str:
        pass


class ModelCatalog(Protocol):
    def list_models(self) -> list[dict]:
        pass
