"""Tests for speakwise.backend.settings."""

from __future__ import annotations

import pytest

from speakwise.backend.settings import DEFAULT_GEMINI_MODELS, ConfigurationError, Settings


ENV_NAMES = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "FEEDBACK_TEMPERATURE",
    "FEEDBACK_MAX_TOKENS",
    "GOOGLE_AI_API_KEY",
    "ELEVENLABS_API_KEY",
    "GEMINI_MODELS",
    "FRONTEND_ORIGINS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings.from_env()
    assert settings.openai_api_key is None
    assert settings.gemini_models == DEFAULT_GEMINI_MODELS
    assert "http://localhost:3000" in settings.frontend_origins


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", " sk-live ")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("FEEDBACK_TEMPERATURE", "0.2")
    monkeypatch.setenv("GEMINI_MODELS", "gemini-2.0-flash, gemini-1.5-flash")
    monkeypatch.setenv("FRONTEND_ORIGINS", "https://coach.example.com")

    settings = Settings.from_env()
    assert settings.require_openai_key() == "sk-live"
    assert settings.openai_model == "gpt-4o"
    assert settings.feedback_temperature == pytest.approx(0.2)
    assert settings.gemini_models == ("gemini-2.0-flash", "gemini-1.5-flash")
    assert settings.frontend_origins == ("https://coach.example.com",)


def test_gemini_key_falls_back_to_legacy_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ELEVENLABS_API_KEY", "legacy-key")
    assert Settings.from_env().require_google_ai_key() == "legacy-key"

    monkeypatch.setenv("GOOGLE_AI_API_KEY", "primary-key")
    assert Settings.from_env().require_google_ai_key() == "primary-key"


@pytest.mark.parametrize(("name", "value"), [("FEEDBACK_TEMPERATURE", "warm"), ("FEEDBACK_MAX_TOKENS", "1.5")])
def test_bad_numbers(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError, match=name):
        Settings.from_env()


def test_missing_keys() -> None:
    settings = Settings()
    with pytest.raises(ConfigurationError):
        settings.require_openai_key()
    with pytest.raises(ConfigurationError):
        settings.require_google_ai_key()
