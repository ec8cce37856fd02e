import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


DEFAULT_OPENAI_MODEL = "gpt-4-turbo-preview"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODELS = ("gemini-1.5-pro", "gemini-1.5-flash", "gemini-pro")
DEFAULT_FRONTEND_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


class ConfigurationError(RuntimeError):
    """A provider is used without the configuration it needs."""


def _env_str(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip() or default


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.") from exc


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_timeout_seconds: float = 60.0
    feedback_temperature: float = 0.7
    feedback_max_tokens: int = 1800

    google_ai_api_key: Optional[str] = None
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    gemini_models: Tuple[str, ...] = DEFAULT_GEMINI_MODELS
    gemini_timeout_seconds: float = 60.0

    google_credentials_b64: Optional[str] = None
    google_credentials_json: Optional[str] = None
    google_credentials_path: Optional[str] = None
    speech_language_code: str = "en-US"
    speech_timeout_seconds: float = 300.0

    frontend_origins: Tuple[str, ...] = field(default_factory=lambda: _split_csv(DEFAULT_FRONTEND_ORIGINS))

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=_env_optional("OPENAI_API_KEY"),
            openai_base_url=_env_optional("OPENAI_BASE_URL"),
            openai_model=_env_str("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            openai_timeout_seconds=_env_float("OPENAI_TIMEOUT_SECONDS", 60.0),
            feedback_temperature=_env_float("FEEDBACK_TEMPERATURE", 0.7),
            feedback_max_tokens=_env_int("FEEDBACK_MAX_TOKENS", 1800),
            # The Gemini key has historically been shared with the ElevenLabs variable.
            google_ai_api_key=_env_optional("GOOGLE_AI_API_KEY") or _env_optional("ELEVENLABS_API_KEY"),
            gemini_base_url=_env_str("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
            gemini_models=_split_csv(os.getenv("GEMINI_MODELS", "")) or DEFAULT_GEMINI_MODELS,
            gemini_timeout_seconds=_env_float("GEMINI_TIMEOUT_SECONDS", 60.0),
            google_credentials_b64=_env_optional("GOOGLE_APPLICATION_CREDENTIALS_B64"),
            google_credentials_json=_env_optional("GOOGLE_APPLICATION_CREDENTIALS_JSON"),
            google_credentials_path=_env_optional("GOOGLE_APPLICATION_CREDENTIALS"),
            speech_language_code=_env_str("SPEECH_LANGUAGE_CODE", "en-US"),
            speech_timeout_seconds=_env_float("SPEECH_TIMEOUT_SECONDS", 300.0),
            frontend_origins=_split_csv(_env_str("FRONTEND_ORIGINS", DEFAULT_FRONTEND_ORIGINS)),
        )

    def require_openai_key(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationError(
                'Missing OPENAI_API_KEY. Set it before requesting feedback (example: export OPENAI_API_KEY="sk-...").'
            )
        return self.openai_api_key

    def require_google_ai_key(self) -> str:
        if not self.google_ai_api_key:
            raise ConfigurationError("API key not configured. Set GOOGLE_AI_API_KEY.")
        return self.google_ai_api_key
