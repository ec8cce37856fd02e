import logging
import threading
from typing import Any, Dict, List, Optional

import httpx

from .constants import MAX_PROVIDER_ERROR_CHARS
from .settings import Settings


logger = logging.getLogger("uvicorn.error")

GENERATION_METHODS = {"generateContent", "generateContentStream"}
PROBE_PROMPT = "test"


def _truncate(text: str, max_chars: int = MAX_PROVIDER_ERROR_CHARS) -> str:
    value = (text or "").strip()
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3] + "..."


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return _truncate(response.text or "Unknown provider error")
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return _truncate(str(error["message"]))
    return _truncate(response.text or "Unknown provider error")


def _strip_model_prefix(name: str) -> str:
    return name[len("models/") :] if name.startswith("models/") else name


def available_model_names(models: List[dict]) -> List[str]:
    return [
        model["name"]
        for model in models
        if GENERATION_METHODS.intersection(model.get("supported_methods") or [])
    ]


def extract_candidate_text(payload: Any) -> str:
    candidates = payload.get("candidates") if isinstance(payload, dict) else None
    if not candidates:
        return ""
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    texts = [str(part.get("text")) for part in parts or [] if isinstance(part, dict) and part.get("text")]
    return "".join(texts).strip()


class GeminiClient:
    """Gemini REST adapter used for context extraction and model discovery."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None) -> None:
        self._settings = settings
        self._http = http_client
        self._lock = threading.Lock()
        self._resolved_model: Optional[str] = None

    def _client(self) -> httpx.Client:
        with self._lock:
            if self._http is None:
                self._http = httpx.Client(timeout=self._settings.gemini_timeout_seconds)
            return self._http

    def _url(self, path: str) -> str:
        return self._settings.gemini_base_url.rstrip("/") + "/" + path.lstrip("/")

    def _request(self, method: str, path: str, json_payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._settings.require_google_ai_key(),
        }
        try:
            response = self._client().request(method, self._url(path), headers=headers, json=json_payload)
        except httpx.TimeoutException as exc:
            raise RuntimeError(
                f"Gemini request timed out after {int(self._settings.gemini_timeout_seconds)} seconds."
            ) from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to call Gemini: {exc}") from exc

        if response.status_code >= 400:
            raise RuntimeError(f"Gemini error {response.status_code}: {_error_detail(response)}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise RuntimeError("Gemini returned a non-JSON HTTP response.") from exc
        return payload if isinstance(payload, dict) else {}

    def list_models(self) -> List[dict]:
        payload = self._request("GET", "models")
        models = payload.get("models") or []
        return [
            {
                "name": _strip_model_prefix(str(item.get("name") or "")),
                "display_name": item.get("displayName"),
                "supported_methods": list(item.get("supportedGenerationMethods") or []),
            }
            for item in models
            if isinstance(item, dict) and item.get("name")
        ]

    def available_models(self) -> List[str]:
        return available_model_names(self.list_models())

    def _generate(self, model: str, prompt: str) -> str:
        payload = self._request(
            "POST",
            f"models/{model}:generateContent",
            {"contents": [{"role": "user", "parts": [{"text": prompt}]}]},
        )
        return extract_candidate_text(payload)

    def resolve_model(self) -> str:
        """Return the first configured model name that answers a probe request."""
        if self._resolved_model is not None:
            return self._resolved_model

        self._settings.require_google_ai_key()
        failures: List[str] = []
        for model in self._settings.gemini_models:
            try:
                self._generate(model, PROBE_PROMPT)
            except RuntimeError as exc:
                failures.append(f"{model}: {exc}")
                logger.warning("gemini_probe_failed model=%s error=%s", model, exc)
                continue
            self._resolved_model = model
            logger.info("gemini_model_resolved model=%s", model)
            return model

        raise RuntimeError(
            "No available Gemini models found. Please check your API key. "
            + _truncate("; ".join(failures))
        )

    def generate_text(self, prompt: str) -> str:
        model = self.resolve_model()
        text = self._generate(model, prompt)
        if not text:
            raise RuntimeError(f"Gemini model {model} returned an empty response.")
        return text
