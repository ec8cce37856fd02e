import json
import logging
import threading
from typing import Any, Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from .constants import MAX_PROVIDER_ERROR_CHARS
from .settings import Settings


logger = logging.getLogger("uvicorn.error")


def _truncate(text: str, max_chars: int = MAX_PROVIDER_ERROR_CHARS) -> str:
    value = (text or "").strip()
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3] + "..."


def _extract_content(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        parts: list[str] = []
        for item in value:
            if isinstance(item, dict):
                text = item.get("text")
                if text:
                    parts.append(str(text))
        return "\n".join(parts).strip()
    return str(value or "").strip()


def _unsupported_temperature(exc: APIStatusError) -> bool:
    message = (getattr(exc, "message", "") or str(exc)).lower()
    return "temperature" in message and ("default (1)" in message or "unsupported" in message)


class OpenAIFeedbackGenerator:
    def __init__(self, settings: Settings, client: Optional[OpenAI] = None) -> None:
        self._settings = settings
        self._client = client
        self._lock = threading.Lock()

    def _get_client(self) -> OpenAI:
        with self._lock:
            if self._client is None:
                self._client = OpenAI(
                    api_key=self._settings.require_openai_key(),
                    base_url=self._settings.openai_base_url,
                    timeout=self._settings.openai_timeout_seconds,
                )
            return self._client

    def generate_feedback(self, *, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        base_kwargs = {
            "model": self._settings.openai_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self._settings.feedback_max_tokens,
            "temperature": self._settings.feedback_temperature,
        }
        attempts = [
            dict(base_kwargs),
            {k: v for k, v in base_kwargs.items() if k != "temperature"},
        ]
        seen_signatures: set[str] = set()

        for kwargs in attempts:
            signature = json.dumps(sorted(kwargs.keys()))
            if signature in seen_signatures:
                continue
            seen_signatures.add(signature)

            try:
                response = client.chat.completions.create(**kwargs)
            except APIStatusError as exc:
                if "temperature" in kwargs and _unsupported_temperature(exc):
                    logger.info("feedback_retry reason=temperature_unsupported model=%s", kwargs["model"])
                    continue
                status_code = getattr(exc, "status_code", None)
                detail = _truncate(getattr(exc, "message", None) or str(exc))
                if status_code is not None:
                    raise RuntimeError(f"Feedback request failed ({status_code}): {detail}") from exc
                raise RuntimeError(f"Feedback request failed: {detail}") from exc
            except APITimeoutError as exc:
                raise RuntimeError("Feedback request timed out.") from exc
            except APIConnectionError as exc:
                raise RuntimeError(f"Failed to connect to the feedback provider: {exc}") from exc

            choice = response.choices[0] if response.choices else None
            if choice is None:
                raise RuntimeError("Feedback response did not contain choices.")
            content = _extract_content(choice.message.content)
            if not content:
                raise RuntimeError("Feedback response content is empty.")
            return content

        raise RuntimeError("Feedback request failed: the model rejected every supported parameter set.")
