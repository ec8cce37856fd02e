import json
import logging
import re
from typing import Any, Dict, Optional

from .models import PitchContext
from .ports import TextGenerator
from .prompts.context_extraction import ENGLISH_LEVELS, PROMPT_TEMPLATE, TONE_STYLES


logger = logging.getLogger("uvicorn.error")

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)
_NULL_STRINGS = {"", "null", "none", "n/a", "not mentioned"}


def build_extraction_prompt(context_transcript: str) -> str:
    return PROMPT_TEMPLATE.replace("{context_transcript}", context_transcript.strip())


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", (text or "").strip()).strip()


def parse_context_json(raw_output: str) -> Dict[str, Any]:
    cleaned = strip_code_fences(raw_output)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Models sometimes wrap the object in a sentence.
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("Context extraction reply did not contain a JSON object.")
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise ValueError(f"Context extraction reply is not valid JSON: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise ValueError("Context extraction reply must be a JSON object.")
    return parsed


def _clean_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        parts = [str(item).strip() for item in value if item is not None and str(item).strip()]
        value = ", ".join(parts)
    text = str(value).strip()
    if text.lower() in _NULL_STRINGS:
        return None
    return text


def _clean_choice(value: Any, allowed: set) -> Optional[str]:
    text = _clean_value(value)
    if text is None:
        return None
    lowered = text.lower()
    return lowered if lowered in allowed else None


def normalize_context(payload: Dict[str, Any]) -> PitchContext:
    return PitchContext(
        audience=_clean_value(payload.get("audience")),
        goal=_clean_value(payload.get("goal")),
        duration=_clean_value(payload.get("duration")),
        scenario=_clean_value(payload.get("scenario")),
        english_level=_clean_choice(payload.get("english_level"), ENGLISH_LEVELS),
        tone_style=_clean_choice(payload.get("tone_style"), TONE_STYLES),
        constraints=_clean_value(payload.get("constraints")),
        notes_from_user=_clean_value(payload.get("notes_from_user")),
    )


def extract_context(context_transcript: str, generator: TextGenerator) -> PitchContext:
    description = (context_transcript or "").strip()
    if not description:
        raise ValueError("Context transcript is required.")

    raw_output = generator.generate_text(build_extraction_prompt(description))
    context = normalize_context(parse_context_json(raw_output))
    logger.info(
        "context_extracted fields=%s",
        sorted(key for key, value in context.model_dump().items() if value),
    )
    return context
