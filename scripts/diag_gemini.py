#!/usr/bin/env python3
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from speakwise.backend.gemini_client import GeminiClient  # noqa: E402
from speakwise.backend.settings import Settings  # noqa: E402


def main() -> None:
    settings = Settings.from_env()
    client = GeminiClient(settings)

    available = client.available_models()
    print(f"Models supporting generateContent: {len(available)}")
    for name in available:
        print(f"- {name}")

    configured = [name for name in settings.gemini_models if name in available]
    print(f"Configured fallback order: {', '.join(settings.gemini_models)}")
    print(f"Configured and listed: {', '.join(configured) or 'none'}")

    model = client.resolve_model()
    print(f"Resolved model: {model}")
    print("Gemini diagnostics passed.")


if __name__ == "__main__":
    main()
