#!/usr/bin/env python3
import argparse
import json
from pathlib import Path

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="End-to-end smoke test against a running backend.")
    parser.add_argument("--audio", help="Path to a local recording. Omit to analyze --text instead.")
    parser.add_argument("--text", default="", help="Transcript to analyze when no audio is given.")
    parser.add_argument("--audience", default="", help="Optional audience context.")
    parser.add_argument("--goal", default="", help="Optional goal context.")
    parser.add_argument("--api-base", default="http://127.0.0.1:8000", help="Backend base URL.")
    parser.add_argument("--timeout-seconds", type=float, default=300.0, help="Request timeout.")
    args = parser.parse_args()

    context = {key: value for key, value in {"audience": args.audience, "goal": args.goal}.items() if value}

    with httpx.Client(timeout=args.timeout_seconds, trust_env=False) as client:
        health = client.get(f"{args.api_base}/health")
        health.raise_for_status()
        print(f"backend: {health.json()}")

        if args.audio:
            audio_path = Path(args.audio).expanduser().resolve()
            if not audio_path.exists():
                raise FileNotFoundError(f"Audio file not found: {audio_path}")
            with audio_path.open("rb") as audio_file:
                files = {"audio": (audio_path.name, audio_file, "application/octet-stream")}
                response = client.post(f"{args.api_base}/api/analyze-audio", files=files, data=context)
        else:
            if not args.text.strip():
                raise ValueError("Pass --audio or --text.")
            response = client.post(
                f"{args.api_base}/api/analyze",
                json={"transcript": args.text, "context": context or None},
            )

    if response.status_code >= 400:
        raise RuntimeError(f"Analysis failed ({response.status_code}): {response.text}")

    payload = response.json()
    if "transcript" in payload:
        print(f"transcript: {payload['transcript']['full_text']}")
        print(f"metrics: {json.dumps({k: v for k, v in payload['metrics'].items() if k != 'sentence_pacing'})}")
    print(f"signals: {json.dumps(payload['signals'], indent=2)}")
    print("feedback:")
    print(payload["feedback"])


if __name__ == "__main__":
    main()
