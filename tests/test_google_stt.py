"""Tests for speakwise.backend.google_stt with a fake Speech client."""

from __future__ import annotations

import base64
from datetime import timedelta
from types import SimpleNamespace

import pytest
from google.api_core.exceptions import ServiceUnavailable

from speakwise.backend.audio_io import WAV_HEADER_BYTES, WAV_SAMPLE_RATE
from speakwise.backend.google_stt import (
    GoogleSpeechTranscriber,
    duration_to_seconds,
    load_service_account_credentials,
    parse_speech_response,
)
from speakwise.backend.settings import ConfigurationError, Settings


def _word(word: str, start: float, end: float) -> SimpleNamespace:
    return SimpleNamespace(word=word, start_time=timedelta(seconds=start), end_time=timedelta(seconds=end))


def _response(*alternatives) -> SimpleNamespace:
    return SimpleNamespace(results=[SimpleNamespace(alternatives=list(alts)) for alts in alternatives])


def _wav_bytes(seconds: float) -> bytes:
    return b"\x00" * (WAV_HEADER_BYTES + int(seconds * WAV_SAMPLE_RATE * 2))


SPEECH_RESPONSE = _response(
    [SimpleNamespace(transcript="Hello investors.", words=[_word("Hello", 0.0, 0.4), _word("investors.", 0.5, 1.1)])],
    [SimpleNamespace(transcript=" We grow fast. ", words=[_word("We", 2.0, 2.2), _word("grow", 2.3, 2.5), _word("fast.", 2.6, 3.0)])],
    [],
)


class FakeOperation:
    def __init__(self, response) -> None:
        self.response = response
        self.timeout = None

    def result(self, timeout=None):
        self.timeout = timeout
        return self.response


class FakeSpeechClient:
    def __init__(self, response=SPEECH_RESPONSE, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[str] = []
        self.operation = FakeOperation(response)

    def recognize(self, config, audio):
        self.calls.append("recognize")
        if self.error is not None:
            raise self.error
        return self.response

    def long_running_recognize(self, config, audio):
        self.calls.append("long_running_recognize")
        return self.operation


class TestDurationToSeconds:
    def test_timedelta(self) -> None:
        assert duration_to_seconds(timedelta(seconds=1, microseconds=500000)) == pytest.approx(1.5)

    def test_seconds_and_nanos(self) -> None:
        assert duration_to_seconds(SimpleNamespace(seconds=2, nanos=250_000_000)) == pytest.approx(2.25)

    def test_none(self) -> None:
        assert duration_to_seconds(None) == 0.0


class TestParseSpeechResponse:
    def test_builds_text_segments_and_words(self) -> None:
        result = parse_speech_response(SPEECH_RESPONSE)
        assert result["full_text"] == "Hello investors. We grow fast."
        assert [segment["start"] for segment in result["segments"]] == [0.0, 2.0]
        assert result["segments"][1]["end"] == pytest.approx(3.0)
        assert [word["word"] for word in result["words"]] == ["Hello", "investors.", "We", "grow", "fast."]

    def test_result_without_word_offsets(self) -> None:
        response = _response([SimpleNamespace(transcript="Thanks.", words=[])])
        result = parse_speech_response(response)
        assert result["segments"] == [{"start": 0.0, "end": 0.0, "text": "Thanks."}]
        assert result["words"] == []

    def test_empty_response(self) -> None:
        assert parse_speech_response(_response()) == {"full_text": "", "segments": [], "words": []}


class TestRecognizeWav:
    def test_short_audio_uses_sync_recognize(self, settings: Settings) -> None:
        client = FakeSpeechClient()
        transcriber = GoogleSpeechTranscriber(settings, client=client)
        result = transcriber.recognize_wav(_wav_bytes(10))
        assert client.calls == ["recognize"]
        assert result["full_text"] == "Hello investors. We grow fast."

    def test_long_audio_uses_long_running_recognize(self, settings: Settings) -> None:
        client = FakeSpeechClient()
        transcriber = GoogleSpeechTranscriber(settings, client=client)
        transcriber.recognize_wav(_wav_bytes(90))
        assert client.calls == ["long_running_recognize"]
        assert client.operation.timeout == settings.speech_timeout_seconds

    def test_api_error_is_runtime_error(self, settings: Settings) -> None:
        client = FakeSpeechClient(error=ServiceUnavailable("backend unavailable"))
        transcriber = GoogleSpeechTranscriber(settings, client=client)
        with pytest.raises(RuntimeError, match="Google Speech-to-Text error"):
            transcriber.recognize_wav(_wav_bytes(5))


class TestCredentials:
    def test_not_configured(self) -> None:
        with pytest.raises(ConfigurationError, match="not configured"):
            load_service_account_credentials(Settings())

    def test_invalid_base64_payload(self) -> None:
        settings = Settings(google_credentials_b64=base64.b64encode(b"not json").decode("ascii"))
        with pytest.raises(ConfigurationError, match="GOOGLE_APPLICATION_CREDENTIALS_B64"):
            load_service_account_credentials(settings)

    def test_invalid_inline_json(self) -> None:
        with pytest.raises(ConfigurationError, match="GOOGLE_APPLICATION_CREDENTIALS_JSON"):
            load_service_account_credentials(Settings(google_credentials_json="{broken"))

    def test_missing_credentials_file(self, tmp_path) -> None:
        settings = Settings(google_credentials_path=str(tmp_path / "missing.json"))
        with pytest.raises(ConfigurationError, match="missing file"):
            load_service_account_credentials(settings)

    def test_existing_credentials_file_uses_default_discovery(self, tmp_path) -> None:
        path = tmp_path / "sa.json"
        path.write_text("{}")
        assert load_service_account_credentials(Settings(google_credentials_path=str(path))) is None
