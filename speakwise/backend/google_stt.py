import base64
import json
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import List, Optional

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import speech
from google.oauth2 import service_account

from .audio_io import WAV_SAMPLE_RATE, convert_to_wav, wav_duration_seconds
from .models import Segment, TranscriptResult, Word
from .settings import ConfigurationError, Settings


logger = logging.getLogger("uvicorn.error")

# Synchronous recognize() only accepts about a minute of audio.
SYNC_RECOGNIZE_MAX_SECONDS = 55.0


def duration_to_seconds(duration) -> float:
    if duration is None:
        return 0.0
    # proto-plus returns datetime.timedelta for Duration fields
    if hasattr(duration, "total_seconds"):
        return float(duration.total_seconds())
    seconds = getattr(duration, "seconds", 0) or 0
    nanos = getattr(duration, "nanos", 0) or 0
    return float(seconds) + (float(nanos) / 1_000_000_000.0)


def load_service_account_credentials(settings: Settings):
    if settings.google_credentials_b64:
        try:
            payload = base64.b64decode(settings.google_credentials_b64).decode("utf-8")
            info = json.loads(payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid GOOGLE_APPLICATION_CREDENTIALS_B64: {exc}") from exc
        return service_account.Credentials.from_service_account_info(info)

    if settings.google_credentials_json:
        try:
            info = json.loads(settings.google_credentials_json)
        except Exception as exc:
            raise ConfigurationError(f"Invalid GOOGLE_APPLICATION_CREDENTIALS_JSON: {exc}") from exc
        return service_account.Credentials.from_service_account_info(info)

    if settings.google_credentials_path:
        if not Path(settings.google_credentials_path).exists():
            raise ConfigurationError(
                f"GOOGLE_APPLICATION_CREDENTIALS points to a missing file: {settings.google_credentials_path}"
            )
        return None

    raise ConfigurationError(
        "Google credentials are not configured. Set one of "
        "GOOGLE_APPLICATION_CREDENTIALS, GOOGLE_APPLICATION_CREDENTIALS_JSON, "
        "or GOOGLE_APPLICATION_CREDENTIALS_B64."
    )


def build_speech_client(settings: Settings) -> speech.SpeechClient:
    credentials = load_service_account_credentials(settings)
    if credentials is None:
        return speech.SpeechClient()
    return speech.SpeechClient(credentials=credentials)


def _timed_words(alternative) -> List[Word]:
    return [
        Word(
            word=word_info.word,
            start=duration_to_seconds(word_info.start_time),
            end=duration_to_seconds(word_info.end_time),
        )
        for word_info in alternative.words or []
    ]


def parse_speech_response(response) -> dict:
    """Flatten recognition results into a TranscriptResult payload.

    Each result with an alternative becomes one segment spanning its first and
    last word; results without word offsets keep a zero-length segment.
    """
    texts: List[str] = []
    segments: List[Segment] = []
    words: List[Word] = []

    for result in response.results:
        if not result.alternatives:
            continue
        best = result.alternatives[0]
        text = (best.transcript or "").strip()
        if text:
            texts.append(text)
        timed = _timed_words(best)
        segments.append(
            Segment(
                start=timed[0].start if timed else 0.0,
                end=timed[-1].end if timed else 0.0,
                text=text,
            )
        )
        words.extend(timed)

    return TranscriptResult(full_text=" ".join(texts).strip(), segments=segments, words=words).model_dump()


class GoogleSpeechTranscriber:
    def __init__(self, settings: Settings, client: Optional[speech.SpeechClient] = None) -> None:
        self._settings = settings
        self._client = client
        self._lock = threading.Lock()

    def _get_client(self) -> speech.SpeechClient:
        with self._lock:
            if self._client is None:
                self._client = build_speech_client(self._settings)
            return self._client

    def _recognition_config(self) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=WAV_SAMPLE_RATE,
            language_code=self._settings.speech_language_code,
            enable_automatic_punctuation=True,
            enable_word_time_offsets=True,
        )

    def recognize_wav(self, wav_content: bytes) -> dict:
        client = self._get_client()
        config = self._recognition_config()
        audio = speech.RecognitionAudio(content=wav_content)
        duration = wav_duration_seconds(wav_content)

        try:
            if duration <= SYNC_RECOGNIZE_MAX_SECONDS:
                response = client.recognize(config=config, audio=audio)
            else:
                operation = client.long_running_recognize(config=config, audio=audio)
                response = operation.result(timeout=self._settings.speech_timeout_seconds)
        except GoogleAPICallError as exc:
            raise RuntimeError(f"Google Speech-to-Text error: {exc}") from exc

        result = parse_speech_response(response)
        logger.info(
            "speech_recognized duration_sec=%.1f words=%s segments=%s",
            duration,
            len(result["words"]),
            len(result["segments"]),
        )
        return result

    def transcribe(self, audio_path: Path) -> dict:
        temp_dir = Path(tempfile.mkdtemp(prefix="speakwise_stt_"))
        try:
            wav_path = convert_to_wav(audio_path, temp_dir / "converted.wav")
            return self.recognize_wav(wav_path.read_bytes())
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
