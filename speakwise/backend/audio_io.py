import logging
import shutil
import subprocess
from pathlib import Path

from fastapi import HTTPException, UploadFile

from .constants import CHUNK_SIZE, MAX_UPLOAD_BYTES


logger = logging.getLogger("uvicorn.error")

WAV_SAMPLE_RATE = 16000
WAV_HEADER_BYTES = 44
FFMPEG_TIMEOUT_SECONDS = 120


async def write_upload_to_disk(
    upload: UploadFile,
    destination: Path,
    *,
    field_name: str = "audio",
    max_size_bytes: int = MAX_UPLOAD_BYTES,
) -> int:
    """Stream an upload to ``destination`` and return the number of bytes written.

    The upload is always closed. Oversized uploads stop at the first chunk
    past the limit (413); empty uploads are rejected (400).
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    try:
        with destination.open("wb") as output:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=f"{field_name} is too large. Max size is {max_size_bytes} bytes.",
                    )
                output.write(chunk)
    finally:
        await upload.close()

    if written == 0:
        raise HTTPException(status_code=400, detail=f"{field_name} file is empty.")
    logger.info("upload_saved field=%s filename=%s bytes=%s", field_name, upload.filename, written)
    return written


def convert_to_wav(input_path: Path, wav_path: Path, sample_rate: int = WAV_SAMPLE_RATE) -> Path:
    """Transcode any browser recording (webm/ogg/mp3/m4a) to mono LINEAR16 WAV."""
    ffmpeg_path = shutil.which("ffmpeg")
    if not ffmpeg_path:
        raise RuntimeError(
            "ffmpeg is not installed or not on PATH. Install ffmpeg (macOS: brew install ffmpeg)."
        )

    command = [
        ffmpeg_path,
        "-y",
        "-i",
        str(input_path),
        "-ac",
        "1",
        "-ar",
        str(sample_rate),
        "-f",
        "wav",
        str(wav_path),
    ]
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=FFMPEG_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired as exc:
        raise RuntimeError(f"Audio conversion timed out after {FFMPEG_TIMEOUT_SECONDS} seconds.") from exc

    if result.returncode != 0:
        stderr_tail = (result.stderr or "").strip().splitlines()
        message = stderr_tail[-1] if stderr_tail else "Unknown ffmpeg error"
        raise RuntimeError(f"Audio conversion failed: {message}")

    if not wav_path.exists() or wav_path.stat().st_size <= WAV_HEADER_BYTES:
        raise RuntimeError("Converted WAV audio is empty.")

    logger.info("audio_converted input=%s bytes=%s", input_path.name, wav_path.stat().st_size)
    return wav_path


def wav_duration_seconds(wav_bytes: bytes, sample_rate: int = WAV_SAMPLE_RATE) -> float:
    # 16-bit mono PCM
    payload = max(0, len(wav_bytes) - WAV_HEADER_BYTES)
    return payload / float(sample_rate * 2)
