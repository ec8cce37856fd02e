import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .audio_io import write_upload_to_disk
from .constants import APP_VERSION, MAX_REQUEST_BYTES, UPLOAD_ROUTES
from .context_extraction import extract_context
from .gemini_client import GeminiClient, available_model_names
from .google_stt import GoogleSpeechTranscriber
from .llm_client import OpenAIFeedbackGenerator
from .models import (
    AnalyzeAudioResponse,
    AnalyzeRequest,
    AnalyzeResponse,
    DeliveryReportResponse,
    ExtractContextRequest,
    ExtractContextResponse,
    ListModelsResponse,
    ModelInfo,
    PitchContext,
    TranscribeResponse,
)
from .pipeline import CoachingPipeline
from .ports import ModelCatalog, TextGenerator
from .settings import ConfigurationError, Settings


logger = logging.getLogger("uvicorn.error")

DELIVERY_REPORT_NOTE = (
    "Delivery indicators are estimated from the transcription and word timings. "
    "Acoustic features such as pitch and energy are not analyzed."
)

router = APIRouter()


def get_pipeline(request: Request) -> CoachingPipeline:
    return request.app.state.pipeline


def get_text_generator(request: Request) -> TextGenerator:
    return request.app.state.text_generator


def get_model_catalog(request: Request) -> ModelCatalog:
    return request.app.state.model_catalog


def _to_http_exception(exc: Exception, event: str) -> HTTPException:
    if isinstance(exc, ConfigurationError):
        status_code = 500
    elif isinstance(exc, ValueError):
        status_code = 400
    else:
        status_code = 502
    logger.warning("%s status=%s error=%s", event, status_code, exc)
    return HTTPException(status_code=status_code, detail=str(exc))


async def _stage_upload(audio: Optional[UploadFile]) -> tuple[Path, Path]:
    if audio is None:
        raise HTTPException(status_code=400, detail="Audio file is required.")

    temp_dir = Path(tempfile.mkdtemp(prefix="speakwise_upload_"))
    suffix = Path(audio.filename or "").suffix or ".webm"
    input_path = temp_dir / f"input{suffix}"
    try:
        await write_upload_to_disk(audio, input_path)
    except Exception:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise
    return temp_dir, input_path


def _form_context(audience: Optional[str], goal: Optional[str], duration: Optional[str]) -> Optional[PitchContext]:
    context = PitchContext(
        audience=(audience or "").strip() or None,
        goal=(goal or "").strip() or None,
        duration=(duration or "").strip() or None,
    )
    return None if context.is_empty() else context


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "version": APP_VERSION}


@router.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze_pitch(
    body: AnalyzeRequest,
    pipeline: CoachingPipeline = Depends(get_pipeline),
) -> AnalyzeResponse:
    if not body.transcript.strip():
        raise HTTPException(status_code=400, detail="Transcript is required")

    try:
        result = await run_in_threadpool(pipeline.analyze_transcript, body.transcript, body.context)
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, "analyze_failed") from exc

    return AnalyzeResponse(
        feedback=result.feedback,
        signals=result.signals.as_dict(),
        prompt_version=result.prompt_version,
    )


@router.post("/api/transcribe", response_model=TranscribeResponse)
async def transcribe_audio(
    audio: Optional[UploadFile] = File(None),
    pipeline: CoachingPipeline = Depends(get_pipeline),
) -> TranscribeResponse:
    temp_dir, input_path = await _stage_upload(audio)
    try:
        transcript, signals = await run_in_threadpool(pipeline.transcribe_with_signals, input_path)
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, "transcribe_failed") from exc
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    return TranscribeResponse(transcript=transcript, signals=signals.as_dict())


@router.post("/api/analyze-audio", response_model=AnalyzeAudioResponse)
async def analyze_audio(
    audio: Optional[UploadFile] = File(None),
    audience: Optional[str] = Form(None),
    goal: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    pipeline: CoachingPipeline = Depends(get_pipeline),
) -> AnalyzeAudioResponse:
    temp_dir, input_path = await _stage_upload(audio)
    context = _form_context(audience, goal, duration)
    try:
        result = await run_in_threadpool(pipeline.analyze_recording, input_path, context)
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, "analyze_audio_failed") from exc
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    return AnalyzeAudioResponse(
        transcript=result.transcript,
        signals=result.signals.as_dict(),
        metrics=result.metrics,
        feedback=result.feedback,
        prompt_version=result.prompt_version,
    )


@router.post("/api/analyze-emotions", response_model=DeliveryReportResponse)
async def analyze_emotions(
    audio: Optional[UploadFile] = File(None),
    pipeline: CoachingPipeline = Depends(get_pipeline),
) -> DeliveryReportResponse:
    temp_dir, input_path = await _stage_upload(audio)
    try:
        report = await run_in_threadpool(pipeline.delivery_report, input_path)
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, "analyze_emotions_failed") from exc
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    return DeliveryReportResponse(
        transcript=report.transcript,
        signals=report.signals.as_dict(),
        metrics=report.metrics,
        note=DELIVERY_REPORT_NOTE,
    )


@router.post("/api/extract-context", response_model=ExtractContextResponse)
async def extract_pitch_context(
    body: ExtractContextRequest,
    generator: TextGenerator = Depends(get_text_generator),
) -> ExtractContextResponse:
    if not body.context_transcript.strip():
        raise HTTPException(status_code=400, detail="Context transcript is required")

    try:
        context = await run_in_threadpool(extract_context, body.context_transcript, generator)
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, "extract_context_failed") from exc
    return ExtractContextResponse(context=context)


@router.get("/api/list-models", response_model=ListModelsResponse)
async def list_models(catalog: ModelCatalog = Depends(get_model_catalog)) -> ListModelsResponse:
    try:
        models = await run_in_threadpool(catalog.list_models)
    except RuntimeError as exc:
        raise _to_http_exception(exc, "list_models_failed") from exc

    available = available_model_names(models)
    return ListModelsResponse(
        available_models=available,
        all_models=[ModelInfo(**model) for model in models],
        recommended=available[0] if available else "none",
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    pipeline: Optional[CoachingPipeline] = None,
    text_generator: Optional[TextGenerator] = None,
    model_catalog: Optional[ModelCatalog] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if pipeline is None:
        pipeline = CoachingPipeline(
            transcriber=GoogleSpeechTranscriber(settings),
            feedback_generator=OpenAIFeedbackGenerator(settings),
        )
    if text_generator is None or model_catalog is None:
        gemini = GeminiClient(settings)
        text_generator = text_generator or gemini
        model_catalog = model_catalog or gemini

    app = FastAPI(title="SpeakWise Pitch Coach Backend", version=APP_VERSION)
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.text_generator = text_generator
    app.state.model_catalog = model_catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.frontend_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def enforce_upload_size(request: Request, call_next):
        if request.method == "POST" and request.url.path in UPLOAD_ROUTES:
            content_length = request.headers.get("content-length")
            if content_length:
                try:
                    if int(content_length) > MAX_REQUEST_BYTES:
                        return JSONResponse(
                            status_code=413,
                            content={"detail": f"Request too large. Max size is {MAX_REQUEST_BYTES} bytes."},
                        )
                except ValueError:
                    pass
        return await call_next(request)

    app.include_router(router)
    logger.info(
        "app_created openai_model=%s gemini_models=%s speech_language=%s",
        settings.openai_model,
        ",".join(settings.gemini_models),
        settings.speech_language_code,
    )
    return app


app = create_app()
