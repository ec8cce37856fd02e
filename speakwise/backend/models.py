from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Segment(BaseModel):
    start: float
    end: float
    text: str


class Word(BaseModel):
    start: float
    end: float
    word: str


class TranscriptResult(BaseModel):
    full_text: str
    segments: List[Segment]
    words: List[Word]


class PitchContext(BaseModel):
    audience: Optional[str] = None
    goal: Optional[str] = None
    duration: Optional[str] = None
    scenario: Optional[str] = None
    english_level: Optional[str] = None
    tone_style: Optional[str] = None
    constraints: Optional[str] = None
    notes_from_user: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(value for value in self.model_dump().values())


class AnalyzeRequest(BaseModel):
    transcript: str = ""
    context: Optional[PitchContext] = None


class AnalyzeResponse(BaseModel):
    feedback: str
    signals: Dict[str, Any]
    prompt_version: str


class TranscribeResponse(BaseModel):
    transcript: TranscriptResult
    signals: Dict[str, Any]


class AnalyzeAudioResponse(BaseModel):
    transcript: TranscriptResult
    signals: Dict[str, Any]
    metrics: Dict[str, Any]
    feedback: str
    prompt_version: str


class DeliveryReportResponse(BaseModel):
    transcript: TranscriptResult
    signals: Dict[str, Any]
    metrics: Dict[str, Any]
    note: str


class ExtractContextRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    context_transcript: str = Field(default="", alias="contextTranscript")


class ExtractContextResponse(BaseModel):
    context: PitchContext


class ModelInfo(BaseModel):
    name: str
    display_name: Optional[str] = None
    supported_methods: List[str] = Field(default_factory=list)


class ListModelsResponse(BaseModel):
    available_models: List[str]
    all_models: List[ModelInfo]
    recommended: str
