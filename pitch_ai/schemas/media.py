from pydantic import BaseModel
from typing import Any, Optional


class TranscribeRequest(BaseModel):
    audioContent: Optional[str] = None
    config: Optional[dict] = None


class TranscribeChunkRequest(TranscribeRequest):
    chunkIndex: Optional[Any] = None


class IntroductionRequest(BaseModel):
    position: Optional[str] = None
    company: Optional[str] = None
    interviewerName: Optional[str] = None


class QuestionAudioRequest(BaseModel):
    question: Optional[Any] = None


class PresenceAnalysisRequest(BaseModel):
    audioContent: Optional[str] = None
    imageData: Optional[str] = None
    transcriptText: Optional[str] = None
