from pitch_ai.schemas.interview import (
    UploadTextRequest,
    UploadUrlRequest,
    ProcessedContentItem,
    ProcessedContentRequest,
    GradeRequest,
    GradedResponse,
    SummarizeRequest,
)
from pitch_ai.schemas.technical import EvaluateRequest, BatchEvaluateRequest
from pitch_ai.schemas.research import JobBriefRequest, TechAnswerRequest
from pitch_ai.schemas.media import (
    TranscribeRequest,
    TranscribeChunkRequest,
    IntroductionRequest,
    QuestionAudioRequest,
    PresenceAnalysisRequest,
)
from pitch_ai.schemas.auth import RegisterRequest, LoginRequest

__all__ = [
    "UploadTextRequest",
    "UploadUrlRequest",
    "ProcessedContentItem",
    "ProcessedContentRequest",
    "GradeRequest",
    "GradedResponse",
    "SummarizeRequest",
    "EvaluateRequest",
    "BatchEvaluateRequest",
    "JobBriefRequest",
    "TechAnswerRequest",
    "TranscribeRequest",
    "TranscribeChunkRequest",
    "IntroductionRequest",
    "QuestionAudioRequest",
    "PresenceAnalysisRequest",
    "RegisterRequest",
    "LoginRequest",
]
