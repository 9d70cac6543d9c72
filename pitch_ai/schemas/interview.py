from pydantic import BaseModel
from typing import Optional


class UploadTextRequest(BaseModel):
    text: Optional[str] = None
    type: Optional[str] = None


class UploadUrlRequest(BaseModel):
    url: Optional[str] = None
    type: Optional[str] = None


class ProcessedContentItem(BaseModel):
    type: str
    content: str = ""
    method: Optional[str] = None
    filename: Optional[str] = None
    url: Optional[str] = None


class ProcessedContentRequest(BaseModel):
    processedContent: Optional[list[ProcessedContentItem]] = None


class GradeRequest(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None


class GradedResponse(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None
    feedback: Optional[dict] = None


class SummarizeRequest(BaseModel):
    responses: Optional[list[GradedResponse]] = None
