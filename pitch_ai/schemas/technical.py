from pydantic import BaseModel
from typing import Any, Optional


class EvaluateRequest(BaseModel):
    questionId: Optional[Any] = None
    userAnswer: Optional[Any] = None
    config: Optional[dict] = None


class BatchEvaluateRequest(BaseModel):
    evaluations: Optional[list[Any]] = None
    config: Optional[dict] = None
